from cardmatch.models.card import (
    CandidateCard,
    CardImages,
    CardSet,
    FinishPrice,
    FinishPrices,
    TcgPlayerInfo,
)
from cardmatch.models.card_number import NormalizedCardNumber
from cardmatch.models.failure import (
    ApiResponse,
    CardNotFoundError,
    FailureDetail,
    FailureKind,
    KnownError,
    NetworkError,
    OutcomeType,
    ParseError,
    QueryValidationError,
    create_success,
    create_unknown_failure,
    finalize_response,
    is_finalized,
)
from cardmatch.models.handoff import CardCondition, InputMethod, SelectedCardHandoff
from cardmatch.models.query import CardLanguage, QueryFields
from cardmatch.models.scored_card import ScoreBreakdown, ScoredCard, ScoreResult
from cardmatch.models.search import (
    CatalogPage,
    CatalogQuery,
    ScoredCardSearchResult,
    SearchAttempt,
    SearchStrategy,
)

__all__ = [
    "ApiResponse",
    "CandidateCard",
    "CardCondition",
    "CardImages",
    "CardLanguage",
    "CardNotFoundError",
    "CardSet",
    "CatalogPage",
    "CatalogQuery",
    "FailureDetail",
    "FailureKind",
    "FinishPrice",
    "FinishPrices",
    "InputMethod",
    "KnownError",
    "NetworkError",
    "NormalizedCardNumber",
    "OutcomeType",
    "ParseError",
    "QueryFields",
    "QueryValidationError",
    "ScoreBreakdown",
    "ScoreResult",
    "ScoredCard",
    "ScoredCardSearchResult",
    "SearchAttempt",
    "SearchStrategy",
    "SelectedCardHandoff",
    "TcgPlayerInfo",
    "create_success",
    "create_unknown_failure",
    "finalize_response",
    "is_finalized",
]
