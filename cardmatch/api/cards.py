"""
Card search API endpoints.

Runs the search cascade for a set of query fields and returns a scored,
filtered, paginated result page in the standard ApiResponse envelope.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from cardmatch.api.dependencies import get_card_lookup, get_catalog
from cardmatch.matching.results import (
    extract_unique_rarities,
    extract_unique_sets,
    filter_by_rarity,
    filter_by_set,
    paginate,
)
from cardmatch.models.card import CandidateCard
from cardmatch.models.failure import (
    ApiResponse,
    CardNotFoundError,
    FailureKind,
    NetworkError,
    ParseError,
    QueryValidationError,
    create_success,
)
from cardmatch.models.query import CardLanguage, QueryFields
from cardmatch.models.scored_card import ScoredCard
from cardmatch.services.catalog_client import CatalogSearch, PokemonTcgClient
from cardmatch.services.pricing import format_price, get_market_price
from cardmatch.services.search_cascade import SearchCascade


router = APIRouter(prefix="/cards", tags=["cards"])


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CardSearchRequest(CamelModel):
    """Query fields plus result view options."""

    name: str = Field(default="", description="Pokemon name", examples=["Pikachu"])
    number: str = Field(default="", description="Card number as printed", examples=["025/165"])
    set_id: str | None = Field(default=None, alias="setId", examples=["sv2a"])
    language: CardLanguage = CardLanguage.KO
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=12, ge=1, le=100, alias="pageSize")
    set_filter: str | None = Field(default=None, alias="set", description="Exact set id filter")
    rarity: str | None = Field(default=None, description="Exact rarity filter")

    def to_query_fields(self) -> QueryFields:
        return QueryFields(
            pokemon_name=self.name,
            card_number=self.number,
            set_id=self.set_id or None,
            language=self.language,
        )


class ScoredCardResponse(CamelModel):
    id: str
    name: str
    number: str
    set_id: str = Field(alias="setId")
    set_name: str = Field(alias="setName")
    release_date: str | None = Field(default=None, alias="releaseDate")
    rarity: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    market_price: float | None = Field(default=None, alias="marketPrice")
    price_display: str = Field(alias="priceDisplay")
    accuracy_score: int = Field(alias="accuracyScore")
    score_breakdown: dict[str, int] = Field(alias="scoreBreakdown")

    @classmethod
    def from_scored(cls, scored: ScoredCard) -> "ScoredCardResponse":
        card = scored.card
        price = get_market_price(card)
        return cls(
            id=card.id,
            name=card.name,
            number=card.number,
            set_id=card.set.id,
            set_name=card.set.name,
            release_date=card.set.release_date,
            rarity=card.rarity,
            image_url=card.images.small,
            market_price=price,
            price_display=format_price(price),
            accuracy_score=scored.accuracy_score,
            score_breakdown=scored.score_breakdown.as_dict(),
        )


class SetOptionResponse(BaseModel):
    id: str
    name: str


class CardSearchResponse(CamelModel):
    cards: list[ScoredCardResponse]
    total_count: int = Field(alias="totalCount")
    result_count: int = Field(alias="resultCount")
    filtered_count: int = Field(alias="filteredCount")
    page: int
    total_pages: int = Field(alias="totalPages")
    has_more: bool = Field(alias="hasMore")
    strategy: str | None = None
    sets: list[SetOptionResponse] = Field(default_factory=list)
    rarities: list[str] = Field(default_factory=list)


class CardDetailResponse(CamelModel):
    card: CandidateCard
    market_price: float | None = Field(default=None, alias="marketPrice")
    price_display: str = Field(alias="priceDisplay")


@router.post(
    "/search",
    response_model=ApiResponse[CardSearchResponse],
    response_model_by_alias=True,
)
async def search_cards(
    request: CardSearchRequest,
    catalog: Annotated[CatalogSearch, Depends(get_catalog)],
) -> ApiResponse[Any]:
    """
    Find catalog cards matching the query fields.

    Tries number+set, number+name, number, then name, and returns the
    first strategy's results ranked by accuracy score.
    """
    result = await SearchCascade(catalog).search(request.to_query_fields())

    if not result.success:
        if result.error_kind == FailureKind.MISSING_REQUIRED:
            raise QueryValidationError(detail=result.error)
        if result.error_kind == FailureKind.PARSE_ERROR:
            raise ParseError(detail=result.error)
        raise NetworkError(detail=result.error)

    scored = list(result.scored_cards)
    filtered = filter_by_rarity(filter_by_set(scored, request.set_filter), request.rarity)
    page = paginate(filtered, request.page, request.page_size)

    return create_success(
        CardSearchResponse(
            cards=[ScoredCardResponse.from_scored(card) for card in page.items],
            total_count=result.total_count,
            result_count=len(scored),
            filtered_count=len(filtered),
            page=page.page,
            total_pages=page.total_pages,
            has_more=page.has_more,
            strategy=result.strategy.value if result.strategy else None,
            sets=[SetOptionResponse(id=s.id, name=s.name) for s in extract_unique_sets(scored)],
            rarities=extract_unique_rarities(scored),
        )
    )


@router.get(
    "/{card_id}",
    response_model=ApiResponse[CardDetailResponse],
    response_model_by_alias=True,
)
async def get_card(
    card_id: str,
    catalog: Annotated[PokemonTcgClient, Depends(get_card_lookup)],
) -> ApiResponse[Any]:
    """Get a single catalog card by id, with its resolved market price."""
    card = await catalog.get_card(card_id)
    if card is None:
        raise CardNotFoundError(card_id)

    price = get_market_price(card)
    return create_success(
        CardDetailResponse(card=card, market_price=price, price_display=format_price(price))
    )
