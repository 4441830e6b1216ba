from dataclasses import dataclass, field
from enum import Enum

from cardmatch.models.card import CandidateCard
from cardmatch.models.failure import FailureKind
from cardmatch.models.scored_card import ScoredCard


class SearchStrategy(str, Enum):
    """Cascade strategies, most specific first."""

    NUMBER_AND_SET = "number_and_set"
    NUMBER_AND_NAME = "number_and_name"
    NUMBER_ONLY = "number_only"
    NAME_ONLY = "name_only"


@dataclass(frozen=True, slots=True)
class CatalogQuery:
    """Field combination sent to the catalog collaborator."""

    name: str | None = None
    number: str | None = None
    set_id: str | None = None

    def fields_used(self) -> tuple[str, ...]:
        used = []
        if self.name:
            used.append("name")
        if self.number:
            used.append("number")
        if self.set_id:
            used.append("set_id")
        return tuple(used)


@dataclass(frozen=True, slots=True)
class CatalogPage:
    """Raw catalog response: the returned cards and the catalog's total hit count."""

    cards: tuple[CandidateCard, ...] = ()
    total_count: int = 0


@dataclass(frozen=True, slots=True)
class SearchAttempt:
    """One executed cascade strategy. Lives only for a single cascade run."""

    strategy: SearchStrategy
    fields_used: tuple[str, ...]
    result_count: int

    @property
    def found(self) -> bool:
        return self.result_count > 0


@dataclass(frozen=True, slots=True)
class ScoredCardSearchResult:
    """
    Outcome of a cascade run.

    On success, scored_cards holds the scored and sorted output of exactly
    one strategy. On failure, error and error_kind describe why.
    """

    success: bool
    scored_cards: tuple[ScoredCard, ...] = ()
    total_count: int = 0
    error: str | None = None
    error_kind: FailureKind | None = None
    strategy: SearchStrategy | None = None
    attempts: tuple[SearchAttempt, ...] = field(default_factory=tuple)

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        error: str,
        attempts: tuple[SearchAttempt, ...] = (),
    ) -> "ScoredCardSearchResult":
        return cls(success=False, error=error, error_kind=kind, attempts=attempts)

    @property
    def is_empty(self) -> bool:
        """Successful search that matched nothing."""
        return self.success and not self.scored_cards
