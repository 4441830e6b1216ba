from dataclasses import dataclass, field

from cardmatch.models.card import CandidateCard, CardSet


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """
    Named sub-scores behind an accuracy score.

    language_bonus is always 0 today. It stays in the structure so that
    language-aware ranking can be added without changing its shape.
    """

    number_match: int = 0
    name_match: int = 0
    set_match: int = 0
    language_bonus: int = 0
    price_bonus: int = 0
    recency_bonus: int = 0

    @property
    def total(self) -> int:
        return (
            self.number_match
            + self.name_match
            + self.set_match
            + self.language_bonus
            + self.price_bonus
            + self.recency_bonus
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "numberMatch": self.number_match,
            "nameMatch": self.name_match,
            "setMatch": self.set_match,
            "languageBonus": self.language_bonus,
            "priceBonus": self.price_bonus,
            "recencyBonus": self.recency_bonus,
        }


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Output of the accuracy scorer for one candidate."""

    score: int
    breakdown: ScoreBreakdown


@dataclass(frozen=True, slots=True)
class ScoredCard:
    """
    A catalog candidate with its accuracy score.

    INVARIANT: accuracy_score == score_breakdown.total
    """

    card: CandidateCard
    accuracy_score: int
    score_breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    @classmethod
    def from_result(cls, card: CandidateCard, result: ScoreResult) -> "ScoredCard":
        return cls(card=card, accuracy_score=result.score, score_breakdown=result.breakdown)

    @property
    def id(self) -> str:
        return self.card.id

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def set(self) -> CardSet:
        return self.card.set

    @property
    def rarity(self) -> str | None:
        return self.card.rarity

    @property
    def release_date(self) -> str:
        """Set release date, empty string when the catalog omits it."""
        return self.card.set.release_date or ""
