"""
Result processing - sort, filter and paginate scored cards.

All functions are pure and return new lists; inputs are never mutated.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from cardmatch.models.scored_card import ScoredCard

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 12


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of results."""

    items: list[T]
    page: int
    page_size: int
    has_more: bool
    total_pages: int
    total_items: int


@dataclass(frozen=True, slots=True)
class SetOption:
    """Filter option for a set."""

    id: str
    name: str


def sort_by_accuracy(cards: Sequence[ScoredCard]) -> list[ScoredCard]:
    """
    Sort by accuracy score descending, then set release date descending.

    Release dates compare as strings (ISO dates sort lexicographically).
    Missing dates compare as smallest. The sort is stable, so cards equal
    on both keys keep their catalog order.
    """
    # Two stable passes: secondary key first, then primary
    by_date = sorted(cards, key=lambda c: c.release_date, reverse=True)
    return sorted(by_date, key=lambda c: c.accuracy_score, reverse=True)


def filter_by_set(cards: Sequence[ScoredCard], set_id: str | None) -> list[ScoredCard]:
    """Keep cards from exactly this set. No set id means no filtering."""
    if not set_id:
        return list(cards)
    return [card for card in cards if card.set.id == set_id]


def filter_by_rarity(cards: Sequence[ScoredCard], rarity: str | None) -> list[ScoredCard]:
    """Keep cards of exactly this rarity. No rarity means no filtering."""
    if not rarity:
        return list(cards)
    return [card for card in cards if card.rarity == rarity]


def paginate(items: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """
    Slice one 1-indexed page out of a result list.

    Pages past the end are empty with has_more=False, not an error.

    Raises:
        ValueError: If page or page_size is less than 1
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    start = (page - 1) * page_size
    end = start + page_size

    return Page(
        items=list(items[start:end]),
        page=page,
        page_size=page_size,
        has_more=end < len(items),
        total_pages=math.ceil(len(items) / page_size),
        total_items=len(items),
    )


def extract_unique_sets(cards: Sequence[ScoredCard]) -> list[SetOption]:
    """
    Distinct sets for the set filter dropdown.

    Keyed by set id; the first name seen wins. Sorted case-insensitively
    by name (casefold), then by id.
    """
    sets: dict[str, SetOption] = {}
    for card in cards:
        if card.set.id not in sets:
            sets[card.set.id] = SetOption(id=card.set.id, name=card.set.name)

    return sorted(sets.values(), key=lambda option: (option.name.casefold(), option.id))


def extract_unique_rarities(cards: Sequence[ScoredCard]) -> list[str]:
    """Distinct non-empty rarities for the rarity filter dropdown, sorted."""
    return sorted({card.rarity for card in cards if card.rarity})


def get_best_match(cards: Sequence[ScoredCard]) -> ScoredCard | None:
    """Highest scoring card of an already sorted list, or None if empty."""
    if not cards:
        return None
    return cards[0]
