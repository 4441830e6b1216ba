"""
Card matching engine: number normalization, accuracy scoring and result
processing. Everything here is pure and synchronous.
"""

from cardmatch.matching.normalize import normalize_card_number
from cardmatch.matching.results import (
    DEFAULT_PAGE_SIZE,
    Page,
    SetOption,
    extract_unique_rarities,
    extract_unique_sets,
    filter_by_rarity,
    filter_by_set,
    get_best_match,
    paginate,
    sort_by_accuracy,
)
from cardmatch.matching.scoring import score_and_sort, score_card

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Page",
    "SetOption",
    "extract_unique_rarities",
    "extract_unique_sets",
    "filter_by_rarity",
    "filter_by_set",
    "get_best_match",
    "normalize_card_number",
    "paginate",
    "score_and_sort",
    "score_card",
    "sort_by_accuracy",
]
