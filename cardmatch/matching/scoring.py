"""
Accuracy scoring - rank catalog candidates against extracted query fields.

INVARIANT: Candidates are scored, never rejected. A poor match gets a low
score and sinks to the bottom; garbage input yields zero, not an error.

Each factor is computed independently and the sum is the accuracy score:

    numberMatch   50 exact | 30 raw contains query | 20 partial
    nameMatch     30 exact | 15 candidate contains query | 10 query contains candidate
    setMatch      25 exact | 10 partial
    languageBonus  0 (reserved)
    priceBonus     3 has market price
    recencyBonus   2 released within a year | 1 within three years

An exact number + name + set match therefore scores at least 105.
"""

from collections.abc import Iterable
from datetime import date

from cardmatch.config import (
    NAME_CANDIDATE_CONTAINS_POINTS,
    NAME_EXACT_POINTS,
    NAME_QUERY_CONTAINS_POINTS,
    NUMBER_EXACT_POINTS,
    NUMBER_PARTIAL_POINTS,
    NUMBER_RAW_CONTAINS_POINTS,
    PRICE_BONUS_POINTS,
    RECENT_RELEASE_POINTS,
    SEMI_RECENT_RELEASE_POINTS,
    SET_EXACT_POINTS,
    SET_PARTIAL_POINTS,
)
from cardmatch.matching.normalize import normalize_card_number
from cardmatch.matching.results import sort_by_accuracy
from cardmatch.models.card import CandidateCard
from cardmatch.models.card_number import NormalizedCardNumber
from cardmatch.models.query import QueryFields
from cardmatch.models.scored_card import ScoreBreakdown, ScoredCard, ScoreResult
from cardmatch.services.pricing import get_market_price

# =============================================================================
# SCORING FUNCTIONS
# =============================================================================


def _score_number_match(raw_card_number: str, query_number: NormalizedCardNumber) -> int:
    """
    Score how well a candidate's number matches the query number.

    Returns:
        50 - Normalized numbers are equal
        30 - Raw candidate number contains the normalized query number
        20 - One normalized number contains the other
        0  - No match, or no query number
    """
    if query_number.is_empty():
        return 0

    card_number = normalize_card_number(raw_card_number)

    if card_number.number == query_number.number:
        return NUMBER_EXACT_POINTS

    if query_number.number in raw_card_number:
        return NUMBER_RAW_CONTAINS_POINTS

    if query_number.number in card_number.number or card_number.number in query_number.number:
        return NUMBER_PARTIAL_POINTS

    return 0


def _score_name_match(card_name: str, query_name: str) -> int:
    """
    Score a case-insensitive, trimmed name comparison.

    Returns:
        30 - Names are equal
        15 - Candidate name contains the query ("Pikachu ex" for "Pikachu")
        10 - Query name contains the candidate name
        0  - No match, or no query name
    """
    query = query_name.strip().lower()
    if not query:
        return 0

    candidate = card_name.strip().lower()

    if candidate == query:
        return NAME_EXACT_POINTS
    if query in candidate:
        return NAME_CANDIDATE_CONTAINS_POINTS
    if candidate in query:
        return NAME_QUERY_CONTAINS_POINTS

    return 0


def _score_set_match(card_set_id: str, query_set_id: str | None) -> int:
    """
    Score a case-insensitive, trimmed set id comparison.

    Returns:
        25 - Set ids are equal
        10 - One set id contains the other ("sv2" / "sv2a")
        0  - No match, or no query set id
    """
    if not query_set_id:
        return 0

    query = query_set_id.strip().lower()
    candidate = card_set_id.strip().lower()

    if candidate == query:
        return SET_EXACT_POINTS
    if query in candidate or candidate in query:
        return SET_PARTIAL_POINTS

    return 0


def _parse_release_year(release_date: str | None) -> int | None:
    """Read the four-digit year at the start of a catalog release date."""
    if not release_date:
        return None

    year = release_date[:4]
    if len(year) != 4 or not year.isdigit():
        return None

    return int(year)


def _score_recency(release_date: str | None, current_year: int) -> int:
    """
    Newer sets rank slightly higher.

    Returns:
        2 - Released this year or last year
        1 - Released within the last three years
        0 - Older, or release date missing/unparseable
    """
    release_year = _parse_release_year(release_date)
    if release_year is None:
        return 0

    if release_year >= current_year - 1:
        return RECENT_RELEASE_POINTS
    if release_year >= current_year - 3:
        return SEMI_RECENT_RELEASE_POINTS

    return 0


def score_card(
    candidate: CandidateCard,
    query: QueryFields,
    normalized_query_number: NormalizedCardNumber,
    *,
    current_year: int | None = None,
) -> ScoreResult:
    """
    Score a candidate against the query fields.

    Pure and deterministic for a fixed current_year. Never raises.

    Args:
        candidate: Catalog card to score
        query: Fields extracted by the vision model or edited by the user
        normalized_query_number: normalize_card_number(query.card_number)
        current_year: Reference year for the recency bonus (defaults to today)

    Returns:
        ScoreResult whose score is the exact sum of its breakdown
    """
    if current_year is None:
        current_year = date.today().year

    breakdown = ScoreBreakdown(
        number_match=_score_number_match(candidate.number, normalized_query_number),
        name_match=_score_name_match(candidate.name, query.pokemon_name),
        set_match=_score_set_match(candidate.set.id, query.set_id),
        language_bonus=0,
        price_bonus=PRICE_BONUS_POINTS if get_market_price(candidate) is not None else 0,
        recency_bonus=_score_recency(candidate.set.release_date, current_year),
    )

    return ScoreResult(score=breakdown.total, breakdown=breakdown)


def score_and_sort(
    cards: Iterable[CandidateCard],
    query: QueryFields,
    *,
    current_year: int | None = None,
) -> list[ScoredCard]:
    """
    Score every candidate and sort by accuracy.

    Args:
        cards: Raw catalog results
        query: The query fields to match against
        current_year: Reference year for the recency bonus

    Returns:
        ScoredCards, best match first
    """
    if current_year is None:
        current_year = date.today().year

    query_number = normalize_card_number(query.card_number)

    scored = []
    for card in cards:
        result = score_card(card, query, query_number, current_year=current_year)
        scored.append(ScoredCard.from_result(card, result))

    return sort_by_accuracy(scored)
