"""
Tests for accuracy scoring.

INVARIANT: score == sum of breakdown, and scoring never raises.
"""

import pytest

from cardmatch.matching.normalize import normalize_card_number
from cardmatch.matching.scoring import score_and_sort, score_card
from cardmatch.models.query import QueryFields

CURRENT_YEAR = 2024


def _score(card, query: QueryFields):
    return score_card(
        card, query, normalize_card_number(query.card_number), current_year=CURRENT_YEAR
    )


class TestNumberMatch:
    def test_exact_after_normalization(self, make_card) -> None:
        """'025/165' in the query matches catalog number '25'."""
        result = _score(make_card(number="25"), QueryFields(card_number="025/165"))

        assert result.breakdown.number_match == 50

    def test_raw_number_contains_query(self, make_card) -> None:
        """Query '25' found inside raw catalog number 'TG25'."""
        result = _score(make_card(number="TG25"), QueryFields(card_number="25"))

        assert result.breakdown.number_match == 30

    def test_partial_match(self, make_card) -> None:
        """Normalized catalog '5' is contained in query '25'."""
        result = _score(make_card(number="005"), QueryFields(card_number="25"))

        assert result.breakdown.number_match == 20

    def test_no_match(self, make_card) -> None:
        result = _score(make_card(number="99"), QueryFields(card_number="25"))

        assert result.breakdown.number_match == 0

    def test_skipped_without_query_number(self, make_card) -> None:
        result = _score(make_card(number="25"), QueryFields(pokemon_name="Pikachu"))

        assert result.breakdown.number_match == 0


class TestNameMatch:
    def test_exact_case_insensitive(self, make_card) -> None:
        result = _score(make_card(name="Pikachu"), QueryFields(pokemon_name="  pikachu "))

        assert result.breakdown.name_match == 30

    def test_candidate_contains_query(self, make_card) -> None:
        result = _score(make_card(name="Pikachu ex"), QueryFields(pokemon_name="Pikachu"))

        assert result.breakdown.name_match == 15

    def test_query_contains_candidate(self, make_card) -> None:
        result = _score(make_card(name="Mew"), QueryFields(pokemon_name="Mewtwo"))

        assert result.breakdown.name_match == 10

    def test_no_match(self, make_card) -> None:
        result = _score(make_card(name="Charizard"), QueryFields(pokemon_name="Pikachu"))

        assert result.breakdown.name_match == 0

    def test_skipped_without_query_name(self, make_card) -> None:
        result = _score(make_card(name="Pikachu"), QueryFields(card_number="25"))

        assert result.breakdown.name_match == 0


class TestSetMatch:
    def test_exact_case_insensitive(self, make_card) -> None:
        result = _score(make_card(set_id="sv2a"), QueryFields(pokemon_name="x", set_id="SV2a"))

        assert result.breakdown.set_match == 25

    def test_partial(self, make_card) -> None:
        result = _score(make_card(set_id="sv2a"), QueryFields(pokemon_name="x", set_id="sv2"))

        assert result.breakdown.set_match == 10

    def test_skipped_without_query_set(self, make_card) -> None:
        result = _score(make_card(set_id="sv2a"), QueryFields(pokemon_name="x"))

        assert result.breakdown.set_match == 0


class TestBonuses:
    def test_language_bonus_always_zero(self, make_card) -> None:
        result = _score(make_card(), QueryFields(pokemon_name="Pikachu"))

        assert result.breakdown.language_bonus == 0
        assert "languageBonus" in result.breakdown.as_dict()

    def test_price_bonus_with_market_price(self, make_card) -> None:
        result = _score(make_card(market=1.25), QueryFields(pokemon_name="Pikachu"))

        assert result.breakdown.price_bonus == 3

    def test_no_price_bonus_without_price(self, make_card) -> None:
        result = _score(make_card(market=None), QueryFields(pokemon_name="Pikachu"))

        assert result.breakdown.price_bonus == 0

    @pytest.mark.parametrize(
        ("release_date", "expected"),
        [
            ("2024/03/22", 2),
            ("2023/06/16", 2),
            ("2022/11/11", 1),
            ("2021-02-19", 1),
            ("2020/02/07", 0),
            ("1999/01/09", 0),
            (None, 0),
            ("unknown", 0),
            ("20", 0),
        ],
    )
    def test_recency_bonus(self, make_card, release_date: str | None, expected: int) -> None:
        result = _score(make_card(release_date=release_date), QueryFields(pokemon_name="x"))

        assert result.breakdown.recency_bonus == expected


class TestScoreInvariants:
    def test_exact_match_scores_at_least_105(self, make_card) -> None:
        card = make_card(name="Pikachu", number="25", set_id="sv2a", release_date="2010/01/01")
        query = QueryFields(pokemon_name="Pikachu", card_number="025/165", set_id="sv2a")

        result = _score(card, query)

        assert result.score >= 105

    def test_maximum_score(self, make_card) -> None:
        card = make_card(
            name="Pikachu", number="25", set_id="sv2a", release_date="2024/01/01", market=2.0
        )
        query = QueryFields(pokemon_name="Pikachu", card_number="25", set_id="sv2a")

        assert _score(card, query).score == 110

    @pytest.mark.parametrize(
        "query",
        [
            QueryFields(),
            QueryFields(pokemon_name="Pikachu", card_number="025/165", set_id="sv2a"),
            QueryFields(pokemon_name="???", card_number="////"),
            QueryFields(card_number="TG05/TG30", set_id="swsh11tg"),
        ],
    )
    def test_score_equals_breakdown_sum(self, make_card, query: QueryFields) -> None:
        for card in [
            make_card(),
            make_card(number="TG05", set_id="swsh11tg", market=9.99),
            make_card(name="", number="", release_date=None),
        ]:
            result = _score(card, query)

            assert result.score == result.breakdown.total
            assert result.score >= 0

    def test_empty_query_scores_only_bonuses(self, make_card) -> None:
        card = make_card(market=1.0, release_date="2024/01/01")

        result = _score(card, QueryFields())

        assert result.score == 5


class TestScoreAndSort:
    def test_best_match_first(self, make_card) -> None:
        cards = [
            make_card(card_id="a", name="Raichu", number="26"),
            make_card(card_id="b", name="Pikachu", number="25"),
            make_card(card_id="c", name="Pikachu ex", number="63"),
        ]
        query = QueryFields(pokemon_name="Pikachu", card_number="025/165")

        scored = score_and_sort(cards, query, current_year=CURRENT_YEAR)

        assert [c.id for c in scored] == ["b", "c", "a"]
        for card in scored:
            assert card.accuracy_score == card.score_breakdown.total

    def test_empty_input(self) -> None:
        assert score_and_sort([], QueryFields(pokemon_name="Pikachu")) == []
