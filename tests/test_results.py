"""Tests for result sorting, filtering and pagination."""

import pytest

from cardmatch.matching.results import (
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
from cardmatch.models.scored_card import ScoreBreakdown, ScoredCard


@pytest.fixture
def scored(make_card):
    """Factory for ScoredCard with a given score (all in number_match)."""

    def _make(score: int = 0, **card_kwargs) -> ScoredCard:
        return ScoredCard(
            card=make_card(**card_kwargs),
            accuracy_score=score,
            score_breakdown=ScoreBreakdown(number_match=score),
        )

    return _make


class TestSortByAccuracy:
    def test_descending_score(self, scored) -> None:
        cards = [scored(10, card_id="a"), scored(80, card_id="b"), scored(45, card_id="c")]

        result = sort_by_accuracy(cards)

        assert [c.id for c in result] == ["b", "c", "a"]

    def test_ties_broken_by_newest_release(self, scored) -> None:
        cards = [
            scored(50, card_id="old", release_date="2016/02/03"),
            scored(50, card_id="new", release_date="2023/06/16"),
            scored(50, card_id="mid", release_date="2020/11/13"),
        ]

        result = sort_by_accuracy(cards)

        assert [c.id for c in result] == ["new", "mid", "old"]

    def test_missing_release_date_sorts_last_among_ties(self, scored) -> None:
        cards = [
            scored(50, card_id="none", release_date=None),
            scored(50, card_id="dated", release_date="1999/01/09"),
        ]

        result = sort_by_accuracy(cards)

        assert [c.id for c in result] == ["dated", "none"]

    def test_stable_for_full_ties(self, scored) -> None:
        cards = [scored(30, card_id=f"c{i}", release_date="2023/01/01") for i in range(5)]

        result = sort_by_accuracy(cards)

        assert [c.id for c in result] == ["c0", "c1", "c2", "c3", "c4"]

    def test_order_is_monotonic(self, scored) -> None:
        cards = [
            scored(score, card_id=f"c{i}", release_date=date)
            for i, (score, date) in enumerate(
                [
                    (20, "2021/01/01"),
                    (55, None),
                    (20, "2023/05/05"),
                    (105, "2019/03/03"),
                    (55, "2022/02/02"),
                ]
            )
        ]

        result = sort_by_accuracy(cards)

        for earlier, later in zip(result, result[1:], strict=False):
            assert earlier.accuracy_score >= later.accuracy_score
            if earlier.accuracy_score == later.accuracy_score:
                assert earlier.release_date >= later.release_date

    def test_does_not_mutate_input(self, scored) -> None:
        cards = [scored(1, card_id="a"), scored(2, card_id="b")]

        sort_by_accuracy(cards)

        assert [c.id for c in cards] == ["a", "b"]


class TestFilters:
    def test_filter_by_set(self, scored) -> None:
        cards = [scored(card_id="a", set_id="sv2a"), scored(card_id="b", set_id="sv4")]

        assert [c.id for c in filter_by_set(cards, "sv4")] == ["b"]

    def test_filter_by_set_is_exact(self, scored) -> None:
        cards = [scored(card_id="a", set_id="sv2a")]

        assert filter_by_set(cards, "sv2") == []

    @pytest.mark.parametrize("empty", [None, ""])
    def test_no_set_means_no_filter(self, scored, empty) -> None:
        cards = [scored(card_id="a", set_id="sv2a"), scored(card_id="b", set_id="sv4")]

        assert len(filter_by_set(cards, empty)) == 2

    def test_filter_by_rarity(self, scored) -> None:
        cards = [
            scored(card_id="a", rarity="Common"),
            scored(card_id="b", rarity="Rare Holo"),
            scored(card_id="c", rarity=None),
        ]

        assert [c.id for c in filter_by_rarity(cards, "Rare Holo")] == ["b"]
        assert len(filter_by_rarity(cards, None)) == 3

    def test_filters_compose(self, scored) -> None:
        cards = [
            scored(card_id="a", set_id="sv2a", rarity="Common"),
            scored(card_id="b", set_id="sv2a", rarity="Rare"),
            scored(card_id="c", set_id="sv4", rarity="Rare"),
        ]

        result = filter_by_rarity(filter_by_set(cards, "sv2a"), "Rare")

        assert [c.id for c in result] == ["b"]


class TestPaginate:
    def test_first_page(self) -> None:
        page = paginate(list(range(30)), 1, 12)

        assert isinstance(page, Page)
        assert page.items == list(range(12))
        assert page.has_more is True
        assert page.total_pages == 3
        assert page.total_items == 30

    def test_last_partial_page(self) -> None:
        page = paginate(list(range(30)), 3, 12)

        assert page.items == list(range(24, 30))
        assert page.has_more is False

    def test_page_past_end_is_empty(self) -> None:
        page = paginate(list(range(30)), 4, 12)

        assert page.items == []
        assert page.has_more is False

    def test_exact_multiple(self) -> None:
        page = paginate(list(range(24)), 2, 12)

        assert len(page.items) == 12
        assert page.has_more is False
        assert page.total_pages == 2

    def test_empty_list(self) -> None:
        page = paginate([], 1)

        assert page.items == []
        assert page.has_more is False
        assert page.total_pages == 0

    def test_default_page_size(self) -> None:
        assert len(paginate(list(range(30)), 1).items) == 12

    @pytest.mark.parametrize(("page", "size"), [(0, 12), (-1, 12), (1, 0)])
    def test_invalid_arguments(self, page: int, size: int) -> None:
        with pytest.raises(ValueError):
            paginate(list(range(30)), page, size)


class TestFilterOptions:
    def test_unique_sets_sorted_by_name(self, scored) -> None:
        cards = [
            scored(set_id="sv4", set_name="Paradox Rift"),
            scored(set_id="sv2a", set_name="Pokemon Card 151"),
            scored(set_id="sv4", set_name="Paradox Rift"),
            scored(set_id="sv1", set_name="Scarlet & Violet"),
        ]

        result = extract_unique_sets(cards)

        assert result == [
            SetOption(id="sv4", name="Paradox Rift"),
            SetOption(id="sv2a", name="Pokemon Card 151"),
            SetOption(id="sv1", name="Scarlet & Violet"),
        ]

    def test_set_names_sort_case_insensitively(self, scored) -> None:
        cards = [
            scored(set_id="sv4", set_name="Paradox Rift"),
            scored(set_id="xy-p", set_name="black star promos"),
            scored(set_id="sv2a", set_name="Pokemon Card 151"),
        ]

        result = extract_unique_sets(cards)

        assert [option.id for option in result] == ["xy-p", "sv4", "sv2a"]

    def test_first_set_name_wins(self, scored) -> None:
        cards = [
            scored(set_id="sv2a", set_name="Pokemon Card 151"),
            scored(set_id="sv2a", set_name="151"),
        ]

        assert extract_unique_sets(cards) == [SetOption(id="sv2a", name="Pokemon Card 151")]

    def test_unique_rarities_skip_missing(self, scored) -> None:
        cards = [
            scored(rarity="Rare"),
            scored(rarity="Common"),
            scored(rarity=None),
            scored(rarity="Rare"),
        ]

        assert extract_unique_rarities(cards) == ["Common", "Rare"]


class TestGetBestMatch:
    def test_returns_first(self, scored) -> None:
        cards = sort_by_accuracy([scored(10, card_id="a"), scored(90, card_id="b")])

        best = get_best_match(cards)

        assert best is not None
        assert best.id == "b"

    def test_empty(self) -> None:
        assert get_best_match([]) is None
