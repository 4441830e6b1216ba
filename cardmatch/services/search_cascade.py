"""
Search cascade - try catalog queries from most to least specific.

Strategies, in priority order:
1. card number + set id     (most specific)
2. card number + name
3. card number only         (broad)
4. name only                (fallback; always terminal)

INVARIANT: The result comes from exactly one strategy, the first one that
returns at least one card. Results are never merged across strategies.

Every strategy's cards are scored and sorted the same way, so which
strategy answered is visible to callers only through `strategy` and
`attempts`.

Catalog failures become structured results; this module never raises for
them. Cancellation always propagates.
"""

import logging
from dataclasses import dataclass

from cardmatch.matching.normalize import normalize_card_number
from cardmatch.matching.scoring import score_and_sort
from cardmatch.models.card_number import NormalizedCardNumber
from cardmatch.models.failure import FailureKind, KnownError
from cardmatch.models.query import QueryFields
from cardmatch.models.search import (
    CatalogQuery,
    ScoredCardSearchResult,
    SearchAttempt,
    SearchStrategy,
)
from cardmatch.services.catalog_client import CatalogSearch

logger = logging.getLogger(__name__)

NO_SEARCH_FIELDS_ERROR = "No search criteria: a Pokemon name or card number is required"


@dataclass(frozen=True, slots=True)
class PlannedStrategy:
    strategy: SearchStrategy
    params: CatalogQuery
    # Terminal strategies end the cascade even with zero results
    terminal: bool = False


def plan_strategies(
    query: QueryFields, normalized_number: NormalizedCardNumber
) -> list[PlannedStrategy]:
    """
    Build the applicable strategies for a query, in priority order.

    Strategies whose required fields are empty are left out. The number
    sent to the catalog is the normalized number without its total.
    """
    name = query.pokemon_name.strip()
    number = normalized_number.number
    set_id = (query.set_id or "").strip()

    plan: list[PlannedStrategy] = []

    if number and set_id:
        plan.append(
            PlannedStrategy(
                SearchStrategy.NUMBER_AND_SET,
                CatalogQuery(number=number, set_id=set_id),
            )
        )
    if number and name:
        plan.append(
            PlannedStrategy(
                SearchStrategy.NUMBER_AND_NAME,
                CatalogQuery(name=name, number=number),
            )
        )
    if number:
        plan.append(PlannedStrategy(SearchStrategy.NUMBER_ONLY, CatalogQuery(number=number)))
    if name:
        plan.append(
            PlannedStrategy(SearchStrategy.NAME_ONLY, CatalogQuery(name=name), terminal=True)
        )

    return plan


class SearchCascade:
    """
    Runs the strategy cascade against a catalog collaborator.

    Usage:
        cascade = SearchCascade(catalog)
        result = await cascade.search(QueryFields(pokemon_name="Pikachu", card_number="025/165"))
    """

    def __init__(self, catalog: CatalogSearch, *, current_year: int | None = None):
        self.catalog = catalog
        self.current_year = current_year

    async def search(self, query: QueryFields) -> ScoredCardSearchResult:
        """
        Search the catalog for a card matching the query.

        Returns:
            ScoredCardSearchResult; success=False with error_kind set on
            validation or catalog failure
        """
        normalized_number = normalize_card_number(query.card_number)
        plan = plan_strategies(query, normalized_number)

        if not plan:
            logger.info("CASCADE_REJECTED", extra={"reason": "no_search_fields"})
            return ScoredCardSearchResult.failure(
                FailureKind.MISSING_REQUIRED, NO_SEARCH_FIELDS_ERROR
            )

        attempts: list[SearchAttempt] = []

        for planned in plan:
            try:
                page = await self.catalog.search(planned.params)
            except KnownError as e:
                logger.warning(
                    "CASCADE_CATALOG_FAILURE",
                    extra={
                        "strategy": planned.strategy.value,
                        "kind": e.kind.value,
                        "detail": e.detail,
                    },
                )
                return ScoredCardSearchResult.failure(
                    e.kind, e.detail or e.message, attempts=tuple(attempts)
                )

            attempt = SearchAttempt(
                strategy=planned.strategy,
                fields_used=planned.params.fields_used(),
                result_count=len(page.cards),
            )
            attempts.append(attempt)

            if not attempt.found and not planned.terminal:
                logger.debug("CASCADE_STRATEGY_EMPTY", extra={"strategy": planned.strategy.value})
                continue

            scored = score_and_sort(page.cards, query, current_year=self.current_year)
            logger.info(
                "CASCADE_RESOLVED",
                extra={
                    "strategy": planned.strategy.value,
                    "results": len(scored),
                    "attempts": len(attempts),
                },
            )
            return ScoredCardSearchResult(
                success=True,
                scored_cards=tuple(scored),
                total_count=page.total_count,
                strategy=planned.strategy,
                attempts=tuple(attempts),
            )

        # Number-only query and every number strategy came back empty
        return ScoredCardSearchResult(success=True, attempts=tuple(attempts))
