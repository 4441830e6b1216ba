"""
Query lifecycle controller - the request/response state machine behind
the scan result screen.

States:
    IDLE -> SEARCHING -> SUCCEEDED | FAILED

Any new query input moves the controller back to SEARCHING (or IDLE when
the input is empty) and cancels the in-flight request.

INVARIANTS:
- A search captures a token when it starts. A completion whose token is
  no longer current is discarded, so a superseded request can never
  overwrite the state of a newer query.
- Cancellation is never retried and never counted as a failure.
- Only network failures are retried: up to max_attempts in total, with
  exponential backoff capped at max_delay.
- A successful search with exactly one candidate auto-selects it, once
  per query, unless the user already selected or deselected a card.

All state is owned here and mutated only by the controller's own handlers
running on the event loop; there is no locking.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from cardmatch.config import settings
from cardmatch.matching.results import (
    SetOption,
    extract_unique_rarities,
    extract_unique_sets,
    filter_by_rarity,
    filter_by_set,
    paginate,
)
from cardmatch.models.failure import RETRYABLE_KINDS, FailureKind
from cardmatch.models.handoff import CardCondition, InputMethod, SelectedCardHandoff
from cardmatch.models.query import QueryFields
from cardmatch.models.scored_card import ScoredCard
from cardmatch.models.search import ScoredCardSearchResult, SearchStrategy
from cardmatch.services.pricing import get_market_price
from cardmatch.services.query_cache import CacheKey, InMemoryQueryCache, QueryCache

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SearchMode(str, Enum):
    """
    AUTOMATIC: a new identification result searches immediately.
    MANUAL: the user has edited the fields; searches wait for an explicit trigger.
    """

    AUTOMATIC = "automatic"
    MANUAL = "manual"


class CardSearcher(Protocol):
    async def search(self, query: QueryFields) -> ScoredCardSearchResult: ...


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff: base_delay * 2**retry_index seconds, capped at max_delay."""

    max_attempts: int = settings.retry_max_attempts
    base_delay: float = settings.retry_base_delay
    max_delay: float = settings.retry_max_delay

    def delay_for(self, retry_index: int) -> float:
        """Delay before the retry_index-th retry (0-based): 1s, 2s, 4s, ..."""
        return float(min(self.base_delay * (2**retry_index), self.max_delay))

    def should_retry(self, result: ScoredCardSearchResult, attempts_made: int) -> bool:
        if result.success or result.error_kind not in RETRYABLE_KINDS:
            return False
        return attempts_made < self.max_attempts


@dataclass(frozen=True)
class ControllerSnapshot:
    """Everything the presentation layer needs to render the result screen."""

    state: SearchState
    mode: SearchMode
    query: QueryFields | None
    items: list[ScoredCard]
    page: int
    total_pages: int
    has_more: bool
    remaining_count: int
    filtered_count: int
    result_count: int
    total_count: int
    set_options: list[SetOption]
    rarity_options: list[str]
    set_filter: str
    rarity_filter: str
    selected: ScoredCard | None
    error: str | None
    error_kind: FailureKind | None
    is_stale: bool
    strategy: SearchStrategy | None
    attempts_made: int

    @property
    def is_loading(self) -> bool:
        return self.state is SearchState.SEARCHING

    @property
    def no_matches(self) -> bool:
        """Search succeeded but matched nothing. Not an error."""
        return self.state is SearchState.SUCCEEDED and self.result_count == 0


class QueryLifecycleController:
    """
    Owns the search request/response cycle for one scan session.

    Usage:
        controller = QueryLifecycleController(SearchCascade(catalog))
        task = controller.load_identification(fields)
        if task is not None:
            await task
        view = controller.snapshot()

    Methods that start a search return the in-flight asyncio.Task, or None
    when nothing needs fetching (empty input or a fresh cache hit). They
    must be called from a running event loop.
    """

    def __init__(
        self,
        cascade: CardSearcher,
        *,
        cache: QueryCache | None = None,
        retry_policy: RetryPolicy | None = None,
        page_size: int | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self._cascade = cascade
        self._cache: QueryCache = cache if cache is not None else InMemoryQueryCache()
        self._retry = retry_policy or RetryPolicy()
        self._page_size = page_size or settings.result_page_size
        self._sleep = sleep

        self._state = SearchState.IDLE
        self._mode = SearchMode.AUTOMATIC
        self._query: QueryFields | None = None
        self._last_searched_key: CacheKey | None = None

        self._token = 0
        self._task: asyncio.Task[None] | None = None

        self._result: ScoredCardSearchResult | None = None
        self._is_stale = False
        self._attempts_made = 0

        self._selected: ScoredCard | None = None
        self._auto_selected = False
        self._manual_selection = False

        self._set_filter = ""
        self._rarity_filter = ""
        self._page = 1

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def mode(self) -> SearchMode:
        return self._mode

    @property
    def query(self) -> QueryFields | None:
        return self._query

    @property
    def selected(self) -> ScoredCard | None:
        return self._selected

    @property
    def result(self) -> ScoredCardSearchResult | None:
        return self._result

    @property
    def in_flight(self) -> asyncio.Task[None] | None:
        if self._task is not None and self._task.done():
            return None
        return self._task

    # -------------------------------------------------------------------------
    # Input events
    # -------------------------------------------------------------------------

    def load_identification(self, fields: QueryFields) -> asyncio.Task[None] | None:
        """
        Handle a fresh identification result (e.g. a new photo scan).

        Resets selection, filters, pagination and the auto-select flags,
        returns to automatic mode and searches immediately.
        """
        logger.info(
            "IDENTIFICATION_LOADED",
            extra={"has_number": bool(fields.card_number), "has_set": bool(fields.set_id)},
        )
        self._cancel_in_flight()
        self._query = fields
        self._mode = SearchMode.AUTOMATIC
        self._last_searched_key = None
        self._result = None
        self._is_stale = False
        self._reset_selection()
        self._reset_view()
        return self._start_search()

    def edit_fields(
        self,
        *,
        pokemon_name: str | None = None,
        card_number: str | None = None,
        set_id: str | None = None,
    ) -> None:
        """
        Handle a manual edit of the query fields.

        Switches to manual mode: the edit cancels any in-flight request but
        does not search; call trigger_search() to run the edited query.
        """
        base = self._query or QueryFields()
        changes: dict[str, str] = {}
        if pokemon_name is not None:
            changes["pokemon_name"] = pokemon_name
        if card_number is not None:
            changes["card_number"] = card_number
        if set_id is not None:
            changes["set_id"] = set_id

        updated = dataclasses.replace(base, **changes)
        if updated == self._query:
            return

        self._query = updated

        if self._mode is SearchMode.AUTOMATIC:
            logger.info("MANUAL_MODE_ENTERED")
            self._mode = SearchMode.MANUAL

        self._cancel_in_flight()

        if not updated.has_search_fields():
            self._result = None
            self._is_stale = False
            self._state = SearchState.IDLE
        elif self._state is SearchState.SEARCHING:
            self._state = SearchState.IDLE

    def trigger_search(self) -> asyncio.Task[None] | None:
        """
        Explicitly search with the current fields (the "Find Card" action).

        A different field tuple than the last search counts as a new query
        and resets the selection; repeating the same query keeps it.
        """
        if self._query is not None and self._query.cache_key() != self._last_searched_key:
            self._reset_selection()
        self._page = 1
        return self._start_search()

    def cancel(self) -> None:
        """Abandon the in-flight request, if any."""
        self._cancel_in_flight()
        if self._state is SearchState.SEARCHING:
            self._state = SearchState.IDLE

    # -------------------------------------------------------------------------
    # Selection, filters, pagination
    # -------------------------------------------------------------------------

    def select(self, card: ScoredCard) -> None:
        self._selected = card
        self._manual_selection = True

    def deselect(self) -> None:
        """Clear the selection. Auto-select will not re-fire for this query."""
        self._selected = None
        self._manual_selection = True

    def set_set_filter(self, set_id: str | None) -> None:
        self._set_filter = set_id or ""
        self._page = 1

    def set_rarity_filter(self, rarity: str | None) -> None:
        self._rarity_filter = rarity or ""
        self._page = 1

    def go_to_page(self, page: int) -> None:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        self._page = page

    def next_page(self) -> bool:
        """Advance one page. Returns False when already on the last page."""
        if not paginate(self._filtered_cards(), self._page, self._page_size).has_more:
            return False
        self._page += 1
        return True

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def snapshot(self) -> ControllerSnapshot:
        cards = self._all_cards()
        filtered = self._filtered_cards()
        page = paginate(filtered, self._page, self._page_size)
        result = self._result

        return ControllerSnapshot(
            state=self._state,
            mode=self._mode,
            query=self._query,
            items=page.items,
            page=page.page,
            total_pages=page.total_pages,
            has_more=page.has_more,
            remaining_count=max(0, len(filtered) - self._page * self._page_size),
            filtered_count=len(filtered),
            result_count=len(cards),
            total_count=result.total_count if result else 0,
            set_options=extract_unique_sets(cards),
            rarity_options=extract_unique_rarities(cards),
            set_filter=self._set_filter,
            rarity_filter=self._rarity_filter,
            selected=self._selected,
            error=result.error if result and not result.success else None,
            error_kind=result.error_kind if result and not result.success else None,
            is_stale=self._is_stale,
            strategy=result.strategy if result else None,
            attempts_made=self._attempts_made,
        )

    def handoff(
        self,
        *,
        condition: CardCondition = CardCondition.NEAR_MINT,
        quantity: int = 1,
        notes: str | None = None,
    ) -> SelectedCardHandoff:
        """
        Build the payload for the collection store from the selected card.

        Raises:
            ValueError: If no card is selected
        """
        if self._selected is None or self._query is None:
            raise ValueError("No card selected")

        card = self._selected.card
        return SelectedCardHandoff(
            tcg_card_id=card.id,
            pokemon_name=card.name,
            card_number=card.number,
            set_id=card.set.id,
            set_name=card.set.name,
            language=self._query.language,
            rarity=card.rarity,
            image_url=card.images.large or card.images.small,
            market_price=get_market_price(card),
            accuracy_score=self._selected.accuracy_score,
            condition=condition,
            quantity=quantity,
            notes=notes,
            input_method=(
                InputMethod.VISION if self._mode is SearchMode.AUTOMATIC else InputMethod.MANUAL
            ),
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _all_cards(self) -> list[ScoredCard]:
        if self._result is None or not self._result.success:
            return []
        return list(self._result.scored_cards)

    def _filtered_cards(self) -> list[ScoredCard]:
        cards = filter_by_set(self._all_cards(), self._set_filter)
        return filter_by_rarity(cards, self._rarity_filter)

    def _reset_selection(self) -> None:
        self._selected = None
        self._auto_selected = False
        self._manual_selection = False

    def _reset_view(self) -> None:
        self._set_filter = ""
        self._rarity_filter = ""
        self._page = 1

    def _cancel_in_flight(self) -> None:
        """Abort the running request and invalidate its token."""
        if self._task is not None and not self._task.done():
            logger.debug("SEARCH_CANCELLED", extra={"token": self._token})
            self._task.cancel()
        self._task = None
        self._token += 1

    def _start_search(self) -> asyncio.Task[None] | None:
        self._cancel_in_flight()

        query = self._query
        if query is None or not query.has_search_fields():
            self._result = None
            self._is_stale = False
            self._state = SearchState.IDLE
            return None

        token = self._token
        key = query.cache_key()
        self._last_searched_key = key

        cached = self._cache.get(key)
        if cached is not None and not cached.stale:
            logger.debug("SEARCH_CACHE_HIT", extra={"token": token})
            self._complete(token, query, cached.result, attempts=0, from_cache=True)
            return None

        if cached is not None:
            # Show the stale result while refetching
            self._result = cached.result
            self._is_stale = True

        self._state = SearchState.SEARCHING
        self._task = asyncio.get_running_loop().create_task(self._run(token, query))
        return self._task

    async def _run(self, token: int, query: QueryFields) -> None:
        try:
            result, attempts = await self._fetch_with_retry(token, query)
        except asyncio.CancelledError:
            logger.debug("SEARCH_ABORTED", extra={"token": token})
            raise
        except Exception as e:
            logger.exception("SEARCH_CRASHED", extra={"token": token})
            result = ScoredCardSearchResult.failure(FailureKind.UNKNOWN, type(e).__name__)
            attempts = 1

        self._complete(token, query, result, attempts=attempts)

    async def _fetch_with_retry(
        self, token: int, query: QueryFields
    ) -> tuple[ScoredCardSearchResult, int]:
        attempts = 0
        while True:
            attempts += 1
            result = await self._cascade.search(query)

            if token != self._token or not self._retry.should_retry(result, attempts):
                return result, attempts

            delay = self._retry.delay_for(attempts - 1)
            logger.warning(
                "SEARCH_RETRY_SCHEDULED",
                extra={"token": token, "attempt": attempts, "delay": delay, "error": result.error},
            )
            await self._sleep(delay)

    def _complete(
        self,
        token: int,
        query: QueryFields,
        result: ScoredCardSearchResult,
        *,
        attempts: int,
        from_cache: bool = False,
    ) -> None:
        if token != self._token:
            logger.info(
                "STALE_RESULT_DISCARDED",
                extra={"token": token, "current_token": self._token},
            )
            return

        self._task = None
        self._result = result
        self._is_stale = False
        self._attempts_made = attempts

        if not result.success:
            logger.warning(
                "SEARCH_FAILED",
                extra={"kind": result.error_kind, "error": result.error, "attempts": attempts},
            )
            self._state = SearchState.FAILED
            return

        # Re-storing a cache hit would reset its age
        if not from_cache:
            self._cache.put(query.cache_key(), result)
        self._state = SearchState.SUCCEEDED
        self._maybe_auto_select(result)

    def _maybe_auto_select(self, result: ScoredCardSearchResult) -> None:
        if len(result.scored_cards) != 1:
            return
        if self._auto_selected or self._manual_selection:
            return

        self._selected = result.scored_cards[0]
        self._auto_selected = True
        logger.info("AUTO_SELECTED", extra={"card_id": self._selected.id})
