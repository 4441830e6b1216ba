"""
Search result cache keyed by the exact query-field tuple.

Purely a performance aid: re-querying is always safe, so a cache miss,
a stale entry or a NullQueryCache never changes what the user ends up
seeing, only how quickly.

Windows:
- stale_after: entry is still shown but a refetch is triggered
- evict_after: entry is dropped on access
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from cardmatch.config import settings
from cardmatch.models.search import ScoredCardSearchResult

CacheKey = tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    result: ScoredCardSearchResult
    fetched_at: float
    stale: bool = False


class QueryCache(Protocol):
    def get(self, key: CacheKey) -> CacheEntry | None: ...

    def put(self, key: CacheKey, result: ScoredCardSearchResult) -> None: ...

    def clear(self) -> None: ...


class NullQueryCache:
    """Cache that never stores anything."""

    def get(self, key: CacheKey) -> CacheEntry | None:
        return None

    def put(self, key: CacheKey, result: ScoredCardSearchResult) -> None:
        return None

    def clear(self) -> None:
        return None


@dataclass
class InMemoryQueryCache:
    """
    Dict-backed cache with staleness and eviction windows (seconds).

    Only successful results are stored.
    """

    stale_after: float = settings.cache_stale_seconds
    evict_after: float = settings.cache_evict_seconds
    clock: Callable[[], float] = time.monotonic
    _entries: dict[CacheKey, CacheEntry] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.evict_after < self.stale_after:
            raise ValueError("evict_after must be >= stale_after")

    def get(self, key: CacheKey) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = self.clock() - entry.fetched_at
        if age >= self.evict_after:
            del self._entries[key]
            return None

        return CacheEntry(
            result=entry.result,
            fetched_at=entry.fetched_at,
            stale=age >= self.stale_after,
        )

    def put(self, key: CacheKey, result: ScoredCardSearchResult) -> None:
        if not result.success:
            return
        self._entries[key] = CacheEntry(result=result, fetched_at=self.clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
