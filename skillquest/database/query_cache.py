"""
Client-side query cache.

One QueryCache instance is owned by the application root (no module-level
singleton) and shared by every hook. Entries are keyed by a tuple whose first
element is the operation's path template, followed by every parameter that
changes the result.

Guarantees:
- at most one in-flight fetch per key; concurrent readers join it
- only successful completions replace cached data, always as a whole value
- a fetch that was abandoned (last observer left, cancel(), clear()) never
  writes its late result: completions are checked against the entry's
  generation. Callers still awaiting it get a QueryAbandonedError result
  unless the entry already holds data from a successful write.
- invalidation marks entries stale; the next fetch refetches. A fetch that
  was already in flight when the entry was invalidated completes but leaves
  the entry stale.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Tuple

from skillquest.integrations.errors import ContractError, QueryAbandonedError

logger = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]
Fetcher = Callable[[], Awaitable[Any]]


class QueryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResult:
    key: QueryKey
    status: QueryStatus
    data: Any = None
    error: Optional[ContractError] = None
    is_stale: bool = False
    updated_at: Optional[float] = None

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.data


@dataclass
class CacheEntry:
    key: QueryKey
    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: Optional[ContractError] = None
    stale: bool = False
    updated_at: Optional[float] = None
    generation: int = 0
    fetch_count: int = 0
    invalidated_at_fetch: int = -1
    observers: int = 0
    task: Optional["asyncio.Task[Any]"] = field(default=None, repr=False)

    @property
    def in_flight(self) -> bool:
        return self.task is not None and not self.task.done()


def key_matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == tuple(prefix)


class QueryCache:
    def __init__(self, stale_time_seconds: Optional[float] = None) -> None:
        self.stale_time_seconds = stale_time_seconds
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._network_calls = 0

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    async def fetch(self, key: QueryKey, fetcher: Fetcher, *, force: bool = False) -> QueryResult:
        """
        Resolve `key`, hitting the network only when needed.

        Contract errors are stored on the entry and returned in the result
        (check `result.error` or call `result.unwrap()`); they are not raised.
        """
        key = tuple(key)
        entry = self._entries.setdefault(key, CacheEntry(key=key))

        if entry.in_flight:
            logger.debug("Joining in-flight fetch for %s", key)
            return await self._await(entry, entry.task)

        if not force and entry.status is QueryStatus.SUCCESS and not self._is_stale(entry):
            return self._snapshot(entry)

        entry.fetch_count += 1
        entry.status = QueryStatus.LOADING if entry.data is None else entry.status
        task = asyncio.ensure_future(self._run(entry, entry.generation, entry.fetch_count, fetcher))
        entry.task = task
        self._network_calls += 1
        return await self._await(entry, task)

    async def _await(self, entry: CacheEntry, task: "asyncio.Task[Any]") -> QueryResult:
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            if entry.status is not QueryStatus.SUCCESS:
                # not stored on the entry; the next fetch starts clean
                return QueryResult(
                    key=entry.key,
                    status=QueryStatus.ERROR,
                    data=entry.data,
                    error=QueryAbandonedError(f"Fetch of {entry.key[0]} was abandoned"),
                    is_stale=True,
                    updated_at=entry.updated_at,
                )
        return self._snapshot(entry)

    async def _run(self, entry: CacheEntry, generation: int, fetch_no: int, fetcher: Fetcher) -> None:
        try:
            data = await fetcher()
        except ContractError as exc:
            if self._is_current(entry, generation):
                logger.warning("Query %s failed: %s", entry.key, exc)
                entry.status = QueryStatus.ERROR
                entry.error = exc
            return
        except BaseException:
            if self._is_current(entry, generation) and entry.status is QueryStatus.LOADING:
                entry.status = QueryStatus.IDLE
            raise
        if not self._is_current(entry, generation):
            logger.debug("Discarding result for abandoned fetch of %s", entry.key)
            return
        entry.data = data
        entry.error = None
        entry.status = QueryStatus.SUCCESS
        entry.updated_at = time.monotonic()
        entry.stale = entry.invalidated_at_fetch >= fetch_no

    def _is_current(self, entry: CacheEntry, generation: int) -> bool:
        return self._entries.get(entry.key) is entry and entry.generation == generation

    def _is_stale(self, entry: CacheEntry) -> bool:
        if entry.stale:
            return True
        if self.stale_time_seconds is None or entry.updated_at is None:
            return False
        return time.monotonic() - entry.updated_at > self.stale_time_seconds

    def _snapshot(self, entry: CacheEntry) -> QueryResult:
        return QueryResult(
            key=entry.key,
            status=entry.status,
            data=entry.data,
            error=entry.error,
            is_stale=self._is_stale(entry),
            updated_at=entry.updated_at,
        )

    def peek(self, key: QueryKey) -> QueryResult:
        entry = self._entries.get(tuple(key))
        if entry is None:
            return QueryResult(key=tuple(key), status=QueryStatus.IDLE)
        return self._snapshot(entry)

    def get_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(tuple(key))
        return entry.data if entry is not None else None

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def set_data(self, key: QueryKey, data: Any) -> None:
        """Replace an entry's value wholesale. In-flight fetches for the key are abandoned."""
        key = tuple(key)
        entry = self._entries.setdefault(key, CacheEntry(key=key))
        if entry.in_flight:
            self._abandon(entry)
        entry.data = data
        entry.error = None
        entry.status = QueryStatus.SUCCESS
        entry.stale = False
        entry.updated_at = time.monotonic()

    def invalidate(self, prefix: QueryKey) -> List[QueryKey]:
        """Mark every entry whose key starts with `prefix` stale; return the affected keys."""
        affected: List[QueryKey] = []
        for key, entry in self._entries.items():
            if key_matches(key, prefix):
                entry.stale = True
                entry.invalidated_at_fetch = entry.fetch_count
                affected.append(key)
        if affected:
            logger.debug("Invalidated %d cache entries for prefix %s", len(affected), prefix)
        return affected

    # ------------------------------------------------------------------ #
    # Observers & cancellation
    # ------------------------------------------------------------------ #
    def observe(self, key: QueryKey) -> None:
        key = tuple(key)
        entry = self._entries.setdefault(key, CacheEntry(key=key))
        entry.observers += 1

    def release(self, key: QueryKey) -> None:
        entry = self._entries.get(tuple(key))
        if entry is None or entry.observers == 0:
            return
        entry.observers -= 1
        if entry.observers == 0 and entry.in_flight:
            logger.debug("Last observer left %s; abandoning in-flight fetch", entry.key)
            self._abandon(entry)

    def cancel(self, key: QueryKey) -> bool:
        entry = self._entries.get(tuple(key))
        if entry is None or not entry.in_flight:
            return False
        self._abandon(entry)
        return True

    def _abandon(self, entry: CacheEntry) -> None:
        entry.generation += 1
        if entry.task is not None:
            entry.task.cancel()
        entry.task = None
        if entry.status is QueryStatus.LOADING:
            entry.status = QueryStatus.IDLE

    def remove(self, key: QueryKey) -> None:
        entry = self._entries.pop(tuple(key), None)
        if entry is not None and entry.in_flight:
            self._abandon(entry)

    def clear(self) -> None:
        for entry in self._entries.values():
            if entry.in_flight:
                self._abandon(entry)
        self._entries.clear()
        self._network_calls = 0

    dispose = clear

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, tuple) and key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "in_flight": sum(1 for e in self._entries.values() if e.in_flight),
            "stale": sum(1 for e in self._entries.values() if self._is_stale(e)),
            "network_calls": self._network_calls,
        }
