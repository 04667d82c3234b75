"""In-memory memoization cache for stream lookups.

Two stores with distinct eviction policies back three memoized lookups:

- ``TimeBoundedStore``: entries expire strictly by age from insertion,
  regardless of access. Holds validated direct URLs (``stream:`` keys),
  which go stale quickly.
- ``CapacityBoundedStore``: least-recently-used eviction once over capacity,
  no time expiry. Holds id resolutions (``resolve:``) and manifest lookups
  (``video:``), which are stable and expensive to repeat.

Both stores map a namespaced key to an ``asyncio.Task``. The task is stored
before it is awaited, so every concurrent caller for the same key shares a
single upstream call. All store mutations are synchronous, so they are atomic
with respect to the event loop and no locks are needed.

Failure policy: a task that resolves to ``None`` (the lookup found nothing)
is a regular value and stays cached until expiry or eviction. A task that
raises is dropped from its store once it completes, so the next call retries.
"""

from __future__ import annotations

import asyncio
import math
import time
from functools import partial
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog
from cachetools import LRUCache, TTLCache

from livetube.models.candidate import ClearOutcome

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, MutableMapping

    from livetube.protocols import ResolverProtocol, ValidatorProtocol

log = structlog.get_logger()

V = TypeVar("V")

STREAM_NAMESPACE = "stream"
RESOLVE_NAMESPACE = "resolve"
VIDEO_NAMESPACE = "video"


class TimeBoundedStore(TTLCache):
    """Entries expire ``ttl_seconds`` after insertion. Size is unbounded."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__(maxsize=math.inf, ttl=ttl_seconds, timer=clock)


class CapacityBoundedStore(LRUCache):
    """Evicts the least-recently-used entry once ``max_entries`` is exceeded."""

    def __init__(self, max_entries: int) -> None:
        super().__init__(maxsize=max_entries)


class Memoizer(Generic[V]):
    """Memoize an async ``key -> value`` function into a shared store.

    With ``store=None`` the memoizer is a pass-through (caching disabled).
    """

    def __init__(
        self,
        fn: Callable[[str], Awaitable[V]],
        store: MutableMapping[str, asyncio.Task[V]] | None,
        namespace: str,
    ) -> None:
        self._fn = fn
        self._store = store
        self._namespace = namespace

    def key_for(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def __call__(self, key: str) -> V:
        if self._store is None:
            return await self._fn(key)

        cache_key = self.key_for(key)
        task = self._store.get(cache_key)
        if task is None:
            log.debug("memo_miss", key=cache_key)
            task = asyncio.create_task(self._fn(key))
            # Stored before the first await: concurrent callers find this task.
            self._store[cache_key] = task
            task.add_done_callback(partial(self._drop_if_failed, cache_key))
        else:
            log.debug("memo_hit", key=cache_key)

        # Shielded so a caller that goes away leaves the shared task running.
        return await asyncio.shield(task)

    def _drop_if_failed(self, cache_key: str, task: asyncio.Task[V]) -> None:
        if not task.cancelled() and task.exception() is None:
            return
        assert self._store is not None
        if self._store.get(cache_key) is task:
            del self._store[cache_key]
            log.debug("memo_dropped_failed", key=cache_key)


class StreamCache:
    """Process-scoped memoization layer shared by every request.

    Constructed once at startup and held in ``AppState``. Exposes the three
    memoized lookups the orchestrator dispatches to, plus an administrative
    ``clear``.
    """

    def __init__(
        self,
        validator: ValidatorProtocol,
        resolver: ResolverProtocol,
        *,
        ttl_seconds: float,
        max_entries: int,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_store: TimeBoundedStore | None = None
        self._lru_store: CapacityBoundedStore | None = None
        if enabled:
            self._ttl_store = TimeBoundedStore(ttl_seconds, clock)
            self._lru_store = CapacityBoundedStore(max_entries)

        self.validate_stream: Memoizer[str | None] = Memoizer(
            validator.validate, self._ttl_store, STREAM_NAMESPACE
        )
        self.resolve_id: Memoizer[str | None] = Memoizer(
            resolver.resolve_id, self._lru_store, RESOLVE_NAMESPACE
        )
        self.fetch_manifest: Memoizer[str | None] = Memoizer(
            resolver.fetch_manifest, self._lru_store, VIDEO_NAMESPACE
        )

    def _stores(self) -> list[MutableMapping[str, Any]]:
        return [store for store in (self._ttl_store, self._lru_store) if store is not None]

    @property
    def size(self) -> int:
        """Number of live entries across both stores."""
        return sum(len(store) for store in self._stores())

    def clear(self) -> ClearOutcome:
        """Drop every entry from both stores in one synchronous step."""
        cleared = self.size
        for store in self._stores():
            store.clear()

        if cleared:
            log.info("cache_cleared", entries=cleared)
            return ClearOutcome.CLEARED
        log.info("cache_clear_skipped", reason="empty")
        return ClearOutcome.NOTHING_TO_CLEAR
