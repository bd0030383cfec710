"""In-memory TTL cache for property search results and reference data."""

import asyncio
import logging
import time
from enum import IntEnum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

_MISSING = object()


class CacheTTL(IntEnum):
    """Named TTL tiers, in seconds."""

    CONFIG = 300
    STATS = 120
    LISTINGS = 30
    DETAIL = 60
    REFERENCE_DATA = 600
    FEATURED = 120
    SEARCH = 15


class TTLCache:
    """Bounded key/value store with per-entry expiry.

    Eviction at capacity drops the oldest-inserted entry, not the least
    recently used one. ``get_or_set`` does not coalesce concurrent misses
    unless the cache is built with ``coalesce=True``; then concurrent callers
    for one key await a single in-flight fetch.
    """

    def __init__(
        self,
        max_entries: int = 500,
        cleanup_interval_seconds: float = 60.0,
        coalesce: bool = False,
    ):
        self._store: dict[str, tuple[float, Any]] = {}
        self._max = max_entries
        self._cleanup_interval = cleanup_interval_seconds
        self._coalesce = coalesce
        self._inflight: dict[str, asyncio.Task] = {}
        self._fetches: dict[asyncio.Task, str] = {}
        self._stale: set[asyncio.Task] = set()
        self._sweeper: asyncio.Task | None = None

    def _lookup(self, key: str) -> Any:
        entry = self._store.get(key)
        if entry is None:
            return _MISSING
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._store[key]
            return _MISSING
        return value

    def get(self, key: str) -> Any | None:
        value = self._lookup(key)
        return None if value is _MISSING else value

    def set(self, key: str, value: Any, ttl_seconds: float = 60) -> None:
        if len(self._store) >= self._max and key not in self._store:
            self._evict_oldest()
        self._store[key] = (time.monotonic() + ttl_seconds, value)

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl_seconds: float = 60,
    ) -> Any:
        """Return the cached value for ``key`` or populate it from ``fetcher``.

        The fetch runs in its own task, so a caller that is cancelled while
        waiting does not abort it; the result still lands in the cache.
        Exceptions from ``fetcher`` propagate and nothing is stored.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            logger.debug("Cache hit: %s", key)
            return value

        task = self._inflight.get(key) if self._coalesce else None
        if task is None:
            logger.debug("Cache miss: %s", key)
            task = asyncio.ensure_future(self._populate(key, fetcher, ttl_seconds))
            self._track(key, task)
        return await asyncio.shield(task)

    async def _populate(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
    ) -> Any:
        value = await fetcher()
        # Invalidated in flight: the value may predate the write.
        if asyncio.current_task() not in self._stale:
            self.set(key, value, ttl_seconds)
        else:
            logger.debug("Discarding fetch for %s invalidated in flight", key)
        return value

    def _track(self, key: str, task: asyncio.Task) -> None:
        self._fetches[task] = key
        if self._coalesce:
            self._inflight[key] = task

        def _done(finished: asyncio.Task) -> None:
            self._fetches.pop(finished, None)
            self._stale.discard(finished)
            if self._inflight.get(key) is finished:
                del self._inflight[key]
            if not finished.cancelled() and finished.exception() is not None:
                logger.warning("Cache fetch failed for %s: %s", key, finished.exception())

        task.add_done_callback(_done)

    def invalidate(self, key_or_prefix: str) -> int:
        """Drop ``key_or_prefix`` if it is a stored key, else every key with that prefix."""
        if key_or_prefix in self._store:
            return self.invalidate_key(key_or_prefix)
        return self.invalidate_prefix(key_or_prefix)

    def _mark_stale(self, covers: Callable[[str], bool]) -> None:
        self._stale.update(task for task, key in self._fetches.items() if covers(key))

    def invalidate_key(self, key: str) -> int:
        self._mark_stale(lambda k: k == key)
        self._inflight.pop(key, None)
        if self._store.pop(key, _MISSING) is _MISSING:
            return 0
        logger.debug("Invalidated cache key %s", key)
        return 1

    def invalidate_prefix(self, prefix: str) -> int:
        self._mark_stale(lambda k: k.startswith(prefix))
        for key in [k for k in self._inflight if k.startswith(prefix)]:
            del self._inflight[key]
        doomed = [k for k in self._store if k.startswith(prefix)]
        for key in doomed:
            del self._store[key]
        logger.debug("Invalidated %d cache entries with prefix %r", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> None:
        self._stale.update(self._fetches)
        self._inflight.clear()
        self._store.clear()

    def stats(self) -> dict[str, int]:
        return {"size": len(self._store), "max_size": self._max}

    def purge_expired(self) -> int:
        """Delete every expired entry, whether or not anyone reads it again."""
        now = time.monotonic()
        expired = [k for k, (expires_at, _) in self._store.items() if expires_at <= now]
        for key in expired:
            del self._store[key]
        return len(expired)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            removed = self.purge_expired()
            if removed:
                logger.debug("Swept %d expired cache entries", removed)

    async def close(self) -> None:
        """Stop the sweep task and drop every entry."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self.clear()

    def _evict_oldest(self) -> None:
        if not self._store:
            return
        del self._store[next(iter(self._store))]

    def __len__(self) -> int:
        return len(self._store)

    async def __aenter__(self) -> "TTLCache":
        self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
