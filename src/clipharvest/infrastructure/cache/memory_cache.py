"""In-memory TTL cache with insertion-order (FIFO) eviction."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import Any

import structlog

from clipharvest.infrastructure.logging.redaction import hash_key

log = structlog.get_logger(__name__)


class CacheEntry:
    """Stored value plus the time it was written."""

    __slots__ = ("key", "data", "stored_at")

    def __init__(self, key: str, data: Any, stored_at: float) -> None:
        self.key = key
        self.data = data
        self.stored_at = stored_at


class MemoryCache:
    """Bounded TTL cache.

    Expiry is checked lazily on every read and by a periodic sweep task.
    When full, the oldest *inserted* entry is dropped (FIFO, not LRU).

    Args:
        ttl_seconds: Entry lifetime.
        max_entries: Capacity.
        cleanup_interval_seconds: Sweep period for :meth:`start_cleanup`.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 300.0,
        max_entries: int = 100,
        cleanup_interval_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._cleanup_interval = cleanup_interval_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._sweeper: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self._ttl

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            # Only drop the entry we inspected; a concurrent set() may have replaced it.
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        # Re-inserting moves the key to the back of the eviction order.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key, data, self._clock())
        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            log.debug("cache_evicted", cache_digest=hash_key(oldest))

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def evict_expired(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        removed = 0
        for key, entry in list(self._entries.items()):
            if self._is_expired(entry, now) and self._entries.get(key) is entry:
                del self._entries[key]
                removed += 1
        if removed:
            log.debug("cache_swept", removed=removed, size=len(self._entries))
        return removed

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start_cleanup(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.evict_expired()

    async def aclose(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
