"""Per-source fixed-window request limiter.

Each source may issue at most ``limit`` requests per window. The counter
resets once the window has elapsed; requests over the limit are rejected
immediately instead of waiting, so the caller can move on to another source.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from clipharvest.domain.entities.errors import RateLimitedError

log = structlog.get_logger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowRateLimiter:
    """Track request counts per name inside fixed windows.

    Args:
        window_seconds: Length of one counting window.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def _current(self, name: str) -> _Window:
        now = self._clock()
        window = self._windows.get(name)
        if window is None or now - window.started_at >= self._window:
            window = _Window(started_at=now)
            self._windows[name] = window
        return window

    def try_acquire(self, name: str, limit: int) -> bool:
        """Consume one slot for *name*; ``False`` when the window is full."""
        window = self._current(name)
        if window.count >= limit:
            log.debug("rate_window_full", source=name, limit=limit, used=window.count)
            return False
        window.count += 1
        return True

    def acquire(self, name: str, limit: int) -> None:
        """Consume one slot for *name*.

        Raises:
            RateLimitedError: the current window is already full.
        """
        if not self.try_acquire(name, limit):
            raise RateLimitedError(f"{name}: {limit} requests per {self._window:g}s used")

    def remaining(self, name: str, limit: int) -> int:
        return max(0, limit - self._current(name).count)

    def used(self, name: str) -> int:
        return self._current(name).count

    def reset(self, name: str | None = None) -> None:
        """Forget counters for *name*, or for every source when omitted."""
        if name is None:
            self._windows.clear()
        else:
            self._windows.pop(name, None)
