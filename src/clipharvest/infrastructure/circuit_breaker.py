"""Per-source circuit breaker.

A source accumulates a failure count: failures add one, successes take one
away (never below zero). When the count reaches ``failure_threshold`` the
breaker opens and the source is skipped. Once ``cooldown_seconds`` have
elapsed the source becomes selectable again with its count reset to zero.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

import structlog

log = structlog.get_logger(__name__)


class _State(Enum):
    CLOSED = "closed"
    OPEN = "open"


class SourceCircuitBreaker:
    """Track per-source failure counts and manage open/closed state.

    Not thread-safe; callers serialize access (the registry holds a lock).
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = failure_threshold
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._failures: dict[str, int] = {}
        self._states: dict[str, _State] = {}
        self._opened_at: dict[str, float] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def allow(self, name: str) -> bool:
        """Return ``True`` if *name* may be selected.

        An OPEN breaker whose cooldown has elapsed closes here, with the
        failure count reset.
        """
        if self._states.get(name, _State.CLOSED) == _State.CLOSED:
            return True

        elapsed = self._clock() - self._opened_at.get(name, 0.0)
        if elapsed >= self._cooldown:
            self.reset(name)
            log.info("source_breaker_recovered", source=name, elapsed_s=round(elapsed, 1))
            return True
        return False

    def record_success(self, name: str) -> None:
        count = self._failures.get(name, 0)
        if count > 0:
            self._failures[name] = count - 1

    def record_failure(self, name: str) -> None:
        count = self._failures.get(name, 0) + 1
        self._failures[name] = count

        if count >= self._threshold and self.is_closed(name):
            self._states[name] = _State.OPEN
            self._opened_at[name] = self._clock()
            log.warning(
                "source_breaker_opened",
                source=name,
                failures=count,
                cooldown_s=self._cooldown,
            )

    def failure_count(self, name: str) -> int:
        return self._failures.get(name, 0)

    def is_closed(self, name: str) -> bool:
        return self._states.get(name, _State.CLOSED) == _State.CLOSED

    def state(self, name: str) -> str:
        """Return the current state as a string (for diagnostics)."""
        return self._states.get(name, _State.CLOSED).value

    def reset(self, name: str) -> None:
        """Manually reset *name* back to CLOSED with no failures."""
        self._failures.pop(name, None)
        self._states.pop(name, None)
        self._opened_at.pop(name, None)
