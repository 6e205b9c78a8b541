"""Tests for the per-source circuit breaker."""

from __future__ import annotations

from clipharvest.infrastructure.circuit_breaker import SourceCircuitBreaker
from tests.conftest import FakeClock


def _breaker(clock: FakeClock, threshold: int = 5) -> SourceCircuitBreaker:
    return SourceCircuitBreaker(failure_threshold=threshold, cooldown_seconds=300.0, clock=clock)


class TestClosedState:
    def test_unknown_source_allowed(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        assert cb.allow("web") is True
        assert cb.state("web") == "closed"

    def test_stays_closed_below_threshold(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        for _ in range(4):
            cb.record_failure("web")
        assert cb.is_closed("web")
        assert cb.failure_count("web") == 4

    def test_success_decrements_not_below_zero(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        cb.record_failure("web")
        cb.record_failure("web")
        cb.record_success("web")
        assert cb.failure_count("web") == 1
        cb.record_success("web")
        cb.record_success("web")
        assert cb.failure_count("web") == 0


class TestOpenState:
    def test_opens_at_threshold(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        for _ in range(5):
            cb.record_failure("web")
        assert cb.state("web") == "open"
        assert cb.allow("web") is False

    def test_other_sources_unaffected(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        for _ in range(5):
            cb.record_failure("web")
        assert cb.allow("mobile") is True

    def test_blocked_during_cooldown(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        for _ in range(5):
            cb.record_failure("web")
        clock.advance(299.0)
        assert cb.allow("web") is False


class TestRecovery:
    def test_cooldown_elapsed_resets(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        for _ in range(5):
            cb.record_failure("web")
        clock.advance(300.0)
        assert cb.allow("web") is True
        assert cb.state("web") == "closed"
        assert cb.failure_count("web") == 0

    def test_reopens_after_new_failures(self, clock: FakeClock) -> None:
        cb = _breaker(clock)
        for _ in range(5):
            cb.record_failure("web")
        clock.advance(301.0)
        cb.allow("web")
        for _ in range(5):
            cb.record_failure("web")
        assert cb.allow("web") is False

    def test_manual_reset(self, clock: FakeClock) -> None:
        cb = _breaker(clock, threshold=1)
        cb.record_failure("web")
        cb.reset("web")
        assert cb.allow("web") is True
