"""Zero-impact in-memory pipeline metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop: no locks, no I/O, no external dependencies.

``time.perf_counter_ns()`` is used for timing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class SourceStats:
    """Accumulated statistics for a single source."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    skips: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        avg_ms = (
            round(self.total_duration_ns / self.attempts / 1_000_000, 1)
            if self.attempts
            else 0.0
        )
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "skips": self.skips,
            "avg_duration_ms": avg_ms,
        }


@dataclass
class ResolutionStats:
    """Outcomes of whole resolutions (including the outer retry loop)."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    retries: int = 0
    total_duration_ns: int = 0
    errors: dict[str, int] = field(default_factory=dict)

    def snapshot(self) -> dict[str, object]:
        avg_ms = (
            round(self.total_duration_ns / self.total / 1_000_000, 1)
            if self.total
            else 0.0
        )
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "retries": self.retries,
            "avg_duration_ms": avg_ms,
            "errors": dict(sorted(self.errors.items())),
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector."""

    _sources: dict[str, SourceStats] = field(default_factory=dict)
    _resolutions: ResolutionStats = field(default_factory=ResolutionStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    def _source(self, name: str) -> SourceStats:
        stats = self._sources.get(name)
        if stats is None:
            stats = SourceStats()
            self._sources[name] = stats
        return stats

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_source_attempt(self, name: str, duration_ns: int, *, success: bool) -> None:
        stats = self._source(name)
        stats.attempts += 1
        stats.total_duration_ns += duration_ns
        if success:
            stats.successes += 1
        else:
            stats.failures += 1

    def record_source_skip(self, name: str) -> None:
        self._source(name).skips += 1

    def record_retry(self) -> None:
        self._resolutions.retries += 1

    def record_resolution(
        self,
        duration_ns: int,
        *,
        success: bool,
        error_type: str | None = None,
    ) -> None:
        r = self._resolutions
        r.total += 1
        r.total_duration_ns += duration_ns
        if success:
            r.succeeded += 1
        else:
            r.failed += 1
            if error_type:
                r.errors[error_type] = r.errors.get(error_type, 0) + 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_s = round((time.perf_counter_ns() - self._start_ns) / 1_000_000_000, 1)
        return {
            "uptime_seconds": uptime_s,
            "resolutions": self._resolutions.snapshot(),
            "sources": {
                name: stats.snapshot() for name, stats in sorted(self._sources.items())
            },
        }
