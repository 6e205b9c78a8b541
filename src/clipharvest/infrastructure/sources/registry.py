"""Scored, rate-limited, breaker-guarded dispatch over video sources."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from dataclasses import replace

import httpx
import structlog

from clipharvest.domain.entities.errors import (
    AllSourcesExhaustedError,
    NetworkError,
    ParseError,
    RateLimitedError,
)
from clipharvest.domain.entities.source import SourceSpec, SourceState
from clipharvest.domain.entities.video import VideoRecord
from clipharvest.domain.ports.request_proxy import RequestProxyPort
from clipharvest.domain.ports.video_source import FetchContext
from clipharvest.infrastructure.circuit_breaker import SourceCircuitBreaker
from clipharvest.infrastructure.common.rate_limiter import FixedWindowRateLimiter
from clipharvest.infrastructure.metrics import MetricsCollector

log = structlog.get_logger(__name__)

_RESET_SUCCESS_RATE = 0.5


def composite_score(
    priority: float,
    success_rate: float,
    failure_count: int,
    *,
    success_weight: float = 10.0,
    failure_weight: float = 2.0,
) -> float:
    """Lower is better. The weights are tuning knobs, not invariants."""
    return priority + (1.0 - success_rate) * success_weight + failure_count * failure_weight


class SourceRegistry:
    """Owns the source list and all per-source runtime state.

    Sources are tried one at a time in composite-score order; the first
    record wins. Rate-limited sources are skipped without penalty, failing
    sources feed the breaker and decay their success rate.

    Args:
        sources: Source specs (config + fetch function).
        proxy: Gateway handed to every fetch function.
        rate_limiter: Per-source fixed-window limiter.
        breaker: Per-source circuit breaker.
        clock: Monotonic time source shared with limiter/breaker in tests.
    """

    def __init__(
        self,
        sources: Iterable[SourceSpec],
        proxy: RequestProxyPort,
        *,
        rate_limiter: FixedWindowRateLimiter | None = None,
        breaker: SourceCircuitBreaker | None = None,
        metrics: MetricsCollector | None = None,
        success_weight: float = 10.0,
        failure_weight: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._proxy = proxy
        self._clock = clock
        self._limiter = rate_limiter or FixedWindowRateLimiter(clock=clock)
        self._breaker = breaker or SourceCircuitBreaker(clock=clock)
        self._metrics = metrics
        self._success_weight = success_weight
        self._failure_weight = failure_weight
        self._sources: dict[str, SourceSpec] = {}
        self._states: dict[str, SourceState] = {}
        self._lock = asyncio.Lock()
        for spec in sources:
            self.add_source(spec)

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def add_source(self, spec: SourceSpec) -> None:
        """Register (or replace) a source; its statistics start fresh."""
        self._sources[spec.name] = spec
        self._states[spec.name] = SourceState(
            success_rate=spec.config.initial_success_rate
        )
        self._breaker.reset(spec.name)
        self._limiter.reset(spec.name)
        log.debug("source_registered", source=spec.name, priority=spec.config.priority)

    def toggle(self, name: str, enabled: bool) -> bool:
        """Enable/disable *name*; ``False`` when the source is unknown."""
        spec = self._sources.get(name)
        if spec is None:
            return False
        self._sources[name] = replace(spec, config=replace(spec.config, enabled=enabled))
        if enabled:
            self._breaker.reset(name)
        log.info("source_toggled", source=name, enabled=enabled)
        return True

    def reset_stats(self) -> None:
        for name in self._sources:
            self._states[name] = SourceState(success_rate=_RESET_SUCCESS_RATE)
            self._breaker.reset(name)
        self._limiter.reset()
        log.info("source_stats_reset", sources=len(self._sources))

    @property
    def names(self) -> list[str]:
        return list(self._sources)

    def state_of(self, name: str) -> SourceState:
        return self._states[name]

    def failure_count(self, name: str) -> int:
        return self._breaker.failure_count(name)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def score(self, name: str) -> float:
        spec = self._sources[name]
        return composite_score(
            spec.config.priority,
            self._states[name].success_rate,
            self._breaker.failure_count(name),
            success_weight=self._success_weight,
            failure_weight=self._failure_weight,
        )

    def candidates(self, content_id: str | None = None) -> list[SourceSpec]:
        """Selectable sources for this request, best score first."""
        selectable = [
            spec
            for spec in self._sources.values()
            if spec.config.enabled
            and (content_id or not spec.config.requires_id)
            and self._breaker.allow(spec.name)
        ]
        return sorted(selectable, key=lambda s: (self.score(s.name), s.config.priority))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, content_id: str | None, full_url: str) -> VideoRecord:
        """Try sources in order until one yields a record.

        Raises:
            AllSourcesExhaustedError: every candidate failed or was skipped.
        """
        async with self._lock:
            ordered = self.candidates(content_id)

        attempted: list[str] = []
        skipped: list[str] = []
        for spec in ordered:
            name = spec.name
            async with self._lock:
                if not self._breaker.allow(name):
                    continue
                try:
                    self._limiter.acquire(name, spec.config.rate_limit)
                except RateLimitedError as exc:
                    skipped.append(name)
                    log.info("source_rate_limited", source=name, reason=str(exc))
                    if self._metrics is not None:
                        self._metrics.record_source_skip(name)
                    continue
                self._states[name].last_used_at = self._clock()

            attempted.append(name)
            record = await self._attempt(spec, content_id, full_url)
            if record is not None:
                return record

        log.warning(
            "sources_exhausted",
            content_id=content_id,
            attempted=attempted,
            skipped=skipped,
        )
        raise AllSourcesExhaustedError(
            "all sources failed" if attempted else "no source available",
            attempted_sources=attempted,
            video_id=content_id,
        )

    async def _attempt(
        self,
        spec: SourceSpec,
        content_id: str | None,
        full_url: str,
    ) -> VideoRecord | None:
        name = spec.name
        ctx = FetchContext(
            content_id=content_id,
            page_url=full_url,
            proxy=self._proxy,
            timeout=spec.config.timeout,
        )
        started = time.perf_counter_ns()
        try:
            async with asyncio.timeout(spec.config.timeout):
                record = await spec.fetch(ctx)
        except TimeoutError:
            log.warning("source_timeout", source=name, timeout=spec.config.timeout)
        except (NetworkError, httpx.HTTPError) as exc:
            log.warning("source_network_error", source=name, error=str(exc))
        except ParseError as exc:
            log.warning(
                "source_parse_error",
                source=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        except Exception:
            log.exception("source_unexpected_error", source=name)
        else:
            duration_ns = time.perf_counter_ns() - started
            await self._record_success(name, duration_ns)
            log.info(
                "source_resolve_success",
                source=name,
                content_id=record.content_id,
                has_media=bool(record.media_url),
                duration_ms=round(duration_ns / 1_000_000, 1),
            )
            return replace(record, source=name)

        await self._record_failure(name, time.perf_counter_ns() - started)
        return None

    async def _record_success(self, name: str, duration_ns: int) -> None:
        async with self._lock:
            state = self._states[name]
            state.attempts += 1
            state.successes += 1
            state.success_rate = state.success_rate * 0.9 + 0.1
            elapsed_ms = duration_ns / 1_000_000
            state.average_response_ms = (
                elapsed_ms
                if state.successes == 1
                else state.average_response_ms * 0.8 + elapsed_ms * 0.2
            )
            self._breaker.record_success(name)
            if self._metrics is not None:
                self._metrics.record_source_attempt(name, duration_ns, success=True)

    async def _record_failure(self, name: str, duration_ns: int) -> None:
        async with self._lock:
            state = self._states[name]
            state.attempts += 1
            state.failures += 1
            state.success_rate *= 0.9
            self._breaker.record_failure(name)
            if self._metrics is not None:
                self._metrics.record_source_attempt(name, duration_ns, success=False)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def status(self) -> list[dict[str, object]]:
        """Per-source snapshot, best score first."""
        now = self._clock()
        rows: list[dict[str, object]] = []
        for name, spec in self._sources.items():
            state = self._states[name]
            rows.append(
                {
                    "name": name,
                    "label": spec.config.label,
                    "enabled": spec.config.enabled,
                    "breaker": self._breaker.state(name),
                    "priority": spec.config.priority,
                    "score": round(self.score(name), 3),
                    "success_rate": round(state.success_rate * 100, 1),
                    "failure_count": self._breaker.failure_count(name),
                    "rate_limit": spec.config.rate_limit,
                    "window_used": self._limiter.used(name),
                    "window_remaining": self._limiter.remaining(
                        name, spec.config.rate_limit
                    ),
                    "timeout_seconds": spec.config.timeout,
                    "requires_id": spec.config.requires_id,
                    "attempts": state.attempts,
                    "average_response_ms": round(state.average_response_ms, 1),
                    "seconds_since_used": (
                        round(now - state.last_used_at, 1)
                        if state.last_used_at is not None
                        else None
                    ),
                }
            )
        return sorted(rows, key=lambda r: r["score"])  # type: ignore[arg-type,return-value]
