"""Resolve raw user input into a video record, never raising to the caller."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from clipharvest.domain.entities.errors import (
    PREFLIGHT_ERRORS,
    AllSourcesExhaustedError,
    ClipHarvestError,
)
from clipharvest.domain.entities.video import ResolutionFailure, VideoRecord
from clipharvest.domain.ports.pipeline import (
    LinkNormalizerPort,
    MediaVerifierPort,
    SourceRegistryPort,
    VideoIdExtractorPort,
)
from clipharvest.infrastructure.metrics import MetricsCollector
from clipharvest.infrastructure.telemetry import PipelineTrace

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolutionOutcome:
    record: VideoRecord | None = None
    failure: ResolutionFailure | None = None
    attempts: int = 0

    @property
    def success(self) -> bool:
        return self.record is not None

    def to_dict(self) -> dict[str, Any]:
        if self.record is not None:
            return self.record.to_dict()
        assert self.failure is not None
        return self.failure.to_dict()


class ResolveVideoUseCase:
    """Runs the whole pipeline for one input.

    Flow:
        1. Normalize the input (pre-flight errors end the run immediately)
        2. Extract the content id (a miss limits the pass to ID-free sources)
        3. Registry pass; repeated up to ``max_attempts`` times, waiting
           ``attempt * delay_seconds`` between passes
        4. Optionally check that the media URL answers (never fails the run)
        5. Map the outcome to a record or a structured failure
    """

    def __init__(
        self,
        normalizer: LinkNormalizerPort,
        extract_id: VideoIdExtractorPort,
        registry: SourceRegistryPort,
        *,
        max_attempts: int = 5,
        delay_seconds: float = 1.0,
        metrics: MetricsCollector | None = None,
        verify_media: MediaVerifierPort | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._normalizer = normalizer
        self._extract_id = extract_id
        self._registry = registry
        self._max_attempts = max(1, max_attempts)
        self._delay = delay_seconds
        self._metrics = metrics
        self._verify_media = verify_media
        self._sleep = sleep

    async def execute(self, raw: object) -> ResolutionOutcome:
        started = time.perf_counter_ns()
        with PipelineTrace() as trace:
            outcome = await self._run(raw, trace)
        if self._metrics is not None:
            error_type = None
            if outcome.failure is not None:
                error_type = outcome.failure.error.split(":", 1)[0]
            self._metrics.record_resolution(
                time.perf_counter_ns() - started,
                success=outcome.success,
                error_type=error_type,
            )
        return outcome

    async def _run(self, raw: object, trace: PipelineTrace) -> ResolutionOutcome:
        try:
            with trace.stage("normalize") as info:
                link = await self._normalizer.normalize(raw)
                info["url"] = link.normalized_url
        except PREFLIGHT_ERRORS as exc:
            return _failure(exc)

        with trace.stage("extract_id") as info:
            content_id = self._extract_id(link.normalized_url)
            info["content_id"] = content_id
        if content_id is None:
            log.warning(
                "content_id_missing",
                url=link.normalized_url,
                fallback="id_free_sources",
            )

        last_error: AllSourcesExhaustedError | None = None
        attempted: dict[str, None] = {}  # Ordered union across passes
        for attempt in range(1, self._max_attempts + 1):
            try:
                with trace.stage("sources", attempt=attempt):
                    record = await self._registry.resolve(content_id, link.normalized_url)
            except AllSourcesExhaustedError as exc:
                last_error = exc
                attempted.update(dict.fromkeys(exc.attempted_sources))
                if attempt < self._max_attempts:
                    delay = attempt * self._delay
                    log.info(
                        "resolution_retry",
                        attempt=attempt,
                        max_attempts=self._max_attempts,
                        delay_s=delay,
                        attempted=list(exc.attempted_sources),
                    )
                    if self._metrics is not None:
                        self._metrics.record_retry()
                    await self._sleep(delay)
                continue
            if self._verify_media is not None and record.media_url:
                with trace.stage("verify_media") as info:
                    verified = await self._verify_media(record.media_url)
                    info["reachable"] = verified
                record = replace(record, media_verified=verified)
            log.info(
                "resolution_success",
                content_id=record.content_id,
                source=record.source,
                attempt=attempt,
                timings_ms=trace.timings_ms,
            )
            return ResolutionOutcome(record=record, attempts=attempt)

        assert last_error is not None
        if content_id is None:
            message = (
                "IdExtractionFailed: no content id in "
                f"{link.normalized_url} and page scraping failed"
            )
        else:
            message = f"AllSourcesExhausted: {last_error}"
        log.warning(
            "resolution_failed",
            content_id=content_id,
            attempts=self._max_attempts,
            attempted=list(attempted),
        )
        return ResolutionOutcome(
            failure=ResolutionFailure(
                error=message,
                attempted_sources=tuple(attempted),
                video_id=content_id,
            ),
            attempts=self._max_attempts,
        )


_ERROR_NAMES: dict[str, str] = {
    "InvalidInputError": "InvalidInput",
    "NoLinkFoundError": "NoLinkFound",
    "UnsupportedDomainError": "UnsupportedDomain",
}


def _failure(exc: ClipHarvestError) -> ResolutionOutcome:
    name = _ERROR_NAMES.get(type(exc).__name__, type(exc).__name__)
    log.info("resolution_rejected", error_type=name, error=str(exc))
    return ResolutionOutcome(failure=ResolutionFailure(error=f"{name}: {exc}"))
