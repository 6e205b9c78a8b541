"""Per-resolution stage tracing on top of structlog.

A :class:`PipelineTrace` binds a ``trace_id`` into structlog's context vars
for the duration of one resolution, so every log line emitted by the
normalizer, registry or proxy can be correlated. Stages are timed with
:meth:`PipelineTrace.stage`.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class PipelineTrace:
    def __init__(self, trace_id: str | None = None, **fields: Any) -> None:
        self.trace_id = trace_id or uuid.uuid4().hex[:12]
        self._fields = fields
        self._tokens: dict[str, Any] = {}
        self.timings_ms: dict[str, float] = {}

    def __enter__(self) -> PipelineTrace:
        self._tokens = structlog.contextvars.bind_contextvars(
            trace_id=self.trace_id, **self._fields
        )
        return self

    def __exit__(self, *exc_info: object) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)

    @contextmanager
    def stage(self, name: str, **fields: Any) -> Iterator[dict[str, Any]]:
        """Log start/finish of a stage; the yielded dict is merged into the finish event."""
        extra: dict[str, Any] = {}
        log.debug("stage_started", stage=name, **fields)
        started = time.perf_counter()
        try:
            yield extra
        except Exception as exc:
            elapsed = round((time.perf_counter() - started) * 1000, 1)
            self.timings_ms[name] = elapsed
            log.info(
                "stage_failed",
                stage=name,
                duration_ms=elapsed,
                error=str(exc),
                error_type=type(exc).__name__,
                **fields,
            )
            raise
        elapsed = round((time.perf_counter() - started) * 1000, 1)
        self.timings_ms[name] = elapsed
        log.info("stage_finished", stage=name, duration_ms=elapsed, **fields, **extra)
