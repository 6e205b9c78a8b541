"""Tests for per-resolution trace binding and stage timing."""

from __future__ import annotations

import pytest
import structlog
from structlog.testing import capture_logs

from clipharvest.infrastructure.telemetry import PipelineTrace


class TestPipelineTrace:
    def test_trace_id_bound_and_released(self) -> None:
        with PipelineTrace("abc123", raw_len=5) as trace:
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["trace_id"] == "abc123"
            assert ctx["raw_len"] == 5
            assert trace.trace_id == "abc123"
        assert "trace_id" not in structlog.contextvars.get_contextvars()

    def test_generated_trace_id(self) -> None:
        assert len(PipelineTrace().trace_id) == 12

    def test_stage_logs_and_times(self) -> None:
        trace = PipelineTrace("t1")
        with capture_logs() as logs:
            with trace.stage("extract_id") as extra:
                extra["content_id"] = "7123456789012345678"
        finished = [e for e in logs if e["event"] == "stage_finished"]
        assert finished[0]["stage"] == "extract_id"
        assert finished[0]["content_id"] == "7123456789012345678"
        assert "extract_id" in trace.timings_ms

    def test_stage_failure_logged_and_reraised(self) -> None:
        trace = PipelineTrace("t1")
        with capture_logs() as logs:
            with pytest.raises(ValueError):
                with trace.stage("normalize"):
                    raise ValueError("bad input")
        failed = [e for e in logs if e["event"] == "stage_failed"]
        assert failed[0]["error_type"] == "ValueError"
        assert failed[0]["error"] == "bad input"
        assert "normalize" in trace.timings_ms
