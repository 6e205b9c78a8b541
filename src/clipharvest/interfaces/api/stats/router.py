"""Diagnostics: metrics, proxy health and source management."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from clipharvest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stats"])


class ToggleRequest(BaseModel):
    enabled: bool


@router.get("/stats")
async def stats(request: Request) -> JSONResponse:
    """Return in-memory runtime metrics, proxy counters and source status."""
    state = cast(AppState, request.app.state)

    data: dict[str, Any] = {}
    m = getattr(state, "metrics", None)
    if m is not None:
        data.update(m.snapshot())

    proxy = getattr(state, "request_proxy", None)
    if proxy is not None:
        data["proxy"] = proxy.stats()

    registry = getattr(state, "source_registry", None)
    if registry is not None:
        data["source_status"] = registry.status()

    return JSONResponse(content=data)


@router.post("/stats/reset")
async def reset_stats(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    state.request_proxy.reset_stats()
    state.source_registry.reset_stats()
    log.info("stats_reset_requested")
    return JSONResponse(content={"status": "reset"})


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Proxy health check; 503 when the proxy reports issues."""
    state = cast(AppState, request.app.state)
    report = state.request_proxy.health_check()
    status_code = 200 if report["status"] == "healthy" else 503
    return JSONResponse(content=report, status_code=status_code)


@router.get("/sources")
async def sources(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    rows = state.source_registry.status()
    return JSONResponse(content={"sources": rows, "count": len(rows)})


@router.post("/sources/{name}/toggle")
async def toggle_source(name: str, body: ToggleRequest, request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    if not state.source_registry.toggle(name, body.enabled):
        return JSONResponse(status_code=404, content={"error": "unknown_source", "name": name})
    return JSONResponse(content={"name": name, "enabled": body.enabled})


@router.delete("/cache")
async def clear_cache(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    state.request_proxy.clear_cache()
    return JSONResponse(content={"status": "cleared"})
