"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from clipharvest import __version__
from clipharvest.infrastructure.config import AppConfig
from clipharvest.interfaces.app_state import AppState
from clipharvest.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, proxy, registry) are created in lifespan().
    """
    app = FastAPI(
        title="clipharvest",
        description="Short-video link resolver",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.ready = False

    from clipharvest.interfaces.api.parse import router as parse_router
    from clipharvest.interfaces.api.stats import router as stats_router

    app.include_router(parse_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe: 200 as long as the process is running."""
        return {"status": "ok"}

    @app.get("/api/v1/readyz")
    async def readyz() -> Response:
        """Readiness probe: 200 after startup complete, 503 otherwise."""
        if getattr(app.state, "ready", False):
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
