"""Composition root: pipeline wiring and the FastAPI lifespan."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import cast

import httpx
import structlog
from fastapi import FastAPI

from clipharvest.application.use_cases.resolve_video import ResolveVideoUseCase
from clipharvest.infrastructure.cache.memory_cache import MemoryCache
from clipharvest.infrastructure.circuit_breaker import SourceCircuitBreaker
from clipharvest.infrastructure.common.rate_limiter import FixedWindowRateLimiter
from clipharvest.infrastructure.common.retry_transport import build_http_client
from clipharvest.infrastructure.config.schema import AppConfig
from clipharvest.infrastructure.links.media_check import MediaUrlVerifier
from clipharvest.infrastructure.links.url_normalizer import UrlNormalizer
from clipharvest.infrastructure.links.video_id import extract_video_id
from clipharvest.infrastructure.metrics import MetricsCollector
from clipharvest.infrastructure.proxy.request_proxy import RequestProxy
from clipharvest.infrastructure.sources.registry import SourceRegistry
from clipharvest.infrastructure.sources.strategies import build_sources
from clipharvest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@dataclass
class Pipeline:
    """Every long-lived object of one resolution pipeline."""

    proxy: RequestProxy
    normalizer: UrlNormalizer
    registry: SourceRegistry
    metrics: MetricsCollector
    resolve_uc: ResolveVideoUseCase

    async def aclose(self) -> None:
        await self.proxy.aclose()


def build_pipeline(
    config: AppConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Pipeline:
    """Wire proxy -> normalizer/registry -> use case from *config*.

    Order matters:
        1. Metrics (recorded into by registry and use case)
        2. HTTP client + cache + request proxy
        3. Normalizer and source registry (both talk through the proxy)
        4. Resolve use case
    """
    metrics = MetricsCollector()

    client = build_http_client(
        timeout=config.http_timeout_seconds,
        max_redirects=config.http_max_redirects,
        transport=transport,
    )
    cache = MemoryCache(
        ttl_seconds=config.cache.ttl_seconds,
        max_entries=config.cache.max_entries,
        cleanup_interval_seconds=config.cache.cleanup_interval_seconds,
    )
    proxy = RequestProxy(
        client,
        cache=cache,
        request_delay=config.proxy.request_delay_seconds,
        max_queue_length=config.proxy.max_queue_length,
        default_timeout=config.http_timeout_seconds,
    )

    normalizer = UrlNormalizer(proxy, timeout=config.http_timeout_seconds)
    registry = SourceRegistry(
        build_sources(config.sources),
        proxy,
        rate_limiter=FixedWindowRateLimiter(config.registry.rate_limit_window_seconds),
        breaker=SourceCircuitBreaker(
            failure_threshold=config.registry.failure_threshold,
            cooldown_seconds=config.registry.cooldown_seconds,
        ),
        metrics=metrics,
        success_weight=config.registry.success_weight,
        failure_weight=config.registry.failure_weight,
    )

    resolve_uc = ResolveVideoUseCase(
        normalizer,
        extract_video_id,
        registry,
        max_attempts=config.retry.max_attempts,
        delay_seconds=config.retry.delay_seconds,
        metrics=metrics,
        verify_media=(
            MediaUrlVerifier(proxy, timeout=config.media.timeout_seconds)
            if config.media.verify
            else None
        ),
    )
    log.info(
        "pipeline_built",
        sources=registry.names,
        cache_ttl_s=config.cache.ttl_seconds,
        retry_max_attempts=config.retry.max_attempts,
        media_verify=config.media.verify,
    )
    return Pipeline(
        proxy=proxy,
        normalizer=normalizer,
        registry=registry,
        metrics=metrics,
        resolve_uc=resolve_uc,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: initialize and clean up all resources (DI composition root)."""
    state = cast(AppState, app.state)
    config = state.config

    pipeline = build_pipeline(config)
    pipeline.proxy.start()

    state.request_proxy = pipeline.proxy
    state.metrics = pipeline.metrics
    state.normalizer = pipeline.normalizer
    state.source_registry = pipeline.registry
    state.resolve_uc = pipeline.resolve_uc
    state.ready = True
    log.info("app_startup_complete", environment=config.environment)

    try:
        yield
    finally:
        state.ready = False
        await pipeline.aclose()
        log.info("request_proxy_closed")
        log.info("app_shutdown_complete")
