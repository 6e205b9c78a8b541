"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.datastructures import State

from clipharvest.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from clipharvest.application.use_cases.resolve_video import ResolveVideoUseCase
    from clipharvest.infrastructure.links.url_normalizer import UrlNormalizer
    from clipharvest.infrastructure.metrics import MetricsCollector
    from clipharvest.infrastructure.proxy.request_proxy import RequestProxy
    from clipharvest.infrastructure.sources.registry import SourceRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    request_proxy: RequestProxy
    metrics: MetricsCollector

    # Pipeline
    normalizer: UrlNormalizer
    source_registry: SourceRegistry
    resolve_uc: ResolveVideoUseCase

    # Set once lifespan startup completed
    ready: bool
