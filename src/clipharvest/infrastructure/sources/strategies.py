"""Built-in source strategies: one fetch function per upstream shape.

Each strategy is a plain coroutine function paired with a
:class:`SourceConfig`; the registry decides when to call it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

import structlog

from clipharvest.domain.entities.errors import (
    EmptyResultError,
    IdExtractionFailedError,
    NetworkError,
    ParseError,
)
from clipharvest.domain.entities.source import SourceConfig, SourceSpec
from clipharvest.domain.entities.video import VideoRecord
from clipharvest.domain.ports.video_source import FetchContext
from clipharvest.infrastructure.common.headers import HeaderPreset, get_headers
from clipharvest.infrastructure.config.schema import SourceOverride
from clipharvest.infrastructure.links.video_id import extract_video_id
from clipharvest.infrastructure.parsers.html_parser import parse_html_page
from clipharvest.infrastructure.parsers.json_parser import (
    parse_any,
    parse_aweme_detail,
    parse_item_list,
)
from clipharvest.infrastructure.sources.endpoints import (
    AWEME_DETAIL_URL,
    BACKUP_URL,
    OFFICIAL_V2_URL,
    WEB_PARAMS,
    build_api_url,
)

log = structlog.get_logger(__name__)

WEB_V2_PARAMS: dict[str, str] = {
    **WEB_PARAMS,
    "channel": "channel_pc_web",
    "update_version_code": "170400",
    "pc_client_type": "1",
}


def _require_id(ctx: FetchContext) -> str:
    if not ctx.content_id:
        raise IdExtractionFailedError("source needs a content id")
    return ctx.content_id


async def _get_json(ctx: FetchContext, url: str, preset: HeaderPreset) -> Any:
    response = await ctx.proxy.request(url, headers=get_headers(preset), timeout=ctx.timeout)
    if not response.ok:
        raise NetworkError(
            f"HTTP {response.status_code} from {url}", status_code=response.status_code
        )
    if not response.text.strip():
        raise EmptyResultError("empty response body")
    try:
        return response.json()
    except ValueError as exc:
        raise ParseError(f"response is not JSON: {exc}") from exc


async def fetch_official_v2(ctx: FetchContext) -> VideoRecord:
    content_id = _require_id(ctx)
    url = build_api_url(OFFICIAL_V2_URL, id_param="item_ids", content_id=content_id)
    return parse_item_list(await _get_json(ctx, url, "mobile"), fallback_id=content_id)


async def fetch_mobile(ctx: FetchContext) -> VideoRecord:
    content_id = _require_id(ctx)
    url = build_api_url(AWEME_DETAIL_URL, id_param="aweme_id", content_id=content_id)
    return parse_aweme_detail(await _get_json(ctx, url, "mobile"), fallback_id=content_id)


async def fetch_web(ctx: FetchContext) -> VideoRecord:
    content_id = _require_id(ctx)
    url = build_api_url(
        AWEME_DETAIL_URL, id_param="aweme_id", content_id=content_id, params=WEB_PARAMS
    )
    return parse_aweme_detail(await _get_json(ctx, url, "desktop"), fallback_id=content_id)


async def fetch_backup(ctx: FetchContext) -> VideoRecord:
    content_id = _require_id(ctx)
    url = build_api_url(BACKUP_URL, id_param="item_ids", content_id=content_id)
    return parse_any(await _get_json(ctx, url, "stealth"), fallback_id=content_id)


async def fetch_web_v2(ctx: FetchContext) -> VideoRecord:
    content_id = _require_id(ctx)
    url = build_api_url(
        AWEME_DETAIL_URL, id_param="aweme_id", content_id=content_id, params=WEB_V2_PARAMS
    )
    return parse_aweme_detail(await _get_json(ctx, url, "desktop"), fallback_id=content_id)


async def fetch_html_page(ctx: FetchContext) -> VideoRecord:
    """Scrape the share page itself; works without a content id."""
    response = await ctx.proxy.request(
        ctx.page_url, headers=get_headers("stealth"), timeout=ctx.timeout
    )
    if not response.ok:
        raise NetworkError(
            f"HTTP {response.status_code} from {ctx.page_url}",
            status_code=response.status_code,
        )
    content_id = ctx.content_id or extract_video_id(response.url)
    return parse_html_page(response.text, content_id)


DEFAULT_SOURCES: tuple[SourceSpec, ...] = (
    SourceSpec(
        SourceConfig(
            name="official_v2",
            label="Item info API v2",
            priority=1,
            rate_limit=10,
            timeout=15.0,
            initial_success_rate=0.85,
        ),
        fetch_official_v2,
    ),
    SourceSpec(
        SourceConfig(
            name="mobile",
            label="Aweme detail API (mobile)",
            priority=2,
            rate_limit=15,
            timeout=12.0,
            initial_success_rate=0.75,
        ),
        fetch_mobile,
    ),
    SourceSpec(
        SourceConfig(
            name="web",
            label="Aweme detail API (web)",
            priority=3,
            rate_limit=20,
            timeout=10.0,
            initial_success_rate=0.65,
        ),
        fetch_web,
    ),
    SourceSpec(
        SourceConfig(
            name="backup",
            label="Item info API (www)",
            priority=4,
            rate_limit=5,
            timeout=20.0,
            initial_success_rate=0.45,
        ),
        fetch_backup,
    ),
    SourceSpec(
        SourceConfig(
            name="web_v2",
            label="Aweme detail API (pc client)",
            priority=5,
            rate_limit=10,
            timeout=15.0,
            initial_success_rate=0.40,
        ),
        fetch_web_v2,
    ),
    SourceSpec(
        SourceConfig(
            name="html_page",
            label="Share page scrape",
            priority=6,
            rate_limit=10,
            timeout=20.0,
            initial_success_rate=0.40,
            requires_id=False,
        ),
        fetch_html_page,
    ),
)


def build_sources(
    overrides: Mapping[str, SourceOverride] | None = None,
    *,
    sources: tuple[SourceSpec, ...] = DEFAULT_SOURCES,
) -> list[SourceSpec]:
    """Apply per-source config overrides to the built-in source list."""
    overrides = overrides or {}
    known = {spec.name for spec in sources}
    for unknown in sorted(set(overrides) - known):
        log.warning("source_override_unknown", source=unknown)

    result: list[SourceSpec] = []
    for spec in sources:
        override = overrides.get(spec.name)
        if override is None:
            result.append(spec)
            continue
        changes: dict[str, Any] = {}
        if override.enabled is not None:
            changes["enabled"] = override.enabled
        if override.priority is not None:
            changes["priority"] = override.priority
        if override.rate_limit is not None:
            changes["rate_limit"] = override.rate_limit
        if override.timeout_seconds is not None:
            changes["timeout"] = override.timeout_seconds
        result.append(replace(spec, config=replace(spec.config, **changes)))
    return result
