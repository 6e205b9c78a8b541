"""Link resolution endpoints."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from clipharvest.infrastructure.links.url_normalizer import (
    ensure_scheme,
    find_link,
    host_of,
    is_allowed_domain,
    is_short_link,
)
from clipharvest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["parse"])


class ParseRequest(BaseModel):
    url: str = Field(default="", description="Share link or text containing one.")


@router.post("/parse")
async def parse(body: ParseRequest, request: Request) -> JSONResponse:
    """Resolve a share link into a video record.

    Resolution failures are reported in the body (``success: false``) with
    status 200; only a missing ``url`` is a 400.
    """
    state = cast(AppState, request.app.state)
    if not body.url.strip():
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "InvalidInput: url is required"},
        )

    outcome = await state.resolve_uc.execute(body.url)
    return JSONResponse(content=outcome.to_dict())


@router.get("/expand-url")
async def expand_url(
    request: Request,
    url: str = Query(default="", description="Short link to expand."),
) -> JSONResponse:
    """Follow the redirects of a short link and return the final URL."""
    state = cast(AppState, request.app.state)
    link = find_link(url) if url.strip() else None
    if link is None:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "NoLinkFound: url is required"},
        )

    original = ensure_scheme(link)
    if not (is_short_link(original) or is_allowed_domain(original)):
        log.warning("expand_url_rejected", url=original, host=host_of(original))
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": f"UnsupportedDomain: {host_of(original) or original}",
            },
        )

    expanded = await state.normalizer.expand(original)
    return JSONResponse(
        content={
            "success": True,
            "originalUrl": original,
            "expandedUrl": expanded,
        }
    )
