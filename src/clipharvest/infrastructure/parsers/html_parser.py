"""Regex based parsing of video share pages.

Pages embed their state as JSON assigned to well-known globals. Every known
global is tried as an independent extractor; a broken blob is logged and
skipped. When no blob yields an aweme item, the page text itself is mined
with field-level patterns.
"""

from __future__ import annotations

import html as html_lib
import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

import structlog

from clipharvest.domain.entities.errors import EmptyResultError, ParseError
from clipharvest.domain.entities.video import MusicInfo, VideoRecord, VideoStatistics
from clipharvest.infrastructure.parsers._helpers import (
    epoch_to_iso,
    safe_int,
    unescape_fragment,
)
from clipharvest.infrastructure.parsers.json_parser import format_item
from clipharvest.infrastructure.sources.endpoints import play_url_for

log = structlog.get_logger(__name__)

_MAX_SEARCH_DEPTH = 12


@dataclass(frozen=True)
class BlobExtractor:
    """One known embedded-state location in a page."""

    name: str
    pattern: re.Pattern[str]
    decode: Callable[[str], str] = lambda raw: raw


def _script_assignment(variable: str) -> re.Pattern[str]:
    return re.compile(
        rf"{variable}\s*=\s*(\{{.+?\}})\s*;?\s*</script>",
        re.DOTALL,
    )


BLOB_EXTRACTORS: tuple[BlobExtractor, ...] = (
    BlobExtractor("router_data", _script_assignment(r"window\._ROUTER_DATA")),
    BlobExtractor("ssr_hydrated", _script_assignment(r"window\._SSR_HYDRATED_DATA")),
    BlobExtractor("initial_state", _script_assignment(r"window\.__INITIAL_STATE__")),
    BlobExtractor(
        "render_data",
        re.compile(r'<script[^>]+id="RENDER_DATA"[^>]*>(.+?)</script>', re.DOTALL),
        decode=unquote,
    ),
    BlobExtractor(
        "sigi_state",
        re.compile(r'<script[^>]+id="SIGI_STATE"[^>]*>(.+?)</script>', re.DOTALL),
    ),
)

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_DESC_RES = (
    re.compile(r'data-desc="([^"]+)"', re.IGNORECASE),
    re.compile(r'name="description"[^>]*content="([^"]+)"', re.IGNORECASE),
    re.compile(r'description[^>]*content="([^"]+)"', re.IGNORECASE),
)
_AUTHOR_RES = (
    re.compile(r'data-author="([^"]+)"', re.IGNORECASE),
    re.compile(r'"nickname":"([^"]+)"'),
)
_AWEME_ID_RE = re.compile(r'"aweme_id":"?(\d{10,25})')
_CREATE_TIME_RE = re.compile(r'"create_time":(\d+)')
_STAT_FIELDS = (
    "digg_count",
    "comment_count",
    "share_count",
    "play_count",
    "collect_count",
    "forward_count",
)
_PLAY_URI_RE = re.compile(r'"play_addr":\{"uri":"([^"]+)"')
_PLAY_URL_LIST_RE = re.compile(r'"play_addr":\{[^}]*?"url_list":\["([^"]+)"')
_LOOSE_MEDIA_RES = (
    re.compile(r'"playAddr":"([^"]+)"'),
    re.compile(r'"videoUrl":"([^"]+)"'),
    re.compile(r'"src":"([^"]*\.mp4[^"]*)"'),
)
_VIDEO_ID_PARAM_RE = re.compile(r"[?&]video_id=([^&]+)")
_COVER_RE = re.compile(r'"cover":\{[^}]*?"url_list":\["([^"]+)"')
_MUSIC_TITLE_RE = re.compile(r'"music":\{[^}]*?"title":"([^"]+)"')
_MUSIC_AUTHOR_RE = re.compile(r'"music":\{[^}]*?"author":"([^"]+)"')
_MUSIC_URL_RE = re.compile(r'"play_url":\{[^}]*?"url_list":\["([^"]+)"')
_HASHTAG_RE = re.compile(r'"hashtag_name":"([^"]+)"')


def _first(patterns: tuple[re.Pattern[str], ...], text: str) -> str:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return html_lib.unescape(unescape_fragment(m.group(1))).strip()
    return ""


def load_blobs(page: str) -> list[tuple[str, Any]]:
    """Run every extractor; return the blobs that parsed, in priority order."""
    blobs: list[tuple[str, Any]] = []
    for extractor in BLOB_EXTRACTORS:
        m = extractor.pattern.search(page)
        if not m:
            continue
        try:
            blobs.append((extractor.name, json.loads(extractor.decode(m.group(1)))))
        except (ValueError, TypeError) as exc:
            log.debug("embedded_blob_invalid", blob=extractor.name, error=str(exc))
    return blobs


def find_aweme_item(data: Any, depth: int = 0) -> dict[str, Any] | None:
    """Depth-first search for the first aweme-shaped object."""
    if depth > _MAX_SEARCH_DEPTH:
        return None
    if isinstance(data, dict):
        if "aweme_id" in data and ("video" in data or "statistics" in data):
            return data
        for preferred in ("aweme_detail", "item_list", "videoInfoRes"):
            if preferred in data:
                found = find_aweme_item(data[preferred], depth + 1)
                if found is not None:
                    return found
        for value in data.values():
            if isinstance(value, (dict, list)):
                found = find_aweme_item(value, depth + 1)
                if found is not None:
                    return found
    elif isinstance(data, list):
        for value in data:
            found = find_aweme_item(value, depth + 1)
            if found is not None:
                return found
    return None


def _absolute(url: str) -> str:
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith("/"):
        return f"https://www.douyin.com{url}"
    return url


def extract_media_from_text(page: str) -> str:
    m = _PLAY_URI_RE.search(page)
    if m:
        return play_url_for(unescape_fragment(m.group(1)))

    m = _PLAY_URL_LIST_RE.search(page)
    if m:
        url = unquote(unescape_fragment(m.group(1)))
        vid = _VIDEO_ID_PARAM_RE.search(url)
        return play_url_for(vid.group(1)) if vid else _absolute(url)

    for pattern in _LOOSE_MEDIA_RES:
        m = pattern.search(page)
        if m:
            return _absolute(unescape_fragment(m.group(1)))
    return ""


def _stat_from_text(page: str, field: str) -> int:
    m = re.search(rf'"{field}":(\d+)', page)
    return safe_int(m.group(1)) if m else 0


def parse_html_page(page: str, content_id: str | None = None) -> VideoRecord:
    """Turn a share page into a record.

    Raises:
        EmptyResultError: nothing identifying could be found.
        ParseError: page is not text.
    """
    if not isinstance(page, str):
        raise ParseError("page body is not text")
    if not page.strip():
        raise EmptyResultError("empty page body")

    for name, blob in load_blobs(page):
        item = find_aweme_item(blob)
        if item is None:
            continue
        try:
            record = format_item(item, fallback_id=content_id)
        except ParseError as exc:
            log.debug("embedded_item_unusable", blob=name, error=str(exc))
            continue
        log.debug("embedded_item_found", blob=name, content_id=record.content_id)
        return record

    return _parse_page_text(page, content_id)


def _parse_page_text(page: str, content_id: str | None) -> VideoRecord:
    title = _first((_TITLE_RE,), page)
    description = _first(_DESC_RES, page)
    author = _first(_AUTHOR_RES, page)
    media_url = extract_media_from_text(page)

    if not (title or description or author or media_url):
        raise EmptyResultError("page carries no recognizable video data")

    if not content_id:
        m = _AWEME_ID_RE.search(page)
        content_id = m.group(1) if m else None
    if not content_id:
        raise EmptyResultError("page carries no content id")

    create_time = _CREATE_TIME_RE.search(page)
    stats = {f: _stat_from_text(page, f) for f in _STAT_FIELDS}

    return VideoRecord(
        content_id=content_id,
        author=author or "unknown",
        publish_time=epoch_to_iso(create_time.group(1)) if create_time else "",
        statistics=VideoStatistics(
            like_count=stats["digg_count"],
            comment_count=stats["comment_count"],
            share_count=stats["share_count"],
            play_count=stats["play_count"],
            collect_count=stats["collect_count"],
            forward_count=stats["forward_count"],
        ),
        description=description or title,
        media_url=media_url,
        cover_url=_first((_COVER_RE,), page),
        music=MusicInfo(
            title=_first((_MUSIC_TITLE_RE,), page),
            author=_first((_MUSIC_AUTHOR_RE,), page),
            url=_first((_MUSIC_URL_RE,), page),
        ),
        tags=tuple(unescape_fragment(t) for t in _HASHTAG_RE.findall(page)),
    )
