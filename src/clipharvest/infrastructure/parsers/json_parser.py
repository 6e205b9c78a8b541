"""Parsers for the JSON shapes returned by the item-info and detail APIs."""

from __future__ import annotations

import re
from typing import Any

import structlog

from clipharvest.domain.entities.errors import EmptyResultError, ParseError
from clipharvest.domain.entities.video import MusicInfo, VideoRecord, VideoStatistics
from clipharvest.infrastructure.parsers._helpers import (
    dig,
    epoch_to_iso,
    first_url,
    safe_int,
    safe_str,
)
from clipharvest.infrastructure.sources.endpoints import (
    describe_status_code,
    play_url_for,
)

log = structlog.get_logger(__name__)

_VIDEO_ID_PARAM_RE = re.compile(r"[?&]video_id=([^&]+)")


def _check_status(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ParseError(f"expected JSON object, got {type(payload).__name__}")
    code = payload.get("status_code")
    if isinstance(code, int) and code != 0:
        message = payload.get("status_msg") or describe_status_code(code)
        raise ParseError(f"upstream error {code}: {message}")


def parse_item_list(payload: Any, *, fallback_id: str | None = None) -> VideoRecord:
    """``{"item_list": [item, ...]}`` -> record built from the first item."""
    _check_status(payload)
    item = dig(payload, "item_list", 0)
    if not isinstance(item, dict) or not item:
        raise EmptyResultError("item_list missing or empty")
    return format_item(item, fallback_id=fallback_id)


def parse_aweme_detail(payload: Any, *, fallback_id: str | None = None) -> VideoRecord:
    """``{"aweme_detail": item}`` -> record."""
    _check_status(payload)
    item = payload.get("aweme_detail")
    if not isinstance(item, dict) or not item:
        raise EmptyResultError("aweme_detail missing or empty")
    return format_item(item, fallback_id=fallback_id)


def parse_any(payload: Any, *, fallback_id: str | None = None) -> VideoRecord:
    """Accept either the item-list or the detail shape."""
    _check_status(payload)
    if isinstance(dig(payload, "item_list", 0), dict):
        return parse_item_list(payload, fallback_id=fallback_id)
    return parse_aweme_detail(payload, fallback_id=fallback_id)


def extract_media_url(video: Any) -> str:
    """Pick the best playable URL from a ``video`` object.

    A ``play_addr.uri`` is turned into a direct play URL and wins over any
    literal URL. Otherwise the known address fields are searched in order,
    preferring a non-HLS URL; a ``video_id=`` query value in the chosen URL
    is rewritten into the direct play URL as well.
    """
    if not isinstance(video, dict):
        return ""

    uri = dig(video, "play_addr", "uri")
    if isinstance(uri, str) and uri:
        return play_url_for(uri)

    candidates: list[str] = []
    for url_list in _url_lists(video):
        candidates.extend(u for u in url_list if isinstance(u, str) and u)
    if not candidates:
        return ""

    chosen = next((u for u in candidates if ".m3u8" not in u), candidates[0])
    match = _VIDEO_ID_PARAM_RE.search(chosen)
    if match:
        return play_url_for(match.group(1))
    return chosen


def _url_lists(video: dict[str, Any]) -> list[list[Any]]:
    lists: list[Any] = [
        dig(video, "play_addr", "url_list"),
        dig(video, "download_addr", "url_list"),
        dig(video, "bit_rate", 0, "play_addr", "url_list"),
    ]
    bit_rates = video.get("bit_rate")
    if isinstance(bit_rates, list):
        normal = next(
            (
                br
                for br in bit_rates
                if isinstance(br, dict) and br.get("quality_type") == "normal"
            ),
            None,
        )
        lists.append(dig(normal, "play_addr", "url_list"))
    for variant in ("play_addr_h264", "play_addr_265", "play_addr_lowbr", "play_addr_highbr"):
        lists.append(dig(video, variant, "url_list"))
    return [lst for lst in lists if isinstance(lst, list) and lst]


def extract_tags(item: dict[str, Any]) -> tuple[str, ...]:
    """All hashtag names in order; duplicates are kept."""
    tags: list[str] = []
    text_extra = item.get("text_extra")
    if isinstance(text_extra, list):
        for entry in text_extra:
            name = dig(entry, "hashtag_name")
            if isinstance(name, str) and name:
                tags.append(name)
    return tuple(tags)


def format_item(item: dict[str, Any], *, fallback_id: str | None = None) -> VideoRecord:
    """Normalize one aweme item into a :class:`VideoRecord`."""
    content_id = safe_str(item.get("aweme_id")) or (fallback_id or "")
    if not content_id:
        raise EmptyResultError("item carries no aweme_id")

    stats = item.get("statistics") if isinstance(item.get("statistics"), dict) else {}
    video = item.get("video") if isinstance(item.get("video"), dict) else {}
    music = item.get("music") if isinstance(item.get("music"), dict) else {}

    author = dig(item, "author", "nickname")
    record = VideoRecord(
        content_id=content_id,
        author=author if isinstance(author, str) and author else "unknown",
        author_id=safe_str(dig(item, "author", "uid")),
        publish_time=epoch_to_iso(item.get("create_time")),
        statistics=VideoStatistics(
            like_count=safe_int(stats.get("digg_count")),
            comment_count=safe_int(stats.get("comment_count")),
            share_count=safe_int(stats.get("share_count")),
            play_count=safe_int(stats.get("play_count")),
            collect_count=safe_int(stats.get("collect_count")),
            forward_count=safe_int(stats.get("forward_count")),
        ),
        description=safe_str(item.get("desc") or item.get("content")),
        media_url=extract_media_url(video),
        cover_url=first_url(dig(video, "cover", "url_list"))
        or first_url(dig(video, "origin_cover", "url_list")),
        duration=safe_int(video.get("duration")),
        width=safe_int(video.get("width")),
        height=safe_int(video.get("height")),
        music=MusicInfo(
            title=safe_str(music.get("title")),
            author=safe_str(music.get("author")),
            url=first_url(dig(music, "play_url", "url_list")),
        ),
        tags=extract_tags(item),
    )
    log.debug(
        "item_formatted",
        content_id=content_id,
        has_media=bool(record.media_url),
        tags=len(record.tags),
    )
    return record
