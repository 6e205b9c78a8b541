"""Upstream endpoint templates and platform constants."""

from __future__ import annotations

from urllib.parse import urlencode

OFFICIAL_V2_URL = "https://www.iesdouyin.com/web/api/v2/aweme/iteminfo/"
AWEME_DETAIL_URL = "https://www.douyin.com/aweme/v1/web/aweme/detail/"
BACKUP_URL = "https://www.douyin.com/web/api/v2/aweme/iteminfo/"

# Watermark-free play URL synthesized from a ``play_addr.uri`` identifier.
PLAY_URL_TEMPLATE = (
    "https://aweme.snssdk.com/aweme/v1/play/?video_id={uri}&ratio=720p&line=0"
)

WEB_PARAMS: dict[str, str] = {
    "aid": "1128",
    "version_name": "23.5.0",
    "device_platform": "webapp",
    "os_version": "10",
}

# Non-zero ``status_code`` values seen in API payloads.
PLATFORM_ERROR_CODES: dict[int, str] = {
    10000: "invalid parameters",
    10001: "video does not exist",
    10002: "video has been deleted",
    10003: "login required to view video",
    10004: "video is region restricted",
    10005: "video is private",
    10006: "upstream rate limit exceeded",
    10007: "upstream internal error",
    10008: "upstream timeout",
    10009: "upstream failed to parse request",
}


def build_api_url(
    base: str,
    *,
    id_param: str,
    content_id: str,
    params: dict[str, str] | None = None,
) -> str:
    """Compose ``base?{id_param}={content_id}`` plus optional extra params."""
    query: dict[str, str] = {id_param: content_id}
    if params:
        query.update(params)
    return f"{base}?{urlencode(query)}"


def play_url_for(uri: str) -> str:
    return PLAY_URL_TEMPLATE.format(uri=uri)


def describe_status_code(code: int) -> str:
    return PLATFORM_ERROR_CODES.get(code, f"upstream status_code {code}")
