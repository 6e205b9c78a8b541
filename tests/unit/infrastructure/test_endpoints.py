"""Tests for endpoint URL composition and platform status codes."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from clipharvest.infrastructure.sources.endpoints import (
    AWEME_DETAIL_URL,
    OFFICIAL_V2_URL,
    WEB_PARAMS,
    build_api_url,
    describe_status_code,
    play_url_for,
)

CONTENT_ID = "7123456789012345678"


class TestBuildApiUrl:
    def test_id_only(self) -> None:
        url = build_api_url(OFFICIAL_V2_URL, id_param="item_ids", content_id=CONTENT_ID)
        assert url == f"{OFFICIAL_V2_URL}?item_ids={CONTENT_ID}"

    def test_extra_params_appended(self) -> None:
        url = build_api_url(
            AWEME_DETAIL_URL,
            id_param="aweme_id",
            content_id=CONTENT_ID,
            params=WEB_PARAMS,
        )
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert url.startswith(f"{AWEME_DETAIL_URL}?aweme_id={CONTENT_ID}&")
        assert query["aid"] == ["1128"]
        assert query["device_platform"] == ["webapp"]

    def test_params_are_encoded(self) -> None:
        url = build_api_url(
            AWEME_DETAIL_URL,
            id_param="aweme_id",
            content_id=CONTENT_ID,
            params={"q": "a b&c"},
        )
        assert "q=a+b%26c" in url


class TestPlatformConstants:
    def test_play_url(self) -> None:
        assert play_url_for("v0200abc") == (
            "https://aweme.snssdk.com/aweme/v1/play/"
            "?video_id=v0200abc&ratio=720p&line=0"
        )

    def test_known_status_code(self) -> None:
        assert describe_status_code(10002) == "video has been deleted"

    def test_unknown_status_code(self) -> None:
        assert describe_status_code(4242) == "upstream status_code 4242"
