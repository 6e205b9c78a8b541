"""End-to-end resolution through the HTTP API over a mocked network.

The real app, proxy, cache, registry and parsers run; only the upstream
hosts are replaced by respx routes.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
import respx
from fastapi.testclient import TestClient

from clipharvest.infrastructure.config.schema import AppConfig, MediaConfig
from clipharvest.infrastructure.sources.endpoints import (
    AWEME_DETAIL_URL,
    BACKUP_URL,
    OFFICIAL_V2_URL,
)
from clipharvest.interfaces.app import create_app

pytestmark = pytest.mark.integration

CONTENT_ID = "7123456789012345678"
SHORT_URL = "https://v.douyin.com/abc123/"
PAGE_URL = f"https://www.douyin.com/video/{CONTENT_ID}"
ALL_SOURCES = ["official_v2", "mobile", "web", "backup", "web_v2", "html_page"]


@pytest.fixture()
def client(fast_config: AppConfig) -> Iterator[TestClient]:
    with TestClient(create_app(fast_config)) as c:
        yield c


def _mock_short_link(router: respx.MockRouter, target: str = PAGE_URL) -> None:
    router.get(SHORT_URL).respond(302, headers={"Location": target})


def _mock_all_sources_down(router: respx.MockRouter) -> None:
    router.get(url__startswith=OFFICIAL_V2_URL).respond(500)
    router.get(url__startswith=AWEME_DETAIL_URL).respond(500)
    router.get(url__startswith=BACKUP_URL).respond(500)
    router.get(PAGE_URL).respond(500)


class TestShareLinkResolution:
    def test_short_link_in_share_text(
        self,
        client: TestClient,
        respx_mock: respx.MockRouter,
        aweme_item: dict[str, Any],
    ) -> None:
        _mock_short_link(respx_mock)
        respx_mock.get(PAGE_URL).respond(200, text="<html></html>")
        respx_mock.get(url__startswith=OFFICIAL_V2_URL).respond(
            200, json={"status_code": 0, "item_list": [aweme_item]}
        )

        resp = client.post(
            "/api/v1/parse",
            json={"url": f"7.94 复制打开抖音，看看作品 {SHORT_URL} 好看"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["contentId"] == CONTENT_ID
        assert body["statistics"]["likeCount"] == 42
        assert body["source"] == "official_v2"
        assert body["mediaUrl"].startswith("https://aweme.snssdk.com/aweme/v1/play/")
        assert body["tags"] == ["travel", "sunset", "travel"]

    def test_repeat_request_served_from_cache(
        self,
        client: TestClient,
        respx_mock: respx.MockRouter,
        aweme_item: dict[str, Any],
    ) -> None:
        route = respx_mock.get(url__startswith=OFFICIAL_V2_URL).respond(
            200, json={"item_list": [aweme_item]}
        )

        first = client.post("/api/v1/parse", json={"url": PAGE_URL}).json()
        second = client.post("/api/v1/parse", json={"url": PAGE_URL}).json()

        assert first == second
        assert route.call_count == 1
        stats = client.get("/api/v1/stats").json()
        assert stats["proxy"]["cached_requests"] == 1
        assert stats["resolutions"]["succeeded"] == 2

    def test_fallback_to_next_source(
        self,
        client: TestClient,
        respx_mock: respx.MockRouter,
        aweme_item: dict[str, Any],
    ) -> None:
        respx_mock.get(url__startswith=OFFICIAL_V2_URL).respond(
            200, json={"status_code": 10002, "status_msg": "deleted"}
        )
        respx_mock.get(url__startswith=AWEME_DETAIL_URL).respond(
            200, json={"aweme_detail": aweme_item}
        )

        body = client.post("/api/v1/parse", json={"url": PAGE_URL}).json()

        assert body["success"] is True
        assert body["source"] == "mobile"

    def test_page_scrape_when_url_has_no_id(
        self, client: TestClient, respx_mock: respx.MockRouter
    ) -> None:
        user_url = "https://www.douyin.com/user/MS4wLjABAAAA"
        respx_mock.get(user_url).respond(
            200,
            text=(
                "<html><title>Clip title</title>"
                f'<script>{{"aweme_id":"{CONTENT_ID}","digg_count":7}}</script></html>'
            ),
        )

        body = client.post("/api/v1/parse", json={"url": user_url}).json()

        assert body["success"] is True
        assert body["contentId"] == CONTENT_ID
        assert body["source"] == "html_page"
        assert body["statistics"]["likeCount"] == 7


class TestFailures:
    def test_all_sources_down(
        self, client: TestClient, respx_mock: respx.MockRouter
    ) -> None:
        _mock_all_sources_down(respx_mock)

        resp = client.post("/api/v1/parse", json={"url": PAGE_URL})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("AllSourcesExhausted")
        assert sorted(body["attemptedSources"]) == sorted(ALL_SOURCES)
        assert body["videoId"] == CONTENT_ID

    def test_no_link(self, client: TestClient) -> None:
        body = client.post("/api/v1/parse", json={"url": "https://example.com/x"}).json()
        assert body == {"success": False, "error": "NoLinkFound: no video link found in input"}

    def test_short_link_to_foreign_domain(
        self, client: TestClient, respx_mock: respx.MockRouter
    ) -> None:
        _mock_short_link(respx_mock, "https://example.com/landing")
        respx_mock.get("https://example.com/landing").respond(200, text="hi")

        body = client.post("/api/v1/parse", json={"url": SHORT_URL}).json()

        assert body["success"] is False
        assert body["error"].startswith("UnsupportedDomain")


class TestDiagnostics:
    def test_ready_after_startup(self, client: TestClient) -> None:
        assert client.get("/api/v1/readyz").json() == {"status": "ready"}
        assert client.get("/api/v1/health").json()["status"] == "healthy"

    def test_sources_listed_and_toggled(self, client: TestClient) -> None:
        names = [row["name"] for row in client.get("/api/v1/sources").json()["sources"]]
        assert sorted(names) == sorted(ALL_SOURCES)

        resp = client.post("/api/v1/sources/official_v2/toggle", json={"enabled": False})
        assert resp.status_code == 200
        rows = {r["name"]: r for r in client.get("/api/v1/sources").json()["sources"]}
        assert rows["official_v2"]["enabled"] is False

    def test_expand_url(self, client: TestClient, respx_mock: respx.MockRouter) -> None:
        _mock_short_link(respx_mock)
        respx_mock.get(PAGE_URL).respond(200, text="<html></html>")

        body = client.get("/api/v1/expand-url", params={"url": SHORT_URL}).json()

        assert body["expandedUrl"] == PAGE_URL


class TestMediaVerification:
    @pytest.mark.parametrize(("status", "reachable"), [(200, True), (403, False)])
    def test_media_url_checked_when_enabled(
        self,
        fast_config: AppConfig,
        respx_mock: respx.MockRouter,
        aweme_item: dict[str, Any],
        status: int,
        reachable: bool,
    ) -> None:
        config = fast_config.model_copy(update={"media": MediaConfig(verify=True)})
        respx_mock.get(url__startswith=OFFICIAL_V2_URL).respond(
            200, json={"item_list": [aweme_item]}
        )
        head = respx_mock.head(
            url__startswith="https://aweme.snssdk.com/aweme/v1/play/"
        ).respond(status)

        with TestClient(create_app(config)) as client:
            body = client.post("/api/v1/parse", json={"url": PAGE_URL}).json()

        assert body["success"] is True
        assert body["mediaVerified"] is reachable
        assert head.call_count == 1

    def test_disabled_by_default(
        self,
        client: TestClient,
        respx_mock: respx.MockRouter,
        aweme_item: dict[str, Any],
    ) -> None:
        respx_mock.get(url__startswith=OFFICIAL_V2_URL).respond(
            200, json={"item_list": [aweme_item]}
        )

        body = client.post("/api/v1/parse", json={"url": PAGE_URL}).json()

        assert body["success"] is True
        assert "mediaVerified" not in body
