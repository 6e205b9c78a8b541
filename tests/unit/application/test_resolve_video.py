"""Tests for the resolve use case (normalize -> id -> sources -> retry)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from clipharvest.application.use_cases.resolve_video import ResolveVideoUseCase
from clipharvest.domain.entities.errors import (
    AllSourcesExhaustedError,
    InvalidInputError,
    NoLinkFoundError,
    UnsupportedDomainError,
)
from clipharvest.domain.entities.video import ResolvedLink, VideoRecord
from clipharvest.infrastructure.metrics import MetricsCollector

CONTENT_ID = "7123456789012345678"
URL = f"https://www.douyin.com/video/{CONTENT_ID}"


def _normalizer(url: str = URL) -> AsyncMock:
    normalizer = AsyncMock()
    normalizer.normalize.return_value = ResolvedLink(raw_input=url, normalized_url=url)
    return normalizer


def _exhausted(*names: str, video_id: str | None = CONTENT_ID) -> AllSourcesExhaustedError:
    return AllSourcesExhaustedError(
        "all sources failed", attempted_sources=names, video_id=video_id
    )


def _use_case(
    normalizer: AsyncMock,
    registry: AsyncMock,
    *,
    extract: MagicMock | None = None,
    sleep: AsyncMock | None = None,
    **kwargs: object,
) -> ResolveVideoUseCase:
    return ResolveVideoUseCase(
        normalizer,
        extract or MagicMock(return_value=CONTENT_ID),
        registry,
        sleep=sleep or AsyncMock(),
        **kwargs,  # type: ignore[arg-type]
    )


class TestSuccess:
    @pytest.mark.asyncio()
    async def test_first_pass(self) -> None:
        registry = AsyncMock()
        registry.resolve.return_value = VideoRecord(content_id=CONTENT_ID, source="official_v2")
        sleep = AsyncMock()
        uc = _use_case(_normalizer(), registry, sleep=sleep)

        outcome = await uc.execute(URL)

        assert outcome.success
        assert outcome.attempts == 1
        assert outcome.to_dict()["source"] == "official_v2"
        registry.resolve.assert_awaited_once_with(CONTENT_ID, URL)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_succeeds_on_third_pass(self) -> None:
        registry = AsyncMock()
        registry.resolve.side_effect = [
            _exhausted("a"),
            _exhausted("a", "b"),
            VideoRecord(content_id=CONTENT_ID, source="b"),
        ]
        sleep = AsyncMock()
        uc = _use_case(_normalizer(), registry, sleep=sleep, delay_seconds=1.0)

        outcome = await uc.execute(URL)

        assert outcome.success
        assert outcome.attempts == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


    @pytest.mark.asyncio()
    async def test_media_reachability_recorded(self) -> None:
        registry = AsyncMock()
        registry.resolve.return_value = VideoRecord(
            content_id=CONTENT_ID, media_url="https://v.example/play.mp4", source="mobile"
        )
        verify = AsyncMock(return_value=False)
        uc = _use_case(_normalizer(), registry, verify_media=verify)

        outcome = await uc.execute(URL)

        assert outcome.success
        assert outcome.to_dict()["mediaVerified"] is False
        verify.assert_awaited_once_with("https://v.example/play.mp4")

    @pytest.mark.asyncio()
    async def test_media_check_skipped_without_media_url(self) -> None:
        registry = AsyncMock()
        registry.resolve.return_value = VideoRecord(content_id=CONTENT_ID, source="html_page")
        verify = AsyncMock(return_value=True)
        uc = _use_case(_normalizer(), registry, verify_media=verify)

        outcome = await uc.execute(URL)

        assert "mediaVerified" not in outcome.to_dict()
        verify.assert_not_awaited()


class TestFailure:
    @pytest.mark.asyncio()
    async def test_retries_with_linear_backoff_then_fails(self) -> None:
        registry = AsyncMock()
        registry.resolve.side_effect = _exhausted("official_v2", "mobile")
        sleep = AsyncMock()
        uc = _use_case(_normalizer(), registry, sleep=sleep, max_attempts=5, delay_seconds=1.0)

        outcome = await uc.execute(URL)

        assert not outcome.success
        assert registry.resolve.await_count == 5
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 3.0, 4.0]
        data = outcome.to_dict()
        assert data["success"] is False
        assert data["error"].startswith("AllSourcesExhausted")
        assert data["attemptedSources"] == ["official_v2", "mobile"]
        assert data["videoId"] == CONTENT_ID

    @pytest.mark.asyncio()
    async def test_attempted_sources_union_across_passes(self) -> None:
        registry = AsyncMock()
        registry.resolve.side_effect = [_exhausted("a", "b"), _exhausted("c"), _exhausted("a")]
        uc = _use_case(_normalizer(), registry, max_attempts=3)
        data = (await uc.execute(URL)).to_dict()
        assert data["attemptedSources"] == ["a", "b", "c"]

    @pytest.mark.asyncio()
    async def test_missing_id_reported_as_extraction_failure(self) -> None:
        url = "https://www.douyin.com/user/abc"
        registry = AsyncMock()
        registry.resolve.side_effect = _exhausted("html_page", video_id=None)
        uc = _use_case(
            _normalizer(url), registry, extract=MagicMock(return_value=None), max_attempts=1
        )

        data = (await uc.execute(url)).to_dict()

        registry.resolve.assert_awaited_once_with(None, url)
        assert data["error"].startswith("IdExtractionFailed")
        assert "videoId" not in data


class TestPreflight:
    @pytest.mark.parametrize(
        ("exc", "prefix"),
        [
            (InvalidInputError("input must be a non-empty string"), "InvalidInput: "),
            (NoLinkFoundError("no video link found in input"), "NoLinkFound: "),
            (UnsupportedDomainError("unsupported domain: example.com"), "UnsupportedDomain: "),
        ],
    )
    @pytest.mark.asyncio()
    async def test_preflight_errors_not_retried(self, exc: Exception, prefix: str) -> None:
        normalizer = AsyncMock()
        normalizer.normalize.side_effect = exc
        registry = AsyncMock()
        sleep = AsyncMock()
        uc = _use_case(normalizer, registry, sleep=sleep)

        outcome = await uc.execute("")

        assert outcome.to_dict()["error"].startswith(prefix)
        assert outcome.attempts == 0
        registry.resolve.assert_not_awaited()
        sleep.assert_not_awaited()


class TestMetrics:
    @pytest.mark.asyncio()
    async def test_outcomes_recorded(self) -> None:
        metrics = MetricsCollector()
        registry = AsyncMock()
        registry.resolve.side_effect = [
            _exhausted("a"),
            VideoRecord(content_id=CONTENT_ID, source="a"),
        ]
        uc = _use_case(_normalizer(), registry, metrics=metrics)
        await uc.execute(URL)

        normalizer = AsyncMock()
        normalizer.normalize.side_effect = NoLinkFoundError("none")
        await _use_case(normalizer, registry, metrics=metrics).execute("hello")

        snap = metrics.snapshot()["resolutions"]
        assert snap["succeeded"] == 1  # type: ignore[index]
        assert snap["failed"] == 1  # type: ignore[index]
        assert snap["retries"] == 1  # type: ignore[index]
        assert snap["errors"] == {"NoLinkFound": 1}  # type: ignore[index]
