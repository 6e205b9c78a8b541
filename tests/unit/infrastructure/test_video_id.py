"""Tests for content-ID extraction from video URLs."""

from __future__ import annotations

import pytest

from clipharvest.infrastructure.links.video_id import (
    extract_video_id,
    is_valid_content_id,
)


class TestExtractVideoId:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.douyin.com/video/7123456789012345678", "7123456789012345678"),
            (
                "https://www.iesdouyin.com/share/video/7123456789012345678/?region=CN",
                "7123456789012345678",
            ),
            (
                "https://www.douyin.com/discover?aweme_id=7123456789012345678",
                "7123456789012345678",
            ),
            (
                "https://www.douyin.com/user/MS4w?modal_id=7123456789012345678",
                "7123456789012345678",
            ),
            ("https://www.douyin.com/note/7123456789012345678", "7123456789012345678"),
            ("https://www.douyin.com/x/712345678901234", "712345678901234"),
        ],
    )
    def test_known_shapes(self, url: str, expected: str) -> None:
        assert extract_video_id(url) == expected

    def test_no_id(self) -> None:
        assert extract_video_id("https://www.douyin.com/") is None

    def test_empty_input(self) -> None:
        assert extract_video_id("") is None

    def test_first_match_decides(self) -> None:
        # /video/ captures a too-short id; later patterns are not consulted.
        url = "https://www.douyin.com/video/123?modal_id=7123456789012345678"
        assert extract_video_id(url) is None

    def test_too_long_id_rejected(self) -> None:
        assert extract_video_id("https://www.douyin.com/video/" + "1" * 26) is None


class TestIsValidContentId:
    @pytest.mark.parametrize("value", ["1234567890", "1" * 25])
    def test_bounds_accepted(self, value: str) -> None:
        assert is_valid_content_id(value)

    @pytest.mark.parametrize("value", ["123456789", "1" * 26, "12345abcde", 1234567890, None])
    def test_rejected(self, value: object) -> None:
        assert not is_valid_content_id(value)
