"""Shared test fixtures for the clipharvest test suite."""

from __future__ import annotations

import copy
from typing import Any

import pytest

CONTENT_ID = "7123456789012345678"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


_AWEME_ITEM: dict[str, Any] = {
    "aweme_id": CONTENT_ID,
    "desc": "Sunset over the river #travel #sunset #travel",
    "create_time": 1700000000,
    "author": {"nickname": "river_walker", "uid": "99887766"},
    "statistics": {
        "digg_count": 42,
        "comment_count": 7,
        "share_count": 3,
        "play_count": 1000,
        "collect_count": 5,
        "forward_count": 1,
    },
    "video": {
        "play_addr": {
            "uri": "v0200fg10000abc",
            "url_list": ["https://v26.example.com/playwm/?video_id=v0200fg10000abc"],
        },
        "cover": {"url_list": ["https://p3.example.com/cover.jpeg"]},
        "duration": 15000,
        "width": 1080,
        "height": 1920,
    },
    "music": {
        "title": "original sound",
        "author": "river_walker",
        "play_url": {"url_list": ["https://sf3.example.com/music.mp3"]},
    },
    "text_extra": [
        {"hashtag_name": "travel"},
        {"hashtag_name": "sunset"},
        {"hashtag_name": "travel"},
        {"user_id": "123"},
    ],
}


@pytest.fixture()
def aweme_item() -> dict[str, Any]:
    """Realistic aweme item as returned by the item-info / detail APIs."""
    return copy.deepcopy(_AWEME_ITEM)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
