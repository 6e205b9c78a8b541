"""Tests for request header presets."""

from __future__ import annotations

import random

import pytest

from clipharvest.infrastructure.common.headers import (
    BASE_HEADERS,
    DESKTOP_USER_AGENTS,
    MOBILE_USER_AGENTS,
    get_headers,
)


class TestGetHeaders:
    def test_base_contains_defaults(self) -> None:
        headers = get_headers()
        for name in BASE_HEADERS:
            assert name in headers

    def test_mobile_adds_referer(self) -> None:
        headers = get_headers("mobile")
        assert headers["Referer"] == "https://www.douyin.com/"
        assert headers["User-Agent"] in MOBILE_USER_AGENTS

    def test_desktop_uses_desktop_agents(self) -> None:
        assert get_headers("desktop")["User-Agent"] in DESKTOP_USER_AGENTS

    def test_stealth_accepts_html(self) -> None:
        assert get_headers("stealth")["Accept"].startswith("text/html")

    def test_without_rotation_is_stable(self) -> None:
        assert get_headers("desktop", rotate=False)["User-Agent"] == DESKTOP_USER_AGENTS[0]

    def test_seeded_rng_is_deterministic(self) -> None:
        a = get_headers("mobile", rng=random.Random(7))
        b = get_headers("mobile", rng=random.Random(7))
        assert a == b

    def test_returns_fresh_dict(self) -> None:
        headers = get_headers()
        headers["X-Test"] = "1"
        assert "X-Test" not in get_headers()

    def test_unknown_preset(self) -> None:
        with pytest.raises(ValueError, match="Unknown header preset"):
            get_headers("tablet")  # type: ignore[arg-type]
