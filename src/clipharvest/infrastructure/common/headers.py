"""Browser-like request header presets with user-agent rotation."""

from __future__ import annotations

import random
from typing import Literal

HeaderPreset = Literal["base", "mobile", "desktop", "stealth"]

MOBILE_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 15_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/15.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
)

DESKTOP_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
)

BASE_HEADERS: dict[str, str] = {
    "User-Agent": MOBILE_USER_AGENTS[0],
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

_PRESETS: dict[str, dict[str, str]] = {
    "base": {},
    "mobile": {
        "Referer": "https://www.douyin.com/",
        "Origin": "https://www.douyin.com",
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-site",
    },
    "desktop": {
        "Referer": "https://www.douyin.com/",
        "Origin": "https://www.douyin.com",
        "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"macOS"',
    },
    "stealth": {
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,image/apng,*/*;q=0.8"
        ),
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
    },
}

_USER_AGENT_POOLS: dict[str, tuple[str, ...]] = {
    "base": MOBILE_USER_AGENTS,
    "mobile": MOBILE_USER_AGENTS,
    "desktop": DESKTOP_USER_AGENTS,
    "stealth": DESKTOP_USER_AGENTS,
}


def get_headers(
    preset: HeaderPreset = "base",
    *,
    rotate: bool = True,
    rng: random.Random | None = None,
) -> dict[str, str]:
    """Return BASE headers overlaid with *preset*.

    With *rotate* the User-Agent is drawn from the preset's pool; otherwise
    the first (canonical) agent of the pool is used.
    """
    if preset not in _PRESETS:
        raise ValueError(f"Unknown header preset: {preset!r}")

    headers = {**BASE_HEADERS, **_PRESETS[preset]}
    pool = _USER_AGENT_POOLS[preset]
    if rotate:
        headers["User-Agent"] = (rng or random).choice(pool)  # noqa: S311
    else:
        headers["User-Agent"] = pool[0]
    return headers
