"""Recover the numeric content ID from a video URL."""

from __future__ import annotations

import re

CONTENT_ID_RE = re.compile(r"^\d{10,25}$")

# Ordered; the first pattern that matches decides.
VIDEO_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/video/(\d+)"),
    re.compile(r"/share/video/(\d+)"),
    re.compile(r"aweme_id=(\d+)"),
    re.compile(r"modal_id=(\d+)"),
    *(re.compile(rf"/(\d{{{n}}})") for n in range(19, 14, -1)),
    re.compile(r"item_ids=(\d+)"),
    re.compile(r"/note/(\d+)"),
    re.compile(r"/(\d{10,})"),
)


def is_valid_content_id(value: object) -> bool:
    return isinstance(value, str) and CONTENT_ID_RE.fullmatch(value) is not None


def extract_video_id(url: str) -> str | None:
    """Return the content ID in *url*, or ``None``.

    Only the first matching pattern is considered; a capture that fails the
    10-25 digit check yields ``None`` instead of trying later patterns.
    """
    if not isinstance(url, str) or not url:
        return None
    for pattern in VIDEO_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            candidate = m.group(1)
            return candidate if is_valid_content_id(candidate) else None
    return None
