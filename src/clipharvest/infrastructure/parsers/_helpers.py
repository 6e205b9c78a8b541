"""Defensive accessors for loosely shaped upstream payloads."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any


def dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists; ``None`` as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def safe_int(value: Any) -> int:
    """Coerce to a non-negative int; anything unusable becomes 0."""
    if isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        # Non-integral strings such as "12.5".
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    except OverflowError:
        return 0
    return max(number, 0)


def safe_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def first_url(url_list: Any) -> str:
    if isinstance(url_list, list):
        for url in url_list:
            if isinstance(url, str) and url:
                return url
    return ""


def epoch_to_iso(value: Any) -> str:
    """Epoch seconds -> ISO-8601 UTC; ``""`` when absent or invalid."""
    seconds = safe_int(value)
    if not seconds:
        return ""
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return ""


def unescape_fragment(raw: str) -> str:
    """Decode a JSON string body captured by regex (``\\u002F`` and friends)."""
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return raw.replace("\\u002F", "/").replace("\\/", "/")
