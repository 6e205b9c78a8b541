"""structlog processor that masks secrets before any renderer sees them."""

from __future__ import annotations

import hashlib
from typing import Any

REDACTED = "[REDACTED]"

SENSITIVE_MARKERS: tuple[str, ...] = (
    "password",
    "token",
    "key",
    "secret",
    "cookie",
    "authorization",
)

# Keys structlog itself relies on; never masked even if they match a marker.
_PROTECTED_KEYS = frozenset({"event", "level", "logger", "timestamp"})


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def sanitize(value: Any) -> Any:
    """Return a copy of ``value`` with sensitive mapping keys masked, recursively."""
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and is_sensitive_key(k) else sanitize(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize(v) for v in value)
    return value


def hash_key(value: str, *, length: int = 12) -> str:
    """Short stable digest for logging identifiers such as cache keys."""
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:length]


def redact_sensitive(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in list(event_dict):
        if key in _PROTECTED_KEYS or key.startswith("_"):
            continue
        if is_sensitive_key(key):
            event_dict[key] = REDACTED
        else:
            event_dict[key] = sanitize(event_dict[key])
    return event_dict
