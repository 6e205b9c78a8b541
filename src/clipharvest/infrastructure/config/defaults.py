"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "clipharvest",
    "environment": "dev",
    "http": {
        "timeout_seconds": 10.0,
        "max_redirects": 10,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
        "file": None,
    },
    "cache": {
        "ttl_seconds": 300.0,
        "max_entries": 100,
        "cleanup_interval_seconds": 600.0,
    },
    "proxy": {
        "request_delay_seconds": 0.1,
        "max_queue_length": 100,
    },
    "retry": {
        "max_attempts": 5,
        "delay_seconds": 1.0,
    },
    "registry": {
        "rate_limit_window_seconds": 60.0,
        "failure_threshold": 5,
        "cooldown_seconds": 300.0,
        "success_weight": 10.0,
        "failure_weight": 2.0,
    },
    "media": {
        "verify": False,
        "timeout_seconds": 5.0,
    },
    "sources": {},
}
