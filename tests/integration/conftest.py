"""Shared fixtures for integration tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import respx

from clipharvest.infrastructure.config.load import load_config
from clipharvest.infrastructure.config.schema import AppConfig


@pytest.fixture()
def respx_mock() -> Iterator[respx.MockRouter]:
    """Activate respx for a test; unmatched routes raise."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def fast_config() -> AppConfig:
    """Defaults with every built-in wait shortened to zero."""
    return load_config(
        cli_overrides={
            "environment": "test",
            "proxy": {"request_delay_seconds": 0},
            "retry": {"max_attempts": 2, "delay_seconds": 0},
        }
    )
