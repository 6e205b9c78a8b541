from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clipharvest.domain.ports.video_source import SourceFetchFn


@dataclass(frozen=True)
class SourceConfig:
    name: str
    label: str = ""
    priority: int = 10  # Lower is tried first
    enabled: bool = True
    rate_limit: int = 5  # Requests per window
    timeout: float = 15.0  # Seconds
    initial_success_rate: float = 0.5
    requires_id: bool = True  # False: works from the page URL alone


@dataclass(frozen=True)
class SourceSpec:
    """A source is data: its tuning plus the function that fetches and parses."""

    config: SourceConfig
    fetch: SourceFetchFn

    @property
    def name(self) -> str:
        return self.config.name


@dataclass
class SourceState:
    """Mutable runtime statistics of one source."""

    success_rate: float
    last_used_at: float | None = None
    average_response_ms: float = 0.0
    attempts: int = 0
    successes: int = 0
    failures: int = 0
