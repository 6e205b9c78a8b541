from __future__ import annotations

from collections.abc import Sequence


class ClipHarvestError(Exception):
    """Base error for link resolution."""


class InvalidInputError(ClipHarvestError):
    pass


class NoLinkFoundError(ClipHarvestError):
    pass


class UnsupportedDomainError(ClipHarvestError):
    pass


class IdExtractionFailedError(ClipHarvestError):
    pass


class AllSourcesExhaustedError(ClipHarvestError):
    """Every enabled source was tried or skipped without producing a record."""

    def __init__(
        self,
        message: str,
        *,
        attempted_sources: Sequence[str] = (),
        video_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.attempted_sources: tuple[str, ...] = tuple(attempted_sources)
        self.video_id = video_id


class ParseError(ClipHarvestError):
    """Upstream payload could not be turned into a record (per source)."""


class EmptyResultError(ParseError):
    """Expected array/object missing or empty in the upstream payload."""


class NetworkError(ClipHarvestError):
    """Transport failure or non-success HTTP status (per source)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ClipHarvestError):
    """Source window is full; treated as a skip, never as a failure."""


# Fatal before any source call is made.
PREFLIGHT_ERRORS: tuple[type[ClipHarvestError], ...] = (
    InvalidInputError,
    NoLinkFoundError,
    UnsupportedDomainError,
)
