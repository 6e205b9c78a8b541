from .errors import (
    AllSourcesExhaustedError,
    ClipHarvestError,
    EmptyResultError,
    IdExtractionFailedError,
    InvalidInputError,
    NetworkError,
    NoLinkFoundError,
    ParseError,
    RateLimitedError,
    UnsupportedDomainError,
)
from .http import ProxyResponse
from .source import SourceConfig, SourceSpec, SourceState
from .video import (
    MusicInfo,
    ResolutionFailure,
    ResolvedLink,
    VideoRecord,
    VideoStatistics,
)

__all__ = [
    "AllSourcesExhaustedError",
    "ClipHarvestError",
    "EmptyResultError",
    "IdExtractionFailedError",
    "InvalidInputError",
    "MusicInfo",
    "NetworkError",
    "NoLinkFoundError",
    "ParseError",
    "ProxyResponse",
    "RateLimitedError",
    "ResolutionFailure",
    "ResolvedLink",
    "SourceConfig",
    "SourceSpec",
    "SourceState",
    "UnsupportedDomainError",
    "VideoRecord",
    "VideoStatistics",
]
