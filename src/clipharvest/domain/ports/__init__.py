from .pipeline import (
    LinkNormalizerPort,
    MediaVerifierPort,
    SourceRegistryPort,
    VideoIdExtractorPort,
)
from .request_proxy import RequestProxyPort
from .video_source import FetchContext, SourceFetchFn

__all__ = [
    "FetchContext",
    "LinkNormalizerPort",
    "MediaVerifierPort",
    "RequestProxyPort",
    "SourceFetchFn",
    "SourceRegistryPort",
    "VideoIdExtractorPort",
]
