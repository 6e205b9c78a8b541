from .media_check import MediaUrlVerifier
from .url_normalizer import UrlNormalizer, find_link, is_allowed_domain
from .video_id import extract_video_id, is_valid_content_id

__all__ = [
    "MediaUrlVerifier",
    "UrlNormalizer",
    "extract_video_id",
    "find_link",
    "is_allowed_domain",
    "is_valid_content_id",
]
