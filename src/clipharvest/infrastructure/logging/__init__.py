from .redaction import REDACTED, hash_key, redact_sensitive, sanitize
from .setup import configure_logging

__all__ = [
    "REDACTED",
    "configure_logging",
    "hash_key",
    "redact_sensitive",
    "sanitize",
]
