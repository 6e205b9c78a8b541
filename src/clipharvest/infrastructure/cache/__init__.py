from .memory_cache import CacheEntry, MemoryCache

__all__ = ["CacheEntry", "MemoryCache"]
