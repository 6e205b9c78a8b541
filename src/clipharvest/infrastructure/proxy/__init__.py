from .request_proxy import RequestProxy, build_cache_key

__all__ = ["RequestProxy", "build_cache_key"]
