# wiki_chat/cache/__init__.py
from .domains import CacheEntry, CacheStats
from .service import TTLCache, generate_cache_key
from .deduplicator import RequestDeduplicator, cached_fetch
from .container import create_cache_container

__all__ = [
    "CacheEntry",
    "CacheStats",
    "TTLCache",
    "RequestDeduplicator",
    "cached_fetch",
    "generate_cache_key",
    "create_cache_container",
]
