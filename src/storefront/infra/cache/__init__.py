"""Cache factory.

``get_cache()`` builds the backend named by ``STOREFRONT_CACHE_BACKEND``
(``memory`` or ``redis``); ``set_cache()`` swaps it, e.g. in tests.
"""

from storefront.config import get_settings
from storefront.infra.cache.memory_adapter import MemoryCache
from storefront.infra.cache.port import Cache

_current_cache: Cache | None = None


def get_cache() -> Cache:
    global _current_cache
    if _current_cache is None:
        settings = get_settings()
        if settings.cache_backend == "redis":
            from storefront.infra.cache.redis_adapter import RedisCache

            _current_cache = RedisCache(settings.redis_url)
        else:
            _current_cache = MemoryCache()
    return _current_cache


def set_cache(cache: Cache) -> None:
    global _current_cache
    _current_cache = cache


def reset_cache() -> None:
    global _current_cache
    _current_cache = None
