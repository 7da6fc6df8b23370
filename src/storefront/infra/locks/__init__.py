"""Lock manager factory.

Follows ``STOREFRONT_CACHE_BACKEND``: Redis locks when the cache is Redis,
so every worker sharing that Redis is serialized, otherwise in-process
locks. ``set_locks()`` swaps the manager, e.g. in tests.
"""

from storefront.config import get_settings
from storefront.infra.locks.memory_adapter import MemoryLocks
from storefront.infra.locks.port import LockManager

_current_locks: LockManager | None = None


def get_locks() -> LockManager:
    global _current_locks
    if _current_locks is None:
        settings = get_settings()
        if settings.cache_backend == "redis":
            from storefront.infra.locks.redis_adapter import RedisLocks

            _current_locks = RedisLocks(settings.redis_url, lease=settings.lock_lease)
        else:
            _current_locks = MemoryLocks()
    return _current_locks


def set_locks(locks: LockManager) -> None:
    global _current_locks
    _current_locks = locks


def reset_locks() -> None:
    global _current_locks
    _current_locks = None
