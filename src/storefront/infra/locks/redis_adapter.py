"""Redis locks shared by every worker pointed at the same Redis."""

import redis

from storefront.infra.locks.port import LockManager


class RedisLocks(LockManager):
    def __init__(
        self, url: str | None = None, prefix: str = "storefront:lock:", lease: float = 30.0, client=None
    ) -> None:
        self._client = client if client is not None else redis.Redis.from_url(url)
        self._prefix = prefix
        # A crashed holder's lock expires after ``lease`` seconds
        self._lease = lease

    def _acquire(self, key: str, timeout: float):
        lock = self._client.lock(f"{self._prefix}{key}", timeout=self._lease, blocking_timeout=timeout)
        if not lock.acquire(blocking=True):
            return None
        return lock

    def _release(self, handle) -> None:
        handle.release()
