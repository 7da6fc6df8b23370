"""In-process locks for single-worker deployments and tests.

A key's lock lives only while some thread holds or waits for it.
"""

import threading

from storefront.infra.locks.port import LockManager


class MemoryLocks(LockManager):
    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._entries: dict[str, list] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._entries[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]

    def _acquire(self, key: str, timeout: float):
        lock = self._checkout(key)
        if not lock.acquire(timeout=timeout):
            self._checkin(key)
            return None
        return (key, lock)

    def _release(self, handle) -> None:
        key, lock = handle
        lock.release()
        self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
