"""Exclusive named locks guarding stock and order-serial read-modify-write.

Keys are taken in a stable (sorted) order so two checkouts sharing products
cannot deadlock, and every acquisition is bounded by a timeout.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from storefront.errors import StockContention

logger = structlog.get_logger(__name__)


class LockManager(ABC):
    @abstractmethod
    def _acquire(self, key: str, timeout: float) -> Any | None:
        """Block up to ``timeout`` seconds for ``key``. Returns a handle, or None on timeout."""
        ...

    @abstractmethod
    def _release(self, handle: Any) -> None:
        ...

    @contextmanager
    def hold(self, keys: Iterable, timeout: float) -> Iterator[None]:
        """Hold the lock of every key in ``keys`` for the block."""
        acquired = []
        try:
            for key in sorted({str(k) for k in keys}):
                handle = self._acquire(key, timeout)
                if handle is None:
                    logger.warning("Lock wait timed out", key=key, timeout=timeout)
                    raise StockContention(key, timeout)
                acquired.append(handle)
            yield
        finally:
            for handle in reversed(acquired):
                self._release(handle)
