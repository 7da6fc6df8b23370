"""Key-value cache port used for idempotency keys and geolocation results."""

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):
    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ...

    @abstractmethod
    def add(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store only if the key is absent. Returns True when the value was written."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...
