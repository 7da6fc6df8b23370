"""Redis-backed cache. Values are stored as JSON."""

import json
from typing import Any

import redis

from storefront.infra.cache.port import Cache


class RedisCache(Cache):
    def __init__(self, url: str, prefix: str = "storefront:") -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Any | None:
        raw = self._client.get(self._key(key))
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self._client.set(self._key(key), json.dumps(value), ex=ttl)

    def add(self, key: str, value: Any, ttl: int | None = None) -> bool:
        return bool(self._client.set(self._key(key), json.dumps(value), ex=ttl, nx=True))

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))
