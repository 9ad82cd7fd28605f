"""Cache adapters: a bounded in-process TTL cache and a Redis-backed cache."""

from __future__ import annotations

import copy
import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import redis

from storefront.interfaces.cache import Cache
from storefront.interfaces.errors import CacheError

logger = logging.getLogger(__name__)


class InMemoryCache(Cache):
    """Thread-safe in-process cache with per-entry TTL and LRU eviction.

    Args:
        max_entries: Upper bound on stored entries; the least recently used
            entry is evicted first.
        clock: Monotonic clock returning seconds; injectable for tests.
    """

    def __init__(
        self, max_entries: int = 10_000, clock: Callable[[], float] = time.monotonic
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            if (entry := self._entries.get(key)) is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        seconds = ttl.total_seconds()
        if seconds <= 0:
            self.delete(key)
            return
        with self._lock:
            self._entries[key] = (self._clock() + seconds, copy.deepcopy(value))
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry %s", evicted)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisCache(Cache):
    """Cache backed by Redis; values are stored as JSON strings with ``SETEX``.

    Args:
        client: A redis-py client.
        prefix: Namespace prepended to every key.
    """

    def __init__(self, client: redis.Redis, prefix: str = "storefront:") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "storefront:") -> RedisCache:
        """Build a cache from a ``redis://`` URL."""
        return cls(redis.Redis.from_url(url), prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheError(f"Redis GET {key} failed: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheError(f"Corrupt cache entry for {key}") from e

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        seconds = max(int(ttl.total_seconds()), 1)
        try:
            self._client.setex(self._key(key), seconds, json.dumps(value))
        except redis.RedisError as e:
            raise CacheError(f"Redis SETEX {key} failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheError(f"Redis DEL {key} failed: {e}") from e
