"""Cache and cache-metrics contracts."""

import abc
from datetime import timedelta
from typing import Any


class Cache(abc.ABC):
    """Contract for a key/value cache with per-entry expiry.

    Keys are opaque strings and values are JSON-safe structures. Implementations
    report failures by raising `CacheError`.
    """

    @abc.abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss (absent or expired)."""

    @abc.abstractmethod
    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        """Store *value* under *key* for *ttl*."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*; removing an absent key is not an error."""


class CacheMetrics(abc.ABC):
    """Contract for recording cache lookup outcomes."""

    @abc.abstractmethod
    def record_hit(self, entity: str) -> None:
        """Count a lookup for *entity* answered from the cache."""

    @abc.abstractmethod
    def record_miss(self, entity: str) -> None:
        """Count a lookup for *entity* that fell through to the delegate."""
