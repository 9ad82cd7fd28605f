"""Cache metrics adapters."""

from __future__ import annotations

import threading
from collections import Counter as TallyCounter

from prometheus_client import CollectorRegistry, Counter

from storefront.interfaces.cache import CacheMetrics

HIT = "hit"
MISS = "miss"


class PrometheusCacheMetrics(CacheMetrics):
    """Cache lookup counters exported through Prometheus.

    Exposes ``storefront_cache_lookups_total`` labelled by ``entity`` and
    ``result`` (``hit`` or ``miss``).

    Example:
        >>> metrics = PrometheusCacheMetrics(registry=CollectorRegistry())
        >>> metrics.record_hit("user")

    Args:
        registry: Prometheus registry to register the counter on. A fresh
            registry is created when omitted, so several containers can live
            in one process.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.lookups = Counter(
            "storefront_cache_lookups_total",
            "Cache lookups by entity and result",
            ["entity", "result"],
            registry=self.registry,
        )

    def record_hit(self, entity: str) -> None:
        self.lookups.labels(entity=entity, result=HIT).inc()

    def record_miss(self, entity: str) -> None:
        self.lookups.labels(entity=entity, result=MISS).inc()


class InMemoryCacheMetrics(CacheMetrics):
    """Plain counters, for tests and for running without Prometheus."""

    def __init__(self) -> None:
        self._counts: TallyCounter[tuple[str, str]] = TallyCounter()
        self._lock = threading.Lock()

    def record_hit(self, entity: str) -> None:
        with self._lock:
            self._counts[(entity, HIT)] += 1

    def record_miss(self, entity: str) -> None:
        with self._lock:
            self._counts[(entity, MISS)] += 1

    def hits(self, entity: str) -> int:
        """Number of hits recorded for *entity*."""
        return self._counts[(entity, HIT)]

    def misses(self, entity: str) -> int:
        """Number of misses recorded for *entity*."""
        return self._counts[(entity, MISS)]
