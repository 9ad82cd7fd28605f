"""Unit tests for the cache metrics adapters."""

from prometheus_client import CollectorRegistry

from storefront.adapters.metrics import InMemoryCacheMetrics, PrometheusCacheMetrics

# pylint: disable=magic-value-comparison


def test_prometheus_counts_hits_and_misses_per_entity():
    """Lookups are counted by entity and result on the given registry."""
    registry = CollectorRegistry()
    metrics = PrometheusCacheMetrics(registry=registry)
    metrics.record_hit("user")
    metrics.record_hit("user")
    metrics.record_miss("product")

    def sample(entity: str, result: str) -> float | None:
        return registry.get_sample_value(
            "storefront_cache_lookups_total", {"entity": entity, "result": result}
        )

    assert sample("user", "hit") == 2.0
    assert sample("product", "miss") == 1.0
    assert sample("user", "miss") is None


def test_prometheus_instances_do_not_share_a_registry():
    """Two instances can coexist in one process."""
    first = PrometheusCacheMetrics()
    second = PrometheusCacheMetrics()
    assert first.registry is not second.registry


def test_in_memory_metrics():
    """The plain counters track hits and misses per entity."""
    metrics = InMemoryCacheMetrics()
    metrics.record_hit("user")
    metrics.record_miss("user")
    metrics.record_miss("user")
    assert metrics.hits("user") == 1
    assert metrics.misses("user") == 2
    assert metrics.hits("product") == 0
