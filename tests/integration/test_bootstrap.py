"""Tests for the bootstrap function."""

from __future__ import annotations

import pytest
from alembic import command
from prometheus_client import CollectorRegistry

from storefront import config
from storefront.adapters.cache import InMemoryCache
from storefront.adapters.metrics import InMemoryCacheMetrics, PrometheusCacheMetrics
from storefront.adapters.messaging import InMemoryMessageProducer
from storefront.bootstrap import bootstrap
from storefront.config import CacheBackend, Settings
from storefront.interfaces.errors import UnsupportedStoreError
from storefront.interfaces.transaction import StoreType
from storefront.service_layer.cached import CachedProductService, CachedUserService
from storefront.service_layer.services import DefaultProductService, DefaultUserService

# pylint: disable=magic-value-comparison


def test_defaults_to_memory_with_cache():
    """Default settings give memory stores and cached read services."""
    app = bootstrap(Settings())
    assert app.engine is None
    assert app.transactions.stores == frozenset({StoreType.MEMORY})
    assert isinstance(app.users, CachedUserService)
    assert isinstance(app.products, CachedProductService)
    assert isinstance(app.cache, InMemoryCache)
    assert isinstance(app.metrics, PrometheusCacheMetrics)


def test_cache_can_be_turned_off():
    """With the cache disabled the default services are used directly."""
    app = bootstrap(Settings(cache_backend=CacheBackend.NONE))
    assert app.cache is None
    assert isinstance(app.users, DefaultUserService)
    assert isinstance(app.products, DefaultProductService)


def test_overrides_are_used():
    """Injected collaborators replace the defaults."""
    cache = InMemoryCache()
    metrics = InMemoryCacheMetrics()
    producer = InMemoryMessageProducer()
    app = bootstrap(Settings(), cache=cache, metrics=metrics, producer=producer)
    assert app.cache is cache
    assert app.metrics is metrics
    assert app.producer is producer


def test_containers_do_not_share_metrics():
    """Two containers in one process each get their own registry."""
    first = bootstrap(Settings())
    second = bootstrap(Settings())
    assert isinstance(first.metrics.registry, CollectorRegistry)
    assert first.metrics.registry is not second.metrics.registry


def test_sql_settings_open_an_engine(sqlite_url: str):
    """SQL stores are wired to an engine on the configured URL."""
    command.upgrade(config.build_alembic_config(sqlite_url), "head")
    app = bootstrap(config.load_settings({"STOREFRONT_DB_URL": sqlite_url}))
    try:
        assert app.engine is not None
        assert app.transactions.stores == frozenset({StoreType.MEMORY, StoreType.SQL})
        user = app.users.create("ada@example.com", "Ada", "hash")
        assert app.users.get(user.aggregate_id).email == "ada@example.com"
    finally:
        app.engine.dispose()


def test_redis_cache_without_url_is_rejected():
    """Settings built by hand still need a Redis URL for the redis cache."""
    with pytest.raises(config.ConfigError) as exc:
        bootstrap(Settings(cache_backend=CacheBackend.REDIS, redis_url=None))
    assert exc.value.variable == "STOREFRONT_REDIS_URL"


def test_unsupported_store_is_rejected():
    """A store without an adapter fails at bootstrap."""
    with pytest.raises(UnsupportedStoreError):
        bootstrap(Settings(order_store=StoreType.DOCUMENT))


def test_loads_settings_from_environment(monkeypatch):
    """Without explicit settings the environment is read."""
    monkeypatch.delenv("STOREFRONT_DB_URL", raising=False)
    monkeypatch.setenv("STOREFRONT_PAGE_SIZE", "7")
    app = bootstrap()
    assert app.settings.default_page_size == 7
