"""Unit tests for the cache-aside service decorators."""

from unittest import mock

import pytest

from storefront.adapters.cache import InMemoryCache
from storefront.adapters.metrics import InMemoryCacheMetrics
from storefront.service_layer.cached import (
    CachedProductService,
    CachedUserService,
    product_key,
    product_name_key,
    user_email_key,
    user_key,
)
from tests.helpers.logs import assert_logged_containing

from .fakes import FailingCache

# pylint: disable=redefined-outer-name
# pylint: disable=magic-value-comparison


@pytest.fixture
def cache() -> InMemoryCache:
    """An empty in-memory cache."""
    return InMemoryCache()


@pytest.fixture
def metrics() -> InMemoryCacheMetrics:
    """Counting cache metrics."""
    return InMemoryCacheMetrics()


@pytest.fixture
def user_delegate(users):
    """The default user service, wrapped so calls can be counted."""
    return mock.Mock(wraps=users)


@pytest.fixture
def cached_users(user_delegate, cache, metrics) -> CachedUserService:
    """Cached user service."""
    return CachedUserService(user_delegate, cache, metrics)


@pytest.fixture
def product_delegate(products):
    """The default product service, wrapped so calls can be counted."""
    return mock.Mock(wraps=products)


@pytest.fixture
def cached_products(product_delegate, cache, metrics) -> CachedProductService:
    """Cached product service."""
    return CachedProductService(product_delegate, cache, metrics)


class TestCachedUserService:
    """Tests for CachedUserService."""

    @staticmethod
    def test_create_populates_both_keys(cached_users, cache):
        """A new user is cached by ID and by email."""
        user = cached_users.create("ada@example.com", "Ada", "hash")
        assert cache.get(user_key(user.aggregate_id))["email"] == "ada@example.com"
        assert cache.get(user_email_key("ada@example.com")) == user.aggregate_id

    @staticmethod
    def test_get_hits_after_first_miss(cached_users, user_delegate, cache, metrics):
        """The first read populates the cache; the next is a hit."""
        user = cached_users.create("ada@example.com", "Ada", "hash")
        cache.delete(user_key(user.aggregate_id))

        first = cached_users.get(user.aggregate_id)
        second = cached_users.get(user.aggregate_id)

        assert first.name == second.name == "Ada"
        assert user_delegate.get.call_count == 1
        assert metrics.misses("user") == 1
        assert metrics.hits("user") == 1

    @staticmethod
    def test_get_by_email_uses_the_secondary_key(cached_users, user_delegate, metrics):
        """An email lookup resolves through the cached ID."""
        user = cached_users.create("ada@example.com", "Ada", "hash")
        found = cached_users.get_by_email("ada@example.com")
        assert found.aggregate_id == user.aggregate_id
        user_delegate.get_by_email.assert_not_called()
        assert metrics.hits("user") == 1

    @staticmethod
    def test_missing_user_is_not_cached(cached_users, user_delegate, cache):
        """A miss for an unknown ID leaves nothing behind."""
        assert cached_users.get("nobody") is None
        assert cached_users.get("nobody") is None
        assert user_delegate.get.call_count == 2
        assert cache.get(user_key("nobody")) is None

    @staticmethod
    def test_update_refreshes_the_entry(cached_users, cache):
        """After an update the cache holds the new value."""
        user = cached_users.create("ada@example.com", "Ada", "hash")
        cached_users.update(user.aggregate_id, "Ada L.")
        assert cache.get(user_key(user.aggregate_id))["name"] == "Ada L."
        assert cached_users.get(user.aggregate_id).name == "Ada L."

    @staticmethod
    def test_change_password_refreshes_the_entry(cached_users):
        """The cached snapshot carries the new password hash."""
        user = cached_users.create("ada@example.com", "Ada", "hash")
        cached_users.change_password(user.aggregate_id, "new-hash")
        assert cached_users.get(user.aggregate_id).password == "new-hash"

    @staticmethod
    def test_delete_evicts_both_keys(cached_users, cache):
        """A deleted user is neither cached nor found."""
        user = cached_users.create("ada@example.com", "Ada", "hash")
        cached_users.delete(user.aggregate_id)
        assert cache.get(user_key(user.aggregate_id)) is None
        assert cache.get(user_email_key("ada@example.com")) is None
        assert cached_users.get(user.aggregate_id) is None
        assert cached_users.get_by_email("ada@example.com") is None

    @staticmethod
    def test_list_is_never_cached(cached_users, user_delegate):
        """Listings always reach the wrapped service."""
        cached_users.create("ada@example.com", "Ada", "hash")
        cached_users.list()
        cached_users.list()
        assert user_delegate.list.call_count == 2

    @staticmethod
    def test_failing_cache_falls_through(users, caplog):
        """Cache errors are logged and the wrapped service answers."""
        service = CachedUserService(users, FailingCache())
        user = service.create("ada@example.com", "Ada", "hash")
        assert service.get(user.aggregate_id).email == "ada@example.com"
        service.update(user.aggregate_id, "Ada L.")
        service.delete(user.aggregate_id)
        assert service.get(user.aggregate_id) is None
        assert_logged_containing(caplog.records, "Cache read of user:", "WARNING")
        assert_logged_containing(caplog.records, "Cache write of user:", "WARNING")
        assert_logged_containing(caplog.records, "Cache eviction of user:", "WARNING")


class TestCachedProductService:
    """Tests for CachedProductService."""

    @staticmethod
    def test_get_is_served_from_cache(cached_products, product_delegate, metrics):
        """Created products are read without reaching the wrapped service."""
        product = cached_products.create("Widget", "", "9.99", 10)
        assert cached_products.get(product.aggregate_id).stock == 10
        assert cached_products.get_by_name("Widget").aggregate_id == product.aggregate_id
        product_delegate.get.assert_not_called()
        product_delegate.get_by_name.assert_not_called()
        assert metrics.hits("product") == 2

    @staticmethod
    def test_rename_evicts_the_old_name(cached_products, cache):
        """The old name no longer resolves after a rename."""
        product = cached_products.create("Widget", "", "9.99", 10)
        cached_products.update(product.aggregate_id, name="Gizmo")
        assert cache.get(product_name_key("Widget")) is None
        assert cache.get(product_name_key("Gizmo")) == product.aggregate_id
        assert cached_products.get_by_name("Widget") is None
        assert cached_products.get(product.aggregate_id).name == "Gizmo"

    @staticmethod
    @pytest.mark.parametrize(
        "change",
        [
            lambda s, pid: s.update_stock(pid, -3),
            lambda s, pid: s.reserve_stock(pid, 3),
        ],
    )
    def test_stock_changes_evict_the_entry(cached_products, cache, change):
        """Stock changes drop the cached product; the next read is fresh."""
        product = cached_products.create("Widget", "", "9.99", 10)
        change(cached_products, product.aggregate_id)
        assert cache.get(product_key(product.aggregate_id)) is None
        assert cached_products.get(product.aggregate_id).stock == 7

    @staticmethod
    def test_delete_evicts(cached_products, cache):
        """Deleted products leave the cache."""
        product = cached_products.create("Widget", "", "9.99", 10)
        cached_products.delete(product.aggregate_id)
        assert cache.get(product_key(product.aggregate_id)) is None
        assert cache.get(product_name_key("Widget")) is None
        assert cached_products.get(product.aggregate_id) is None

    @staticmethod
    def test_works_without_metrics(products, cache):
        """Metrics are optional."""
        service = CachedProductService(products, cache)
        product = service.create("Widget", "", "9.99", 10)
        assert service.get(product.aggregate_id).name == "Widget"
