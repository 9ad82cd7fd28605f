"""Cache-aside decorators for the read-heavy services.

Each decorator implements the same contract as the service it wraps. Reads
are answered from the cache when possible and populate it on a miss; writes
go to the wrapped service first and then invalidate (and, where the fresh
value is known, repopulate) the affected keys. Listings are never cached.

The cache is a secondary effect: a failing cache is logged at WARNING and the
call falls through to the wrapped service.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import timedelta
from decimal import Decimal
from typing import Any

from storefront.domain.aggregates import Product, User
from storefront.domain.unset import UNSET, Unsettable
from storefront.interfaces.cache import Cache, CacheMetrics
from storefront.interfaces.errors import CacheError
from storefront.interfaces.services import ProductService, UserService

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=30)


class _CacheAside:
    """Cache access that never raises and records lookup outcomes."""

    def __init__(
        self,
        entity: str,
        cache: Cache,
        metrics: CacheMetrics | None,
        ttl: timedelta,
    ) -> None:
        self.entity = entity
        self._cache = cache
        self._metrics = metrics
        self._ttl = ttl

    def read(self, key: str) -> Any | None:
        try:
            return self._cache.get(key)
        except CacheError as e:
            logger.warning("Cache read of %s failed: %s", key, e)
            return None

    def write(self, key: str, value: Any) -> None:
        try:
            self._cache.set(key, value, self._ttl)
        except CacheError as e:
            logger.warning("Cache write of %s failed: %s", key, e)

    def evict(self, *keys: str) -> None:
        for key in keys:
            try:
                self._cache.delete(key)
            except CacheError as e:
                logger.warning("Cache eviction of %s failed: %s", key, e)

    def hit(self) -> None:
        if self._metrics is not None:
            self._metrics.record_hit(self.entity)

    def miss(self) -> None:
        if self._metrics is not None:
            self._metrics.record_miss(self.entity)


# ============================================================================
#                               Users
# ============================================================================


def user_key(user_id: str) -> str:
    """Primary cache key of a user."""
    return f"user:{user_id}"


def user_email_key(email: str) -> str:
    """Secondary cache key mapping an email to a user ID."""
    return f"user:email:{email}"


class CachedUserService(UserService):
    """`UserService` decorator caching users by ID and by email."""

    def __init__(
        self,
        delegate: UserService,
        cache: Cache,
        metrics: CacheMetrics | None = None,
        ttl: timedelta = DEFAULT_TTL,
    ) -> None:
        self._delegate = delegate
        self._cache = _CacheAside("user", cache, metrics, ttl)

    def _populate(self, user: User) -> None:
        self._cache.write(user_key(user.aggregate_id), user.to_snapshot())
        self._cache.write(user_email_key(user.email), user.aggregate_id)

    def _invalidate(self, user_id: str, previous: User | None) -> None:
        keys = [user_key(user_id)]
        if previous is not None:
            keys.append(user_email_key(previous.email))
        self._cache.evict(*keys)

    def create(self, email: str, name: str, password: str) -> User:
        user = self._delegate.create(email, name, password)
        self._populate(user)
        return user

    def update(self, user_id: str, name: str) -> User:
        previous = self._delegate.get(user_id)
        user = self._delegate.update(user_id, name)
        self._invalidate(user_id, previous)
        self._populate(user)
        return user

    def change_password(self, user_id: str, password: str) -> User:
        previous = self._delegate.get(user_id)
        user = self._delegate.change_password(user_id, password)
        self._invalidate(user_id, previous)
        self._populate(user)
        return user

    def delete(self, user_id: str) -> None:
        previous = self._delegate.get(user_id)
        self._delegate.delete(user_id)
        self._invalidate(user_id, previous)

    def get(self, user_id: str) -> User | None:
        if (snapshot := self._cache.read(user_key(user_id))) is not None:
            self._cache.hit()
            return User.from_snapshot(snapshot)
        self._cache.miss()
        if (user := self._delegate.get(user_id)) is not None:
            self._populate(user)
        return user

    def get_by_email(self, email: str) -> User | None:
        if (user_id := self._cache.read(user_email_key(email))) is not None:
            if (snapshot := self._cache.read(user_key(user_id))) is not None:
                self._cache.hit()
                return User.from_snapshot(snapshot)
        self._cache.miss()
        if (user := self._delegate.get_by_email(email)) is not None:
            self._populate(user)
        return user

    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[User], int]:
        return self._delegate.list(offset, limit)


# ============================================================================
#                               Products
# ============================================================================


def product_key(product_id: str) -> str:
    """Primary cache key of a product."""
    return f"product:{product_id}"


def product_name_key(name: str) -> str:
    """Secondary cache key mapping a product name to a product ID."""
    return f"product:name:{name}"


class CachedProductService(ProductService):
    """`ProductService` decorator caching products by ID and by name.

    Stock changes only evict the product: stock moves too often for
    repopulating on every reservation to pay off.
    """

    def __init__(
        self,
        delegate: ProductService,
        cache: Cache,
        metrics: CacheMetrics | None = None,
        ttl: timedelta = DEFAULT_TTL,
    ) -> None:
        self._delegate = delegate
        self._cache = _CacheAside("product", cache, metrics, ttl)

    def _populate(self, product: Product) -> None:
        self._cache.write(product_key(product.aggregate_id), product.to_snapshot())
        self._cache.write(product_name_key(product.name), product.aggregate_id)

    def _invalidate(self, product_id: str, previous: Product | None) -> None:
        keys = [product_key(product_id)]
        if previous is not None:
            keys.append(product_name_key(previous.name))
        self._cache.evict(*keys)

    def create(
        self,
        name: str,
        description: str,
        price: Decimal | int | float | str,
        stock: int,
    ) -> Product:
        product = self._delegate.create(name, description, price, stock)
        self._populate(product)
        return product

    def update(
        self,
        product_id: str,
        *,
        name: Unsettable[str] = UNSET,
        description: Unsettable[str] = UNSET,
        price: Unsettable[Decimal | int | float | str] = UNSET,
    ) -> Product:
        previous = self._delegate.get(product_id)
        product = self._delegate.update(
            product_id, name=name, description=description, price=price
        )
        self._invalidate(product_id, previous)
        self._populate(product)
        return product

    def update_stock(self, product_id: str, delta: int) -> Product:
        product = self._delegate.update_stock(product_id, delta)
        self._cache.evict(product_key(product_id))
        return product

    def reserve_stock(self, product_id: str, quantity: int) -> Product:
        product = self._delegate.reserve_stock(product_id, quantity)
        self._cache.evict(product_key(product_id))
        return product

    def delete(self, product_id: str) -> None:
        previous = self._delegate.get(product_id)
        self._delegate.delete(product_id)
        self._invalidate(product_id, previous)

    def get(self, product_id: str) -> Product | None:
        if (snapshot := self._cache.read(product_key(product_id))) is not None:
            self._cache.hit()
            return Product.from_snapshot(snapshot)
        self._cache.miss()
        if (product := self._delegate.get(product_id)) is not None:
            self._populate(product)
        return product

    def get_by_name(self, name: str) -> Product | None:
        if (product_id := self._cache.read(product_name_key(name))) is not None:
            if (snapshot := self._cache.read(product_key(product_id))) is not None:
                self._cache.hit()
                return Product.from_snapshot(snapshot)
        self._cache.miss()
        if (product := self._delegate.get_by_name(name)) is not None:
            self._populate(product)
        return product

    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[Product], int]:
        return self._delegate.list(offset, limit)
