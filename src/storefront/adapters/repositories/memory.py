"""In-memory repositories backed by an `InMemoryStore`.

Aggregates are stored as snapshots, so callers never share mutable state with
the store: every read rebuilds a fresh aggregate.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from storefront.domain import errors
from storefront.domain.aggregates import Order, Product, User
from storefront.domain.audit import AuditLog
from storefront.domain.utils import utc_now
from storefront.interfaces.repositories import (
    AuditLogRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)
from storefront.interfaces.transaction import StoreType, resolve_handle

if TYPE_CHECKING:
    from storefront.adapters.memory_store import InMemoryStore, Table
    from storefront.domain.aggregates.base import Aggregate
    from storefront.domain.value_objects import OrderStatus
    from storefront.interfaces.transaction import Transaction


def _newest_first(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda row: (row["created_at"], row["id"]), reverse=True)


class _InMemoryAggregateRepository[A: "Aggregate"]:
    """Shared plumbing for the aggregate repositories."""

    store = StoreType.MEMORY
    TABLE: ClassVar[str]
    not_found: ClassVar[type[errors.NotFoundError]]
    factory: ClassVar[Callable[[dict[str, Any]], Any]]

    def __init__(self, memory_store: InMemoryStore) -> None:
        self._memory_store = memory_store

    @contextmanager
    def _table(self, tx: Transaction | None) -> Iterator[Table]:
        memory_store = resolve_handle(tx, self.store) or self._memory_store
        with memory_store.locked():
            yield memory_store.table(self.TABLE)

    @staticmethod
    def _live(table: Table, aggregate_id: str) -> dict[str, Any] | None:
        row = table.get(aggregate_id)
        if row is None or row["deleted_at"] is not None:
            return None
        return row

    def _insert(self, aggregate: A, tx: Transaction | None) -> None:
        with self._table(tx) as table:
            if aggregate.aggregate_id in table:
                raise ValueError(f"Duplicate id {aggregate.aggregate_id!r}")
            table[aggregate.aggregate_id] = aggregate.to_snapshot()

    def _replace(self, aggregate: A, tx: Transaction | None) -> None:
        with self._table(tx) as table:
            if self._live(table, aggregate.aggregate_id) is None:
                raise self.not_found(aggregate.aggregate_id)
            table[aggregate.aggregate_id] = aggregate.to_snapshot()

    def _soft_delete(
        self, aggregate_id: str, tx: Transaction | None, deleted_at: datetime | None
    ) -> None:
        with self._table(tx) as table:
            if (row := self._live(table, aggregate_id)) is None:
                raise self.not_found(aggregate_id)
            stamp = (deleted_at or utc_now()).isoformat()
            table[aggregate_id] = {**row, "deleted_at": stamp, "updated_at": stamp}

    def _get(self, aggregate_id: str, tx: Transaction | None) -> A | None:
        with self._table(tx) as table:
            row = self._live(table, aggregate_id)
            return None if row is None else type(self).factory(row)

    def _find_one(self, tx: Transaction | None, **match: Any) -> A | None:
        with self._table(tx) as table:
            for row in table.values():
                if row["deleted_at"] is None and all(
                    row[k] == v for k, v in match.items()
                ):
                    return type(self).factory(row)
        return None

    def _page(
        self, offset: int, limit: int, tx: Transaction | None, **match: Any
    ) -> tuple[Sequence[A], int]:
        with self._table(tx) as table:
            rows = [
                row
                for row in table.values()
                if row["deleted_at"] is None
                and all(row[k] == v for k, v in match.items())
            ]
        rows = _newest_first(rows)
        page = rows[offset : offset + limit]
        return [type(self).factory(row) for row in page], len(rows)


class InMemoryUserRepository(_InMemoryAggregateRepository[User], UserRepository):
    """Users kept in process memory."""

    TABLE = "users"
    not_found = errors.UserNotFoundError
    factory = User.from_snapshot

    def add(self, user: User, tx: Transaction | None = None) -> None:
        with self._table(tx) as table:
            # mirrors the UNIQUE(email) constraint of the SQL schema
            if any(row["email"] == user.email for row in table.values()):
                raise errors.EmailAlreadyRegisteredError(user.email)
            self._insert(user, tx)

    def update(self, user: User, tx: Transaction | None = None) -> None:
        self._replace(user, tx)

    def delete(
        self,
        user_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        self._soft_delete(user_id, tx, deleted_at)

    def get_by_id(self, user_id: str, tx: Transaction | None = None) -> User | None:
        return self._get(user_id, tx)

    def get_by_email(self, email: str, tx: Transaction | None = None) -> User | None:
        return self._find_one(tx, email=email)

    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[User], int]:
        return self._page(offset, limit, tx)


class InMemoryProductRepository(
    _InMemoryAggregateRepository[Product], ProductRepository
):
    """Products kept in process memory."""

    TABLE = "products"
    not_found = errors.ProductNotFoundError
    factory = Product.from_snapshot

    def add(self, product: Product, tx: Transaction | None = None) -> None:
        self._insert(product, tx)

    def update(self, product: Product, tx: Transaction | None = None) -> None:
        with self._table(tx) as table:
            if (row := self._live(table, product.aggregate_id)) is None:
                raise errors.ProductNotFoundError(product.aggregate_id)
            # stock only changes through update_stock
            table[product.aggregate_id] = {
                **product.to_snapshot(),
                "stock": row["stock"],
            }

    def update_stock(
        self, product_id: str, delta: int, tx: Transaction | None = None
    ) -> int:
        with self._table(tx) as table:
            if (row := self._live(table, product_id)) is None:
                raise errors.ProductNotFoundError(product_id)
            new_stock = row["stock"] + delta
            if new_stock < 0:
                raise errors.InsufficientStockError(product_id, row["stock"], delta)
            table[product_id] = {
                **row,
                "stock": new_stock,
                "updated_at": utc_now().isoformat(),
            }
            return new_stock

    def delete(
        self,
        product_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        self._soft_delete(product_id, tx, deleted_at)

    def get_by_id(
        self, product_id: str, tx: Transaction | None = None
    ) -> Product | None:
        return self._get(product_id, tx)

    def get_by_name(self, name: str, tx: Transaction | None = None) -> Product | None:
        return self._find_one(tx, name=name)

    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Product], int]:
        return self._page(offset, limit, tx)


class InMemoryOrderRepository(_InMemoryAggregateRepository[Order], OrderRepository):
    """Orders kept in process memory."""

    TABLE = "orders"
    not_found = errors.OrderNotFoundError
    factory = Order.from_snapshot

    def add(self, order: Order, tx: Transaction | None = None) -> None:
        self._insert(order, tx)

    def update(self, order: Order, tx: Transaction | None = None) -> None:
        self._replace(order, tx)

    def update_status(
        self, order_id: str, status: OrderStatus, tx: Transaction | None = None
    ) -> None:
        with self._table(tx) as table:
            if (row := self._live(table, order_id)) is None:
                raise errors.OrderNotFoundError(order_id)
            table[order_id] = {
                **row,
                "status": status.value,
                "updated_at": utc_now().isoformat(),
            }

    def delete(
        self,
        order_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        self._soft_delete(order_id, tx, deleted_at)

    def get_by_id(self, order_id: str, tx: Transaction | None = None) -> Order | None:
        return self._get(order_id, tx)

    def get_by_user_id(
        self, user_id: str, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Order], int]:
        return self._page(offset, limit, tx, user_id=user_id)

    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Order], int]:
        return self._page(offset, limit, tx)


class InMemoryAuditLogRepository(AuditLogRepository):
    """Append-only audit records kept in process memory."""

    store = StoreType.MEMORY
    TABLE = "audit_logs"

    def __init__(self, memory_store: InMemoryStore) -> None:
        self._memory_store = memory_store

    @contextmanager
    def _table(self, tx: Transaction | None) -> Iterator[Table]:
        memory_store = resolve_handle(tx, self.store) or self._memory_store
        with memory_store.locked():
            yield memory_store.table(self.TABLE)

    def add(self, log: AuditLog, tx: Transaction | None = None) -> None:
        with self._table(tx) as table:
            if log.audit_id in table:
                raise errors.DuplicateAuditLogError(log.audit_id)
            table[log.audit_id] = log.to_dict()

    def get_by_id(self, audit_id: str, tx: Transaction | None = None) -> AuditLog | None:
        with self._table(tx) as table:
            row = table.get(audit_id)
        return None if row is None else AuditLog.from_dict(row)

    def find_by_entity_type(
        self,
        entity_type: str,
        limit: int,
        after: str | None = None,
        tx: Transaction | None = None,
    ) -> tuple[Sequence[AuditLog], str | None]:
        with self._table(tx) as table:
            rows = sorted(
                (
                    row
                    for row in table.values()
                    if row["entity_type"] == entity_type
                    and (after is None or row["id"] > after)
                ),
                key=lambda row: row["id"],
            )
        page = rows[:limit]
        next_key = page[-1]["id"] if len(rows) > limit else None
        return [AuditLog.from_dict(row) for row in page], next_key

    def find_by_entity_id(
        self, entity_type: str, entity_id: str, tx: Transaction | None = None
    ) -> Sequence[AuditLog]:
        with self._table(tx) as table:
            rows = [
                row
                for row in table.values()
                if row["entity_type"] == entity_type and row["entity_id"] == entity_id
            ]
        rows.sort(key=lambda row: (row["timestamp"], row["id"]))
        return [AuditLog.from_dict(row) for row in rows]
