"""SQLAlchemy Core repositories.

Each repository runs its statements on the `Connection` carried by a
`SqlAlchemyTransaction`, or, without a transaction, on a short-lived
connection from its engine that commits on success.

A duplicate email becomes `EmailAlreadyRegisteredError` and a duplicate audit ID
`DuplicateAuditLogError`; other SQLAlchemy errors are re-raised as
`StoreUnavailableError`.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.domain import errors
from storefront.domain.aggregates import Order, Product, User
from storefront.domain.audit import AuditLog
from storefront.domain.utils import utc_now
from storefront.domain.value_objects import OrderStatus
from storefront.interfaces.errors import StoreUnavailableError
from storefront.interfaces.repositories import (
    AuditLogRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)
from storefront.interfaces.transaction import StoreType, resolve_handle

from ..db.schema import audit_logs, order_items, orders, products, users

if TYPE_CHECKING:
    from sqlalchemy import Row, Table
    from sqlalchemy.engine import Connection, Engine

    from storefront.interfaces.transaction import Transaction


class _SqlAlchemyRepository:
    """Connection handling shared by the SQL repositories."""

    store = StoreType.SQL

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @contextmanager
    def _connect(self, tx: Transaction | None) -> Iterator[Connection]:
        connection: Connection | None = resolve_handle(tx, self.store)
        try:
            if connection is not None:
                yield connection
            else:
                with self.engine.begin() as conn:
                    yield conn
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    @staticmethod
    def _soft_delete(
        conn: Connection,
        table: Table,
        aggregate_id: str,
        deleted_at: datetime | None,
    ) -> bool:
        stamp = deleted_at or utc_now()
        result = conn.execute(
            update(table)
            .where(table.c.id == aggregate_id, table.c.deleted_at.is_(None))
            .values(deleted_at=stamp, updated_at=stamp)
        )
        return result.rowcount == 1

    @staticmethod
    def _count(conn: Connection, table: Table, *criteria: Any) -> int:
        stmt = (
            select(func.count())
            .select_from(table)
            .where(table.c.deleted_at.is_(None), *criteria)
        )
        return int(conn.execute(stmt).scalar_one())


def _timestamps(row: Row) -> dict[str, Any]:
    return {
        "created_at": row.created_at.isoformat(),
        "updated_at": row.updated_at.isoformat(),
        "deleted_at": row.deleted_at.isoformat() if row.deleted_at else None,
    }


# ============================================================================
#                                   Users
# ============================================================================


class SqlAlchemyUserRepository(_SqlAlchemyRepository, UserRepository):
    """Users stored in the ``users`` table."""

    @staticmethod
    def _to_user(row: Row) -> User:
        return User.from_snapshot(
            {
                "id": row.id,
                "email": row.email,
                "name": row.name,
                "password": row.password,
                **_timestamps(row),
            }
        )

    @staticmethod
    def _values(user: User) -> dict[str, Any]:
        return {
            "email": user.email,
            "name": user.name,
            "password": user.password,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
            "deleted_at": user.deleted_at,
        }

    def add(self, user: User, tx: Transaction | None = None) -> None:
        with self._connect(tx) as conn:
            try:
                conn.execute(
                    insert(users).values(id=user.aggregate_id, **self._values(user))
                )
            except IntegrityError as e:
                if "email" in str(e.orig).lower():
                    raise errors.EmailAlreadyRegisteredError(user.email) from e
                raise

    def update(self, user: User, tx: Transaction | None = None) -> None:
        with self._connect(tx) as conn:
            result = conn.execute(
                update(users)
                .where(users.c.id == user.aggregate_id, users.c.deleted_at.is_(None))
                .values(**self._values(user))
            )
            if result.rowcount != 1:
                raise errors.UserNotFoundError(user.aggregate_id)

    def delete(
        self,
        user_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        with self._connect(tx) as conn:
            if not self._soft_delete(conn, users, user_id, deleted_at):
                raise errors.UserNotFoundError(user_id)

    def get_by_id(self, user_id: str, tx: Transaction | None = None) -> User | None:
        stmt = select(users).where(users.c.id == user_id, users.c.deleted_at.is_(None))
        with self._connect(tx) as conn:
            row = conn.execute(stmt).fetchone()
        return None if row is None else self._to_user(row)

    def get_by_email(self, email: str, tx: Transaction | None = None) -> User | None:
        stmt = select(users).where(users.c.email == email, users.c.deleted_at.is_(None))
        with self._connect(tx) as conn:
            row = conn.execute(stmt).fetchone()
        return None if row is None else self._to_user(row)

    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[User], int]:
        stmt = (
            select(users)
            .where(users.c.deleted_at.is_(None))
            .order_by(users.c.created_at.desc(), users.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self._connect(tx) as conn:
            rows = conn.execute(stmt).fetchall()
            total = self._count(conn, users)
        return [self._to_user(row) for row in rows], total


# ============================================================================
#                                   Products
# ============================================================================


class SqlAlchemyProductRepository(_SqlAlchemyRepository, ProductRepository):
    """Products stored in the ``products`` table."""

    @staticmethod
    def _to_product(row: Row) -> Product:
        return Product.from_snapshot(
            {
                "id": row.id,
                "name": row.name,
                "description": row.description,
                "price": str(row.price),
                "stock": row.stock,
                **_timestamps(row),
            }
        )

    def add(self, product: Product, tx: Transaction | None = None) -> None:
        with self._connect(tx) as conn:
            conn.execute(
                insert(products).values(
                    id=product.aggregate_id,
                    name=product.name,
                    description=product.description,
                    price=product.price,
                    stock=product.stock,
                    created_at=product.created_at,
                    updated_at=product.updated_at,
                    deleted_at=product.deleted_at,
                )
            )

    def update(self, product: Product, tx: Transaction | None = None) -> None:
        # stock only changes through update_stock
        with self._connect(tx) as conn:
            result = conn.execute(
                update(products)
                .where(
                    products.c.id == product.aggregate_id,
                    products.c.deleted_at.is_(None),
                )
                .values(
                    name=product.name,
                    description=product.description,
                    price=product.price,
                    updated_at=product.updated_at,
                )
            )
            if result.rowcount != 1:
                raise errors.ProductNotFoundError(product.aggregate_id)

    def update_stock(
        self, product_id: str, delta: int, tx: Transaction | None = None
    ) -> int:
        live = (products.c.id == product_id, products.c.deleted_at.is_(None))
        with self._connect(tx) as conn:
            # single conditional UPDATE: the check and the write cannot interleave
            result = conn.execute(
                update(products)
                .where(*live, products.c.stock + delta >= 0)
                .values(stock=products.c.stock + delta, updated_at=utc_now())
            )
            current = conn.execute(select(products.c.stock).where(*live)).fetchone()
            if current is None:
                raise errors.ProductNotFoundError(product_id)
            if result.rowcount != 1:
                raise errors.InsufficientStockError(product_id, current.stock, delta)
            return int(current.stock)

    def delete(
        self,
        product_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        with self._connect(tx) as conn:
            if not self._soft_delete(conn, products, product_id, deleted_at):
                raise errors.ProductNotFoundError(product_id)

    def get_by_id(
        self, product_id: str, tx: Transaction | None = None
    ) -> Product | None:
        stmt = select(products).where(
            products.c.id == product_id, products.c.deleted_at.is_(None)
        )
        with self._connect(tx) as conn:
            row = conn.execute(stmt).fetchone()
        return None if row is None else self._to_product(row)

    def get_by_name(self, name: str, tx: Transaction | None = None) -> Product | None:
        stmt = (
            select(products)
            .where(products.c.name == name, products.c.deleted_at.is_(None))
            .order_by(products.c.created_at)
            .limit(1)
        )
        with self._connect(tx) as conn:
            row = conn.execute(stmt).fetchone()
        return None if row is None else self._to_product(row)

    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Product], int]:
        stmt = (
            select(products)
            .where(products.c.deleted_at.is_(None))
            .order_by(products.c.created_at.desc(), products.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self._connect(tx) as conn:
            rows = conn.execute(stmt).fetchall()
            total = self._count(conn, products)
        return [self._to_product(row) for row in rows], total


# ============================================================================
#                                   Orders
# ============================================================================


class SqlAlchemyOrderRepository(_SqlAlchemyRepository, OrderRepository):
    """Orders stored in the ``orders`` and ``order_items`` tables."""

    @staticmethod
    def _load(conn: Connection, rows: Sequence[Row]) -> list[Order]:
        if not rows:
            return []
        item_rows = conn.execute(
            select(order_items)
            .where(order_items.c.order_id.in_([row.id for row in rows]))
            .order_by(order_items.c.order_id, order_items.c.position)
        ).fetchall()
        items: dict[str, list[dict[str, Any]]] = {}
        for item in item_rows:
            items.setdefault(item.order_id, []).append(
                {
                    "item_id": item.id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price": str(item.price),
                }
            )
        return [
            Order.from_snapshot(
                {
                    "id": row.id,
                    "user_id": row.user_id,
                    "status": row.status,
                    "items": items.get(row.id, []),
                    **_timestamps(row),
                }
            )
            for row in rows
        ]

    def add(self, order: Order, tx: Transaction | None = None) -> None:
        with self._connect(tx) as conn:
            conn.execute(
                insert(orders).values(
                    id=order.aggregate_id,
                    user_id=order.user_id,
                    status=order.status.value,
                    total=order.total,
                    created_at=order.created_at,
                    updated_at=order.updated_at,
                    deleted_at=order.deleted_at,
                )
            )
            conn.execute(
                insert(order_items),
                [
                    {
                        "id": item.item_id,
                        "order_id": order.aggregate_id,
                        "position": position,
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "price": item.price,
                    }
                    for position, item in enumerate(order.items)
                ],
            )

    def update(self, order: Order, tx: Transaction | None = None) -> None:
        # items are fixed once the order is placed
        with self._connect(tx) as conn:
            result = conn.execute(
                update(orders)
                .where(orders.c.id == order.aggregate_id, orders.c.deleted_at.is_(None))
                .values(
                    status=order.status.value,
                    total=order.total,
                    updated_at=order.updated_at,
                )
            )
            if result.rowcount != 1:
                raise errors.OrderNotFoundError(order.aggregate_id)

    def update_status(
        self, order_id: str, status: OrderStatus, tx: Transaction | None = None
    ) -> None:
        with self._connect(tx) as conn:
            result = conn.execute(
                update(orders)
                .where(orders.c.id == order_id, orders.c.deleted_at.is_(None))
                .values(status=OrderStatus(status).value, updated_at=utc_now())
            )
            if result.rowcount != 1:
                raise errors.OrderNotFoundError(order_id)

    def delete(
        self,
        order_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        with self._connect(tx) as conn:
            if not self._soft_delete(conn, orders, order_id, deleted_at):
                raise errors.OrderNotFoundError(order_id)

    def get_by_id(self, order_id: str, tx: Transaction | None = None) -> Order | None:
        stmt = select(orders).where(
            orders.c.id == order_id, orders.c.deleted_at.is_(None)
        )
        with self._connect(tx) as conn:
            loaded = self._load(conn, conn.execute(stmt).fetchall())
        return loaded[0] if loaded else None

    def _page(
        self, offset: int, limit: int, tx: Transaction | None, *criteria: Any
    ) -> tuple[Sequence[Order], int]:
        stmt = (
            select(orders)
            .where(orders.c.deleted_at.is_(None), *criteria)
            .order_by(orders.c.created_at.desc(), orders.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self._connect(tx) as conn:
            loaded = self._load(conn, conn.execute(stmt).fetchall())
            total = self._count(conn, orders, *criteria)
        return loaded, total

    def get_by_user_id(
        self, user_id: str, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Order], int]:
        return self._page(offset, limit, tx, orders.c.user_id == user_id)

    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Order], int]:
        return self._page(offset, limit, tx)


# ============================================================================
#                                 Audit logs
# ============================================================================


class SqlAlchemyAuditLogRepository(_SqlAlchemyRepository, AuditLogRepository):
    """Append-only audit records stored in the ``audit_logs`` table."""

    @staticmethod
    def _to_log(row: Row) -> AuditLog:
        return AuditLog(
            audit_id=row.id,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            action=row.action,
            timestamp=row.timestamp,
            payload=dict(row.payload or {}),
            actor_id=row.actor_id,
        )

    def add(self, log: AuditLog, tx: Transaction | None = None) -> None:
        with self._connect(tx) as conn:
            try:
                conn.execute(
                    insert(audit_logs).values(
                        id=log.audit_id,
                        entity_type=log.entity_type,
                        entity_id=log.entity_id,
                        action=log.action,
                        payload=log.payload,
                        timestamp=log.timestamp,
                        actor_id=log.actor_id,
                    )
                )
            except IntegrityError as e:
                raise errors.DuplicateAuditLogError(log.audit_id) from e

    def get_by_id(self, audit_id: str, tx: Transaction | None = None) -> AuditLog | None:
        with self._connect(tx) as conn:
            row = conn.execute(
                select(audit_logs).where(audit_logs.c.id == audit_id)
            ).fetchone()
        return None if row is None else self._to_log(row)

    def find_by_entity_type(
        self,
        entity_type: str,
        limit: int,
        after: str | None = None,
        tx: Transaction | None = None,
    ) -> tuple[Sequence[AuditLog], str | None]:
        stmt = select(audit_logs).where(audit_logs.c.entity_type == entity_type)
        if after is not None:
            stmt = stmt.where(audit_logs.c.id > after)
        # one extra row tells us whether another page exists
        stmt = stmt.order_by(audit_logs.c.id).limit(limit + 1)
        with self._connect(tx) as conn:
            rows = conn.execute(stmt).fetchall()
        page = [self._to_log(row) for row in rows[:limit]]
        next_key = page[-1].audit_id if len(rows) > limit else None
        return page, next_key

    def find_by_entity_id(
        self, entity_type: str, entity_id: str, tx: Transaction | None = None
    ) -> Sequence[AuditLog]:
        stmt = (
            select(audit_logs)
            .where(
                audit_logs.c.entity_type == entity_type,
                audit_logs.c.entity_id == entity_id,
            )
            .order_by(audit_logs.c.timestamp, audit_logs.c.id)
        )
        with self._connect(tx) as conn:
            rows = conn.execute(stmt).fetchall()
        return [self._to_log(row) for row in rows]
