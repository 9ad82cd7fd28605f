"""Repository contracts, one per aggregate.

Every method accepts an optional transaction as ``tx``. ``None`` means "no
explicit transaction": the repository performs the operation on its default
connection and commits it immediately. A transaction opened against another
store is rejected with `TransactionMismatchError`.

Read methods never return soft-deleted aggregates. ``delete`` is always a soft
delete: the record is stamped with ``deleted_at`` and kept.
"""

from __future__ import annotations

import abc
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.domain.aggregates import Order, Product, User
    from storefront.domain.audit import AuditLog
    from storefront.domain.value_objects import OrderStatus

    from .transaction import StoreType, Transaction


class UserRepository(abc.ABC):
    """Persistence contract for users."""

    store: StoreType

    @abc.abstractmethod
    def add(self, user: User, tx: Transaction | None = None) -> None:
        """Insert a new user.

        Raises:
            EmailAlreadyRegisteredError: If the store already holds the email.
        """

    @abc.abstractmethod
    def update(self, user: User, tx: Transaction | None = None) -> None:
        """Overwrite the stored state of an existing user.

        Raises:
            UserNotFoundError: If the user does not exist or is deleted.
        """

    @abc.abstractmethod
    def delete(
        self,
        user_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        """Soft-delete a user (``deleted_at`` defaults to now).

        Raises:
            UserNotFoundError: If the user does not exist or is already deleted.
        """

    @abc.abstractmethod
    def get_by_id(self, user_id: str, tx: Transaction | None = None) -> User | None:
        """Return the user with *user_id*, or None."""

    @abc.abstractmethod
    def get_by_email(self, email: str, tx: Transaction | None = None) -> User | None:
        """Return the user registered with *email*, or None."""

    @abc.abstractmethod
    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[User], int]:
        """Return a page of users (newest first) and the total count."""


class ProductRepository(abc.ABC):
    """Persistence contract for products."""

    store: StoreType

    @abc.abstractmethod
    def add(self, product: Product, tx: Transaction | None = None) -> None:
        """Insert a new product."""

    @abc.abstractmethod
    def update(self, product: Product, tx: Transaction | None = None) -> None:
        """Overwrite name, description and price of an existing product.

        Raises:
            ProductNotFoundError: If the product does not exist or is deleted.
        """

    @abc.abstractmethod
    def update_stock(
        self, product_id: str, delta: int, tx: Transaction | None = None
    ) -> int:
        """Atomically apply a signed delta to the stock level.

        Returns:
            The new stock level.

        Raises:
            ProductNotFoundError: If the product does not exist or is deleted.
            InsufficientStockError: If the stock would become negative; the
                stored level is unchanged.
        """

    @abc.abstractmethod
    def delete(
        self,
        product_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        """Soft-delete a product.

        Raises:
            ProductNotFoundError: If the product does not exist or is deleted.
        """

    @abc.abstractmethod
    def get_by_id(
        self, product_id: str, tx: Transaction | None = None
    ) -> Product | None:
        """Return the product with *product_id*, or None."""

    @abc.abstractmethod
    def get_by_name(self, name: str, tx: Transaction | None = None) -> Product | None:
        """Return the product called *name*, or None."""

    @abc.abstractmethod
    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Product], int]:
        """Return a page of products (newest first) and the total count."""


class OrderRepository(abc.ABC):
    """Persistence contract for orders and their items."""

    store: StoreType

    @abc.abstractmethod
    def add(self, order: Order, tx: Transaction | None = None) -> None:
        """Insert a new order together with its items."""

    @abc.abstractmethod
    def update(self, order: Order, tx: Transaction | None = None) -> None:
        """Overwrite the stored state of an existing order.

        Raises:
            OrderNotFoundError: If the order does not exist or is deleted.
        """

    @abc.abstractmethod
    def update_status(
        self, order_id: str, status: OrderStatus, tx: Transaction | None = None
    ) -> None:
        """Set the status of an existing order.

        Raises:
            OrderNotFoundError: If the order does not exist or is deleted.
        """

    @abc.abstractmethod
    def delete(
        self,
        order_id: str,
        tx: Transaction | None = None,
        *,
        deleted_at: datetime | None = None,
    ) -> None:
        """Soft-delete an order.

        Raises:
            OrderNotFoundError: If the order does not exist or is deleted.
        """

    @abc.abstractmethod
    def get_by_id(self, order_id: str, tx: Transaction | None = None) -> Order | None:
        """Return the order with *order_id*, or None."""

    @abc.abstractmethod
    def get_by_user_id(
        self, user_id: str, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Order], int]:
        """Return a page of a user's orders (newest first) and their total count."""

    @abc.abstractmethod
    def list(
        self, offset: int, limit: int, tx: Transaction | None = None
    ) -> tuple[Sequence[Order], int]:
        """Return a page of orders (newest first) and the total count."""


class AuditLogRepository(abc.ABC):
    """Append-only persistence contract for audit records."""

    store: StoreType

    @abc.abstractmethod
    def add(self, log: AuditLog, tx: Transaction | None = None) -> None:
        """Append a record.

        Raises:
            DuplicateAuditLogError: If a record with the same ID exists.
        """

    @abc.abstractmethod
    def get_by_id(self, audit_id: str, tx: Transaction | None = None) -> AuditLog | None:
        """Return the record with *audit_id*, or None."""

    @abc.abstractmethod
    def find_by_entity_type(
        self,
        entity_type: str,
        limit: int,
        after: str | None = None,
        tx: Transaction | None = None,
    ) -> tuple[Sequence[AuditLog], str | None]:
        """Return up to *limit* records of *entity_type* ordered by ID.

        Args:
            entity_type: The entity type to filter on.
            limit: Maximum number of records to return.
            after: Return only records whose ID sorts after this key.
            tx: Optional transaction.

        Returns:
            The records and the key to pass as *after* for the next page, or
            None when there are no further records.
        """

    @abc.abstractmethod
    def find_by_entity_id(
        self, entity_type: str, entity_id: str, tx: Transaction | None = None
    ) -> Sequence[AuditLog]:
        """Return every record for one entity, oldest first."""
