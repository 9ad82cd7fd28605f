"""Domain service contracts.

The default services and the cache-aside decorators both implement these
contracts, so callers can use either one through the same call sites.
"""

from __future__ import annotations

import abc
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from storefront.domain.unset import UNSET, Unsettable

if TYPE_CHECKING:
    from storefront.domain.aggregates import Order, Product, User
    from storefront.domain.value_objects import OrderStatus

# pylint: disable=too-many-arguments

DEFAULT_PAGE_SIZE = 10


def clamp_page(
    offset: int, limit: int, default_limit: int = DEFAULT_PAGE_SIZE
) -> tuple[int, int]:
    """Normalise pagination.

    Offset is clamped to at least 0 and a non-positive limit becomes the default.
    """
    return max(offset, 0), (limit if limit > 0 else default_limit)


@dataclass(frozen=True, slots=True)
class OrderItemInput:
    """One requested order line, before it is assigned an item ID."""

    product_id: str
    quantity: int
    price: Decimal | int | float | str


class UserService(abc.ABC):
    """Operations on users."""

    @abc.abstractmethod
    def create(self, email: str, name: str, password: str) -> User:
        """Register a new user.

        Raises:
            ValidationError: If an attribute is invalid.
            EmailAlreadyRegisteredError: If the email is already registered.
        """

    @abc.abstractmethod
    def update(self, user_id: str, name: str) -> User:
        """Change a user's display name.

        Raises:
            UserNotFoundError: If the user does not exist or is deleted.
            ValidationError: If the name is blank.
        """

    @abc.abstractmethod
    def change_password(self, user_id: str, password: str) -> User:
        """Replace a user's (pre-hashed) password."""

    @abc.abstractmethod
    def delete(self, user_id: str) -> None:
        """Soft-delete a user.

        Raises:
            UserNotFoundError: If the user does not exist or is deleted.
        """

    @abc.abstractmethod
    def get(self, user_id: str) -> User | None:
        """Return a user, or None if missing or deleted."""

    @abc.abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Return the user registered with *email*, or None."""

    @abc.abstractmethod
    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[User], int]:
        """Return a page of users and the total count."""


class ProductService(abc.ABC):
    """Operations on products."""

    @abc.abstractmethod
    def create(
        self,
        name: str,
        description: str,
        price: Decimal | int | float | str,
        stock: int,
    ) -> Product:
        """Create a product.

        Raises:
            ValidationError: If an attribute is invalid.
            ProductNameTakenError: If another product already has the name.
        """

    @abc.abstractmethod
    def update(
        self,
        product_id: str,
        *,
        name: Unsettable[str] = UNSET,
        description: Unsettable[str] = UNSET,
        price: Unsettable[Decimal | int | float | str] = UNSET,
    ) -> Product:
        """Apply a partial update to a product.

        Raises:
            ProductNotFoundError: If the product does not exist or is deleted.
            ValidationError: If a new value is invalid.
            ProductNameTakenError: If the new name belongs to another product.
        """

    @abc.abstractmethod
    def update_stock(self, product_id: str, delta: int) -> Product:
        """Apply a signed delta to a product's stock.

        Raises:
            ProductNotFoundError: If the product does not exist or is deleted.
            InsufficientStockError: If the stock would become negative.
        """

    @abc.abstractmethod
    def reserve_stock(self, product_id: str, quantity: int) -> Product:
        """Take *quantity* units of a product out of stock."""

    @abc.abstractmethod
    def delete(self, product_id: str) -> None:
        """Soft-delete a product."""

    @abc.abstractmethod
    def get(self, product_id: str) -> Product | None:
        """Return a product, or None if missing or deleted."""

    @abc.abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return the product called *name*, or None."""

    @abc.abstractmethod
    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[Product], int]:
        """Return a page of products and the total count."""


class OrderService(abc.ABC):
    """Operations on orders."""

    @abc.abstractmethod
    def create(self, user_id: str, items: Sequence[OrderItemInput]) -> Order:
        """Place an order for an existing user.

        Raises:
            ValidationError: If there are no items or an item is invalid.
            UserNotFoundError: If the user does not exist or is deleted.
        """

    @abc.abstractmethod
    def update_status(self, order_id: str, status: OrderStatus | str) -> Order:
        """Move an order to *status*.

        Raises:
            OrderNotFoundError: If the order does not exist or is deleted.
            InvalidStatusTransitionError: If the transition is not allowed.
        """

    @abc.abstractmethod
    def cancel(self, order_id: str) -> Order:
        """Cancel an order.

        Raises:
            OrderNotFoundError: If the order does not exist or is deleted.
            OrderAlreadyCanceledError: If the order is already canceled.
            InvalidStatusTransitionError: If the order has been delivered.
        """

    @abc.abstractmethod
    def delete(self, order_id: str) -> None:
        """Soft-delete an order."""

    @abc.abstractmethod
    def get(self, order_id: str) -> Order | None:
        """Return an order, or None if missing or deleted."""

    @abc.abstractmethod
    def get_by_user_id(
        self, user_id: str, offset: int = 0, limit: int = 0
    ) -> tuple[Sequence[Order], int]:
        """Return a page of a user's orders and their total count."""

    @abc.abstractmethod
    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[Order], int]:
        """Return a page of orders and the total count."""
