"""Domain events raised by the Storefront aggregates.

Every event is an immutable fact with a dotted ``NAME`` (``"order.created"``,
``"product.stock_updated"``, ...), the ID of the aggregate that raised it and a
JSON-safe payload.
"""

import abc
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, ClassVar

from .utils import to_jsonable
from .value_objects import OrderItem


@dataclass(frozen=True, slots=True)
class DomainEvent(abc.ABC):
    """Base class for all domain events.
    Requires a way to determine the owning aggregate ID.
    """

    NAME: ClassVar[str]

    @property
    @abc.abstractmethod
    def aggregate_id(self) -> str:
        """Return the ID of the aggregate this event belongs to."""

    @property
    def actor_id(self) -> str | None:
        """ID of the user on whose behalf the event happened, when known."""
        return None

    def payload(self) -> dict[str, Any]:
        """Return the event fields as a JSON-safe dict."""
        return {f.name: to_jsonable(getattr(self, f.name)) for f in fields(self)}


# --- User events ---


@dataclass(frozen=True, slots=True)
class UserCreated(DomainEvent):
    """A user has registered."""

    NAME: ClassVar[str] = "user.created"

    user_id: str
    email: str
    name: str
    password: str

    @property
    def aggregate_id(self) -> str:
        return self.user_id

    @property
    def actor_id(self) -> str | None:
        return self.user_id

    def payload(self) -> dict[str, Any]:
        # the password hash never leaves the aggregate
        return {"user_id": self.user_id, "email": self.email, "name": self.name}


@dataclass(frozen=True, slots=True)
class UserUpdated(DomainEvent):
    """A user's profile has changed."""

    NAME: ClassVar[str] = "user.updated"

    user_id: str
    name: str

    @property
    def aggregate_id(self) -> str:
        return self.user_id

    @property
    def actor_id(self) -> str | None:
        return self.user_id


@dataclass(frozen=True, slots=True)
class UserPasswordChanged(DomainEvent):
    """A user's password hash has been replaced."""

    NAME: ClassVar[str] = "user.password_changed"

    user_id: str
    password: str

    @property
    def aggregate_id(self) -> str:
        return self.user_id

    @property
    def actor_id(self) -> str | None:
        return self.user_id

    def payload(self) -> dict[str, Any]:
        return {"user_id": self.user_id}


@dataclass(frozen=True, slots=True)
class UserDeleted(DomainEvent):
    """A user has been soft-deleted."""

    NAME: ClassVar[str] = "user.deleted"

    user_id: str
    deleted_at: str  # UTC datetime in ISO format

    @property
    def aggregate_id(self) -> str:
        return self.user_id


# --- Product events ---


@dataclass(frozen=True, slots=True)
class ProductCreated(DomainEvent):
    """A product has been added to the catalogue."""

    NAME: ClassVar[str] = "product.created"

    product_id: str
    name: str
    description: str
    price: Decimal
    stock: int

    @property
    def aggregate_id(self) -> str:
        return self.product_id


@dataclass(frozen=True, slots=True)
class ProductUpdated(DomainEvent):
    """A product's name, description or price has changed."""

    NAME: ClassVar[str] = "product.updated"

    product_id: str
    name: str
    description: str
    price: Decimal

    @property
    def aggregate_id(self) -> str:
        return self.product_id


@dataclass(frozen=True, slots=True)
class ProductStockUpdated(DomainEvent):
    """A signed delta has been applied to a product's stock."""

    NAME: ClassVar[str] = "product.stock_updated"

    product_id: str
    old_stock: int
    new_stock: int
    change: int

    @property
    def aggregate_id(self) -> str:
        return self.product_id


@dataclass(frozen=True, slots=True)
class ProductDeleted(DomainEvent):
    """A product has been soft-deleted."""

    NAME: ClassVar[str] = "product.deleted"

    product_id: str
    deleted_at: str  # UTC datetime in ISO format

    @property
    def aggregate_id(self) -> str:
        return self.product_id


# --- Order events ---


@dataclass(frozen=True, slots=True)
class OrderCreated(DomainEvent):
    """An order has been placed."""

    NAME: ClassVar[str] = "order.created"

    order_id: str
    user_id: str
    items: tuple[OrderItem, ...]
    total: Decimal

    @property
    def aggregate_id(self) -> str:
        return self.order_id

    @property
    def actor_id(self) -> str | None:
        return self.user_id

    @property
    def item_count(self) -> int:
        """Number of lines on the order."""
        return len(self.items)

    def payload(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "item_count": self.item_count,
            "total": str(self.total),
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True, slots=True)
class OrderStatusChanged(DomainEvent):
    """An order moved along its lifecycle."""

    NAME: ClassVar[str] = "order.status_changed"

    order_id: str
    old_status: str
    new_status: str

    @property
    def aggregate_id(self) -> str:
        return self.order_id


@dataclass(frozen=True, slots=True)
class OrderCancelled(DomainEvent):
    """An order has been canceled."""

    NAME: ClassVar[str] = "order.cancelled"

    order_id: str
    old_status: str

    @property
    def aggregate_id(self) -> str:
        return self.order_id


@dataclass(frozen=True, slots=True)
class OrderDeleted(DomainEvent):
    """An order has been soft-deleted."""

    NAME: ClassVar[str] = "order.deleted"

    order_id: str
    deleted_at: str  # UTC datetime in ISO format

    @property
    def aggregate_id(self) -> str:
        return self.order_id


# Registry of domain event types keyed by event name
DOMAIN_EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    cls.NAME: cls
    for cls in (
        UserCreated,
        UserUpdated,
        UserPasswordChanged,
        UserDeleted,
        ProductCreated,
        ProductUpdated,
        ProductStockUpdated,
        ProductDeleted,
        OrderCreated,
        OrderStatusChanged,
        OrderCancelled,
        OrderDeleted,
    )
}
