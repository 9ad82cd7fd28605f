"""Aggregate representing a catalogue product."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Self

from storefront.domain import errors, events
from storefront.domain.unset import UNSET, Unsettable, resolve
from storefront.domain.utils import parse_datetime
from storefront.domain.value_objects import to_money

from .base import Aggregate

# pylint: disable=too-many-arguments


def _require_name(name: str) -> str:
    if not name or not name.strip():
        raise errors.ValidationError("name", "is required")
    return name


def _require_stock(stock: int) -> int:
    if isinstance(stock, bool) or not isinstance(stock, int):
        raise errors.ValidationError("stock", "must be an integer")
    if stock < 0:
        raise errors.ValidationError("stock", "cannot be negative")
    return stock


class Product(Aggregate):
    """Aggregate representing a catalogue product.

    Invariants: price is strictly positive and stock is never negative. Name
    uniqueness is a store-level concern checked by the product service.
    """

    def __init__(self, aggregate_id: str) -> None:
        super().__init__(aggregate_id)
        self.name: str = ""
        self.description: str = ""
        self.price: Decimal = Decimal("0")
        self.stock: int = 0

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        *,
        name: str,
        description: str = "",
        price: Decimal | int | float | str,
        stock: int = 0,
    ) -> "Product":
        """Create a new product.

        Args:
            aggregate_id: The unique identifier for the product.
            name: Product name; must not be blank.
            description: Free-form description.
            price: Unit price; must be greater than zero.
            stock: Initial stock level; must not be negative.

        Returns:
            Product: The new product with one pending ``product.created`` event.

        Raises:
            ValidationError: If any attribute violates the product invariants.
        """
        _require_name(name)
        amount = to_money(price, field="price")
        _require_stock(stock)

        product = cls(aggregate_id)
        product._enqueue(
            events.ProductCreated(
                product_id=aggregate_id,
                name=name,
                description=description or "",
                price=amount,
                stock=stock,
            )
        )
        return product

    # --- State Transitions ---

    def update(
        self,
        *,
        name: Unsettable[str] = UNSET,
        description: Unsettable[str] = UNSET,
        price: Unsettable[Decimal | int | float | str] = UNSET,
    ) -> None:
        """Apply a partial update to name, description and price.

        Omitted fields keep their current value. ``description=None`` clears
        the description; name and price cannot be cleared.

        Raises:
            ValidationError: If a new value violates the product invariants.
        """
        new_name = _require_name(resolve(name, self.name, clearable=False, field="name"))
        new_description = resolve(
            description, self.description, clearable=True, field="description"
        )
        new_price = to_money(
            resolve(price, self.price, clearable=False, field="price"), field="price"
        )
        self._enqueue(
            events.ProductUpdated(
                product_id=self.aggregate_id,
                name=new_name,
                description=new_description or "",
                price=new_price,
            )
        )

    def adjust_stock(self, delta: int) -> None:
        """Apply a signed delta to the stock level.

        Raises:
            ValidationError: If delta is not an integer.
            InsufficientStockError: If the stock would become negative. The
                stock level is left unchanged.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise errors.ValidationError("delta", "must be an integer")
        new_stock = self.stock + delta
        if new_stock < 0:
            raise errors.InsufficientStockError(self.aggregate_id, self.stock, delta)
        self._enqueue(
            events.ProductStockUpdated(
                product_id=self.aggregate_id,
                old_stock=self.stock,
                new_stock=new_stock,
                change=delta,
            )
        )

    def reserve_stock(self, quantity: int) -> None:
        """Take *quantity* units out of stock.

        Raises:
            ValidationError: If quantity is not a positive integer.
            InsufficientStockError: If not enough units are in stock.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise errors.ValidationError("quantity", "must be an integer")
        if quantity <= 0:
            raise errors.ValidationError("quantity", "must be greater than zero")
        self.adjust_stock(-quantity)

    def _deleted_event(self, deleted_at: datetime) -> events.DomainEvent:
        return events.ProductDeleted(
            product_id=self.aggregate_id, deleted_at=deleted_at.isoformat()
        )

    # --- Event Application ---

    def _apply(self, event: events.DomainEvent) -> None:
        match event:
            case events.ProductCreated():
                self.name = event.name
                self.description = event.description
                self.price = event.price
                self.stock = event.stock
            case events.ProductUpdated():
                self.name = event.name
                self.description = event.description
                self.price = event.price
            case events.ProductStockUpdated():
                self.stock = event.new_stock
            case events.ProductDeleted():
                self.deleted_at = parse_datetime(event.deleted_at)
            case _:
                raise ValueError(f"Unhandled event type: {type(event).__name__}")

    # --- Snapshots ---

    def to_snapshot(self) -> dict[str, Any]:
        return {
            **self._base_snapshot(),
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "stock": self.stock,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> Self:
        product = cls(data["id"])
        product.name = data["name"]
        product.description = data.get("description") or ""
        product.price = Decimal(str(data["price"]))
        product.stock = int(data["stock"])
        product._restore_timestamps(data)
        return product
