"""Value objects used across the domain layer."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from .errors import ValidationError


class OrderStatus(str, Enum):
    """Enumeration of possible order statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"


CENT = Decimal("0.01")


def to_money(value: Decimal | int | float | str, *, field: str) -> Decimal:
    """Coerce a numeric value into a `Decimal` amount with two decimal places.

    Floats go through their shortest ``repr`` so that ``9.99`` becomes
    ``Decimal("9.99")`` rather than its binary expansion. Every store keeps
    amounts to the cent, so finer amounts are refused rather than rounded.

    Raises:
        ValidationError: If the value is not numeric, not strictly positive
            or has a fraction of a cent.
    """
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError as e:
        raise ValidationError(field, "must be a number") from e
    if not amount.is_finite():
        raise ValidationError(field, "must be a finite number")
    if amount <= 0:
        raise ValidationError(field, "must be greater than zero")
    try:
        cents = amount.quantize(CENT)
    except ArithmeticError as e:
        raise ValidationError(field, "is too large") from e
    if cents != amount:
        raise ValidationError(field, "must not have more than two decimal places")
    return cents


@dataclass(frozen=True, slots=True)
class OrderItem:
    """A single line of an order: a product, how many, and at what unit price."""

    item_id: str
    product_id: str
    quantity: int
    price: Decimal

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValidationError("item_id", "is required")
        if not self.product_id:
            raise ValidationError("product_id", "is required")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError("quantity", "must be an integer")
        if self.quantity <= 0:
            raise ValidationError("quantity", "must be greater than zero")
        # frozen: bypass __setattr__ to store the normalised price
        object.__setattr__(self, "price", to_money(self.price, field="price"))

    @property
    def subtotal(self) -> Decimal:
        """Quantity times unit price."""
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation of the item."""
        return {
            "item_id": self.item_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        """Rebuild an item from `to_dict` output."""
        return cls(
            item_id=data["item_id"],
            product_id=data["product_id"],
            quantity=int(data["quantity"]),
            price=Decimal(str(data["price"])),
        )
