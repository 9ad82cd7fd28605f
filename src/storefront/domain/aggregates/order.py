"""Aggregate representing a customer order and its lifecycle."""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Self

from storefront.domain import errors, events
from storefront.domain.utils import parse_datetime
from storefront.domain.value_objects import OrderItem, OrderStatus

from .base import Aggregate

# Terminal states map to an empty set.
ALLOWED_TRANSITIONS: MappingProxyType[OrderStatus, frozenset[OrderStatus]] = (
    MappingProxyType(
        {
            OrderStatus.PENDING: frozenset(
                {OrderStatus.CONFIRMED, OrderStatus.CANCELED}
            ),
            OrderStatus.CONFIRMED: frozenset(
                {OrderStatus.SHIPPED, OrderStatus.CANCELED}
            ),
            OrderStatus.SHIPPED: frozenset(
                {OrderStatus.DELIVERED, OrderStatus.CANCELED}
            ),
            OrderStatus.DELIVERED: frozenset(),
            OrderStatus.CANCELED: frozenset(),
        }
    )
)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Return True if *target* is reachable from *current* in one step."""
    return target in ALLOWED_TRANSITIONS[current]


class Order(Aggregate):
    """Aggregate representing a customer order.

    The total is always derived from the items; it is never stored on, or set
    into, the aggregate.
    """

    def __init__(self, aggregate_id: str) -> None:
        super().__init__(aggregate_id)
        self.user_id: str = ""
        self.items: tuple[OrderItem, ...] = ()
        self.status: OrderStatus = OrderStatus.PENDING

    @property
    def total(self) -> Decimal:
        """Sum of quantity times unit price over all items."""
        return sum((item.subtotal for item in self.items), Decimal("0"))

    # --- Construction Paths ---

    @classmethod
    def place(
        cls, aggregate_id: str, *, user_id: str, items: Sequence[OrderItem]
    ) -> "Order":
        """Place a new order in ``pending`` status.

        Args:
            aggregate_id: The unique identifier for the order.
            user_id: The ID of the ordering user.
            items: At least one order item.

        Returns:
            Order: The new order with one pending ``order.created`` event.

        Raises:
            ValidationError: If the user ID is missing or there are no items.
        """
        if not user_id:
            raise errors.ValidationError("user_id", "is required")
        if not items:
            raise errors.ValidationError("items", "an order needs at least one item")
        lines = tuple(items)

        order = cls(aggregate_id)
        order._enqueue(
            events.OrderCreated(
                order_id=aggregate_id,
                user_id=user_id,
                items=lines,
                total=sum((item.subtotal for item in lines), Decimal("0")),
            )
        )
        return order

    # --- State Transitions ---

    def change_status(self, target: OrderStatus | str) -> None:
        """Move the order to *target* following `ALLOWED_TRANSITIONS`.

        Moving to ``canceled`` records a cancellation event; every other
        transition records a status-changed event.

        Raises:
            InvalidStatusTransitionError: If *target* is not a known status or
                not reachable from the current status. The order is unchanged.
        """
        try:
            target_status = OrderStatus(target)
        except ValueError as e:
            raise errors.InvalidStatusTransitionError(
                self.aggregate_id, self.status.value, str(target)
            ) from e

        if not can_transition(self.status, target_status):
            raise errors.InvalidStatusTransitionError(
                self.aggregate_id, self.status.value, target_status.value
            )

        if target_status is OrderStatus.CANCELED:
            self._enqueue(
                events.OrderCancelled(
                    order_id=self.aggregate_id, old_status=self.status.value
                )
            )
        else:
            self._enqueue(
                events.OrderStatusChanged(
                    order_id=self.aggregate_id,
                    old_status=self.status.value,
                    new_status=target_status.value,
                )
            )

    def cancel(self) -> None:
        """Cancel the order.

        Raises:
            OrderAlreadyCanceledError: If the order is already canceled.
            InvalidStatusTransitionError: If the order has been delivered.
        """
        if self.status is OrderStatus.CANCELED:
            raise errors.OrderAlreadyCanceledError(self.aggregate_id)
        self.change_status(OrderStatus.CANCELED)

    def _deleted_event(self, deleted_at: datetime) -> events.DomainEvent:
        return events.OrderDeleted(
            order_id=self.aggregate_id, deleted_at=deleted_at.isoformat()
        )

    # --- Event Application ---

    def _apply(self, event: events.DomainEvent) -> None:
        match event:
            case events.OrderCreated():
                self.user_id = event.user_id
                self.items = event.items
                self.status = OrderStatus.PENDING
            case events.OrderStatusChanged():
                self.status = OrderStatus(event.new_status)
            case events.OrderCancelled():
                self.status = OrderStatus.CANCELED
            case events.OrderDeleted():
                self.deleted_at = parse_datetime(event.deleted_at)
            case _:
                raise ValueError(f"Unhandled event type: {type(event).__name__}")

    # --- Snapshots ---

    def to_snapshot(self) -> dict[str, Any]:
        return {
            **self._base_snapshot(),
            "user_id": self.user_id,
            "status": self.status.value,
            "items": [item.to_dict() for item in self.items],
            "total": str(self.total),
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> Self:
        order = cls(data["id"])
        order.user_id = data["user_id"]
        order.status = OrderStatus(data["status"])
        order.items = tuple(OrderItem.from_dict(item) for item in data["items"])
        order._restore_timestamps(data)
        return order
