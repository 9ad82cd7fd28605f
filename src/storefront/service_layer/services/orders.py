"""Default order service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from storefront.domain import errors
from storefront.domain.aggregates import Order
from storefront.domain.value_objects import OrderItem, OrderStatus
from storefront.interfaces.services import (
    DEFAULT_PAGE_SIZE,
    OrderItemInput,
    OrderService,
)

from .base import AggregateService

if TYPE_CHECKING:
    from storefront.interfaces.eventbus import EventBus
    from storefront.interfaces.id_generator import IdGenerator
    from storefront.interfaces.repositories import OrderRepository, UserRepository
    from storefront.interfaces.transaction import Transaction, TransactionFactory

logger = logging.getLogger(__name__)

# pylint: disable=too-many-arguments


class DefaultOrderService(AggregateService, OrderService):
    """Order operations over an `OrderRepository`.

    Args:
        repository: Where orders are stored.
        users: Used to check that the ordering user exists. It may live in a
            different store than the orders; the user lookup then runs outside
            the order transaction.
    """

    def __init__(
        self,
        repository: OrderRepository,
        users: UserRepository,
        tx_factory: TransactionFactory,
        id_generator: IdGenerator,
        event_bus: EventBus | None = None,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(
            tx_factory, id_generator, event_bus, default_page_size=default_page_size
        )
        self._repository = repository
        self._users = users

    def _load(self, order_id: str, tx: Transaction) -> Order:
        if (order := self._repository.get_by_id(order_id, tx)) is None:
            raise errors.OrderNotFoundError(order_id)
        return order

    def _ensure_user_exists(self, user_id: str, tx: Transaction) -> None:
        shared = tx if self._users.store is self._repository.store else None
        if self._users.get_by_id(user_id, shared) is None:
            raise errors.UserNotFoundError(user_id)

    # --- Commands ---

    def create(self, user_id: str, items: Sequence[OrderItemInput]) -> Order:
        lines = [
            OrderItem(
                item_id=self._id_generator.new_id(),
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
            )
            for item in items
        ]
        order = Order.place(self._id_generator.new_id(), user_id=user_id, items=lines)
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            self._ensure_user_exists(user_id, tx)
            self._repository.add(order, tx)
            tx.commit()
        logger.debug(
            "Created order %s for user %s (total %s)",
            order.aggregate_id,
            user_id,
            order.total,
        )
        self._publish(order)
        return order

    def update_status(self, order_id: str, status: OrderStatus | str) -> Order:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            order = self._load(order_id, tx)
            order.change_status(status)
            self._repository.update_status(order_id, order.status, tx)
            tx.commit()
        self._publish(order)
        return order

    def cancel(self, order_id: str) -> Order:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            order = self._load(order_id, tx)
            order.cancel()
            self._repository.update_status(order_id, order.status, tx)
            tx.commit()
        self._publish(order)
        return order

    def delete(self, order_id: str) -> None:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            order = self._load(order_id, tx)
            order.mark_deleted()
            self._repository.delete(order_id, tx, deleted_at=order.deleted_at)
            tx.commit()
        logger.debug("Deleted order %s", order_id)
        self._publish(order)

    # --- Queries ---

    def get(self, order_id: str) -> Order | None:
        return self._repository.get_by_id(order_id)

    def get_by_user_id(
        self, user_id: str, offset: int = 0, limit: int = 0
    ) -> tuple[Sequence[Order], int]:
        return self._repository.get_by_user_id(user_id, *self._page(offset, limit))

    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[Order], int]:
        return self._repository.list(*self._page(offset, limit))
