"""Default product service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import TYPE_CHECKING

from storefront.domain import errors
from storefront.domain.aggregates import Product
from storefront.domain.unset import UNSET, Unsettable, is_unset
from storefront.interfaces.services import DEFAULT_PAGE_SIZE, ProductService

from .base import AggregateService

if TYPE_CHECKING:
    from storefront.interfaces.eventbus import EventBus
    from storefront.interfaces.id_generator import IdGenerator
    from storefront.interfaces.repositories import ProductRepository
    from storefront.interfaces.transaction import Transaction, TransactionFactory

logger = logging.getLogger(__name__)

# pylint: disable=too-many-arguments


class DefaultProductService(AggregateService, ProductService):
    """Product operations over a `ProductRepository`.

    Stock changes are validated on the aggregate and then applied through the
    repository's atomic `update_stock`, so two concurrent reservations can never
    together drive the stock below zero.
    """

    def __init__(
        self,
        repository: ProductRepository,
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

    def _load(self, product_id: str, tx: Transaction) -> Product:
        if (product := self._repository.get_by_id(product_id, tx)) is None:
            raise errors.ProductNotFoundError(product_id)
        return product

    def _ensure_name_free(
        self, name: str, tx: Transaction, product_id: str | None = None
    ) -> None:
        holder = self._repository.get_by_name(name, tx)
        if holder is not None and holder.aggregate_id != product_id:
            raise errors.ProductNameTakenError(name)

    # --- Commands ---

    def create(
        self,
        name: str,
        description: str,
        price: Decimal | int | float | str,
        stock: int,
    ) -> Product:
        product = Product.create(
            self._id_generator.new_id(),
            name=name,
            description=description,
            price=price,
            stock=stock,
        )
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            self._ensure_name_free(name, tx)
            self._repository.add(product, tx)
            tx.commit()
        logger.debug("Created product %s", product.aggregate_id)
        self._publish(product)
        return product

    def update(
        self,
        product_id: str,
        *,
        name: Unsettable[str] = UNSET,
        description: Unsettable[str] = UNSET,
        price: Unsettable[Decimal | int | float | str] = UNSET,
    ) -> Product:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            product = self._load(product_id, tx)
            product.update(name=name, description=description, price=price)
            if not is_unset(name):
                self._ensure_name_free(product.name, tx, product_id)
            self._repository.update(product, tx)
            tx.commit()
        self._publish(product)
        return product

    def update_stock(self, product_id: str, delta: int) -> Product:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            product = self._load(product_id, tx)
            product.adjust_stock(delta)
            self._apply_stock(product, delta, tx)
            tx.commit()
        self._publish(product)
        return product

    def reserve_stock(self, product_id: str, quantity: int) -> Product:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            product = self._load(product_id, tx)
            product.reserve_stock(quantity)
            self._apply_stock(product, -quantity, tx)
            tx.commit()
        self._publish(product)
        return product

    def _apply_stock(self, product: Product, delta: int, tx: Transaction) -> None:
        stored = self._repository.update_stock(product.aggregate_id, delta, tx)
        if stored != product.stock:
            # another writer changed the stock between our read and the update
            logger.warning(
                "Stock of product %s is %d in store, %d on aggregate",
                product.aggregate_id,
                stored,
                product.stock,
            )

    def delete(self, product_id: str) -> None:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            product = self._load(product_id, tx)
            product.mark_deleted()
            self._repository.delete(product_id, tx, deleted_at=product.deleted_at)
            tx.commit()
        logger.debug("Deleted product %s", product_id)
        self._publish(product)

    # --- Queries ---

    def get(self, product_id: str) -> Product | None:
        return self._repository.get_by_id(product_id)

    def get_by_name(self, name: str) -> Product | None:
        return self._repository.get_by_name(name)

    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[Product], int]:
        return self._repository.list(*self._page(offset, limit))
