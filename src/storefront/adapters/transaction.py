"""Transaction adapters and the store-dispatching transaction factory."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from storefront.interfaces.errors import UnsupportedStoreError
from storefront.interfaces.transaction import (
    StoreType,
    Transaction,
    TransactionFactory,
    TransactionOptions,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

    from .memory_store import InMemoryStore

logger = logging.getLogger(__name__)

type TransactionOpener = Callable[[TransactionOptions | None], Transaction]


class SqlAlchemyTransaction(Transaction):
    """Transaction over a dedicated SQLAlchemy Connection.

    The handle is the `Connection`; repositories execute their statements on
    it so everything runs inside the same database transaction.
    """

    store = StoreType.SQL

    def __init__(self, engine: Engine, options: TransactionOptions | None = None):
        super().__init__()
        self.connection: Connection = engine.connect()
        if options is not None and options.isolation_level:
            self.connection.execution_options(isolation_level=options.isolation_level)
        self._transaction = self.connection.begin()

    def handle(self) -> Connection:
        return self.connection

    def _commit(self) -> None:
        self._transaction.commit()

    def _rollback(self) -> None:
        if self._transaction.is_active:
            self._transaction.rollback()

    def _release(self) -> None:
        self.connection.close()


class InMemoryTransaction(Transaction):
    """Transaction over an `InMemoryStore`.

    Holds the store lock from creation until close and restores the snapshot
    taken at creation on rollback.
    """

    store = StoreType.MEMORY

    def __init__(self, memory_store: InMemoryStore):
        super().__init__()
        self._memory_store = memory_store
        self._memory_store.lock.acquire()  # pylint: disable=consider-using-with
        self._snapshot = memory_store.snapshot()

    def handle(self) -> InMemoryStore:
        return self._memory_store

    def _commit(self) -> None:
        self._snapshot = self._memory_store.snapshot()

    def _rollback(self) -> None:
        self._memory_store.restore(self._snapshot)
        self._snapshot = self._memory_store.snapshot()

    def _release(self) -> None:
        self._memory_store.lock.release()


class StoreTransactionFactory(TransactionFactory):
    """Opens transactions by dispatching on the requested store.

    Args:
        openers: One callable per supported store, taking the options and
            returning a new transaction.
    """

    def __init__(self, openers: Mapping[StoreType, TransactionOpener]) -> None:
        self._openers = dict(openers)

    @property
    def stores(self) -> frozenset[StoreType]:
        """The stores this factory can open transactions against."""
        return frozenset(self._openers)

    def new_transaction(
        self, store: StoreType, options: TransactionOptions | None = None
    ) -> Transaction:
        if (opener := self._openers.get(store)) is None:
            logger.error("No transaction opener configured for store %s", store.value)
            raise UnsupportedStoreError(store)
        logger.debug("Opening %s transaction", store.value)
        return opener(options)
