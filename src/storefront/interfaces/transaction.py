"""Store-agnostic transaction contracts.

A `Transaction` is a unit of work against exactly one named store. Repositories
receive it as an opaque handle (or ``None`` for "use the default, auto-committing
connection") and unwrap it with `resolve_handle`, which rejects transactions
opened against a different store.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any


class StoreType(str, Enum):
    """Identifiers of the kinds of backing stores an aggregate can live in."""

    SQL = "sql"
    MEMORY = "memory"
    DOCUMENT = "document"
    KEY_VALUE = "key_value"


@dataclass(frozen=True, slots=True)
class TransactionOptions:
    """Options passed through to the store when opening a transaction."""

    isolation_level: str | None = None
    read_only: bool = False


class TransactionMismatchError(TypeError):
    """Raised when a repository receives a transaction for another store."""


class TransactionClosedError(RuntimeError):
    """Raised when a closed transaction is committed, rolled back or used."""


class Transaction(abc.ABC):
    """Contract for a unit of work against a single store.

    Used as a context manager: leaving the block rolls back anything not
    committed and releases the underlying resources. Committing is always
    explicit.
    """

    store: StoreType

    def __init__(self) -> None:
        self.committed = False
        self.closed = False

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, *args):
        try:
            if not self.closed and not self.committed:
                self.rollback()
        finally:
            self.close()

    def commit(self) -> None:
        """Persist changes made in this transaction."""
        self._ensure_open()
        self._commit()
        self.committed = True

    def rollback(self) -> None:
        """Discard changes made in this transaction."""
        self._ensure_open()
        self._rollback()

    def close(self) -> None:
        """Release the underlying resources. Idempotent."""
        if self.closed:
            return
        self.closed = True
        self._release()

    def _ensure_open(self) -> None:
        if self.closed:
            raise TransactionClosedError(f"{type(self).__name__} is already closed.")

    @abc.abstractmethod
    def handle(self) -> Any:
        """Return the store-specific handle (connection, session, ...)."""

    @abc.abstractmethod
    def _commit(self) -> None: ...

    @abc.abstractmethod
    def _rollback(self) -> None: ...

    @abc.abstractmethod
    def _release(self) -> None: ...


class TransactionFactory(abc.ABC):
    """Contract for opening transactions against named stores."""

    @abc.abstractmethod
    def new_transaction(
        self, store: StoreType, options: TransactionOptions | None = None
    ) -> Transaction:
        """Open a new transaction against *store*.

        Raises:
            UnsupportedStoreError: If the factory has no adapter for *store*.
        """


def resolve_handle(tx: Transaction | None, store: StoreType) -> Any | None:
    """Unwrap the store handle carried by *tx*.

    Args:
        tx: The transaction passed to a repository, or None.
        store: The store the repository works against.

    Returns:
        None when *tx* is None, meaning the repository should use its default
        auto-committing connection; otherwise the transaction's handle.

    Raises:
        TransactionMismatchError: If *tx* is not a Transaction or belongs to
            another store.
        TransactionClosedError: If *tx* has already been closed.
    """
    if tx is None:
        return None
    if not isinstance(tx, Transaction):
        raise TransactionMismatchError(
            f"Expected a Transaction for store {store.value!r}, "
            f"got {type(tx).__name__}."
        )
    if tx.store is not store:
        raise TransactionMismatchError(
            f"Transaction for store {tx.store.value!r} cannot be used "
            f"with a {store.value!r} repository."
        )
    if tx.closed:
        raise TransactionClosedError(f"{type(tx).__name__} is already closed.")
    return tx.handle()
