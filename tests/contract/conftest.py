"""Shared fixtures and default marks for tests under `tests/contract/`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from storefront.adapters.repositories.memory import (
    InMemoryAuditLogRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
)
from storefront.adapters.repositories.sql import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyOrderRepository,
    SqlAlchemyProductRepository,
    SqlAlchemyUserRepository,
)
from storefront.interfaces.transaction import StoreType
from tests.helpers.markers import mark_tier

if TYPE_CHECKING:
    from storefront.adapters.transaction import StoreTransactionFactory
    from storefront.interfaces.repositories import (
        AuditLogRepository,
        OrderRepository,
        ProductRepository,
        UserRepository,
    )
    from storefront.interfaces.transaction import Transaction

# pylint: disable=unused-argument

CONTRACT_ROOT = Path(__file__).parent.resolve()


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    mark_tier(items, CONTRACT_ROOT, "contract")


@dataclass
class Backend:  # pylint: disable=too-many-instance-attributes
    """One store's repositories and a factory able to open its transactions."""

    name: str
    store: StoreType
    users: UserRepository
    products: ProductRepository
    orders: OrderRepository
    audit: AuditLogRepository
    tx_factory: StoreTransactionFactory

    def begin(self) -> Transaction:
        """Open a transaction against this backend's store."""
        return self.tx_factory.new_transaction(self.store)


@pytest.fixture(params=["memory", "sqlite_engine_memory", "sqlite_engine_file"])
def backend(request: pytest.FixtureRequest, memory_store, make_tx_factory) -> Backend:
    """Repositories for each supported store.

    Params:
      - ``memory``: the shared in-process store
      - ``sqlite_engine_memory``: SQLite with tables from ``create_all``
      - ``sqlite_engine_file``: SQLite migrated with Alembic
    """
    if request.param == "memory":
        return Backend(
            name=request.param,
            store=StoreType.MEMORY,
            users=InMemoryUserRepository(memory_store),
            products=InMemoryProductRepository(memory_store),
            orders=InMemoryOrderRepository(memory_store),
            audit=InMemoryAuditLogRepository(memory_store),
            tx_factory=make_tx_factory(),
        )
    engine = request.getfixturevalue(request.param)
    return Backend(
        name=request.param,
        store=StoreType.SQL,
        users=SqlAlchemyUserRepository(engine),
        products=SqlAlchemyProductRepository(engine),
        orders=SqlAlchemyOrderRepository(engine),
        audit=SqlAlchemyAuditLogRepository(engine),
        tx_factory=make_tx_factory(engine),
    )
