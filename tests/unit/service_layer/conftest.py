"""Fixtures wiring the default services over the in-memory store."""

from __future__ import annotations

import pytest

from storefront.adapters.repositories.memory import (
    InMemoryAuditLogRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
)
from storefront.service_layer.eventbus import SimpleEventBus
from storefront.service_layer.services import (
    AuditService,
    DefaultOrderService,
    DefaultProductService,
    DefaultUserService,
)

from .fakes import RecordingHandler

# pylint: disable=redefined-outer-name


@pytest.fixture
def recorder() -> RecordingHandler:
    """Handler keeping every published event."""
    return RecordingHandler()


@pytest.fixture
def event_bus(recorder) -> SimpleEventBus:
    """Bus with the recorder subscribed."""
    return SimpleEventBus([recorder])


@pytest.fixture
def user_repo(memory_store) -> InMemoryUserRepository:
    """In-memory user repository."""
    return InMemoryUserRepository(memory_store)


@pytest.fixture
def product_repo(memory_store) -> InMemoryProductRepository:
    """In-memory product repository."""
    return InMemoryProductRepository(memory_store)


@pytest.fixture
def order_repo(memory_store) -> InMemoryOrderRepository:
    """In-memory order repository."""
    return InMemoryOrderRepository(memory_store)


@pytest.fixture
def users(user_repo, memory_tx_factory, id_generator, event_bus) -> DefaultUserService:
    """User service over the in-memory store."""
    return DefaultUserService(user_repo, memory_tx_factory, id_generator, event_bus)


@pytest.fixture
def products(
    product_repo, memory_tx_factory, id_generator, event_bus
) -> DefaultProductService:
    """Product service over the in-memory store."""
    return DefaultProductService(
        product_repo, memory_tx_factory, id_generator, event_bus
    )


@pytest.fixture
def orders(
    order_repo, user_repo, memory_tx_factory, id_generator, event_bus
) -> DefaultOrderService:
    """Order service over the in-memory store."""
    return DefaultOrderService(
        order_repo, user_repo, memory_tx_factory, id_generator, event_bus
    )


@pytest.fixture
def audit_service(memory_store) -> AuditService:
    """Audit service over the in-memory store."""
    return AuditService(InMemoryAuditLogRepository(memory_store))
