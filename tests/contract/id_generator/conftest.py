"""Fixtures for IdGenerator contract tests."""

from collections.abc import Iterator

import pytest

from storefront.adapters.id_generators import (
    SequentialIdGenerator,
    ULIDGenerator,
    UUIDv4Generator,
)
from storefront.interfaces.id_generator import IdGenerator


def _build(kind: str) -> IdGenerator:
    match kind:
        case "ulid":
            return ULIDGenerator()
        case "uuid4":
            return UUIDv4Generator()
        case "sequential":
            return SequentialIdGenerator(prefix="t-")
        case _:
            raise ValueError(f"unknown id generator type: {kind}")


@pytest.fixture(params=["ulid", "uuid4", "sequential"])
def id_generator(request: pytest.FixtureRequest) -> Iterator[IdGenerator]:
    """A fresh generator of every implementation."""
    yield _build(request.param)


@pytest.fixture(params=["ulid", "sequential"])
def sortable_id_generator(request: pytest.FixtureRequest) -> Iterator[IdGenerator]:
    """Generators whose IDs sort in generation order.

    The audit trail pages by ID, so its records need one of these.
    """
    yield _build(request.param)
