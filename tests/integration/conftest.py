"""Tests under `tests/integration/` carry the `integration` mark by default."""

from pathlib import Path

import pytest

from tests.helpers.markers import mark_tier

# pylint: disable=unused-argument


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    mark_tier(items, Path(__file__).parent.resolve(), "integration")
