"""Unit tests for the custom column types."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from storefront.adapters.db.sa_types import Money, UTCDateTime

SQLITE = sqlite.dialect()
POSTGRES = postgresql.dialect()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(9.99, Decimal("9.99")), ("29.970", Decimal("29.97")), (10, Decimal("10.00"))],
)
def test_money_loads_as_cents(raw, expected):
    """Whatever the driver hands back is quantized to two places."""
    loaded = Money().process_result_value(raw, SQLITE)
    assert loaded == expected
    assert loaded.as_tuple().exponent == -2


def test_money_binds_quantized_decimal():
    assert Money().process_bind_param(Decimal("1.005"), POSTGRES) == Decimal("1.00")
    assert Money().process_bind_param(None, POSTGRES) is None


def test_utc_datetime_stores_naive_utc_on_sqlite():
    """SQLite gets naive UTC; Postgres keeps the offset."""
    plus_two = timezone(timedelta(hours=2))
    moment = datetime(2024, 5, 1, 14, 0, tzinfo=plus_two)

    stored = UTCDateTime().process_bind_param(moment, SQLITE)
    assert stored == datetime(2024, 5, 1, 12, 0)
    assert stored.tzinfo is None

    kept = UTCDateTime().process_bind_param(moment, POSTGRES)
    assert kept.tzinfo == timezone.utc


def test_utc_datetime_loads_aware():
    loaded = UTCDateTime().process_result_value(datetime(2024, 5, 1, 12, 0), SQLITE)
    assert loaded == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert UTCDateTime().process_result_value(None, SQLITE) is None
