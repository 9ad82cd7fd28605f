"""Column types shared by the schema and the migrations.

``Money`` keeps amounts at two decimal places whatever the backend does with
them; ``UTCDateTime`` hands back aware UTC datetimes on every backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Numeric
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import DateTime, TypeDecorator

from .dialects import DialectName

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import Dialect

__all__ = ["MONEY", "Money", "PORTABLE_JSON", "UTCDateTime"]

CENT = Decimal("0.01")


class Money(TypeDecorator[Decimal]):  # pylint: disable=too-many-ancestors
    """Amount of money with exactly two decimal places.

    SQLite has no native decimal storage and round-trips through floats, so
    values are quantized to cents on the way in and again on the way out.
    """

    impl = Numeric(precision=12, scale=2, asdecimal=True)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        return Decimal(value).quantize(CENT)

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        if value is None:
            return None
        return Decimal(str(value)).quantize(CENT)

    def process_literal_param(self, value: Decimal | None, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[Decimal]:
        return Decimal


MONEY = Money()

PORTABLE_JSON = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)


class UTCDateTime(TypeDecorator[datetime]):  # pylint: disable=too-many-ancestors
    """Timestamp column that only ever yields aware UTC datetimes.

    Postgres keeps the offset itself. SQLite would drop it, so values are
    written there as naive UTC and re-tagged with ``timezone.utc`` on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    @staticmethod
    def _as_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        value = self._as_utc(value)
        if dialect.name == DialectName.SQLITE.value:
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if isinstance(value, datetime):
            return self._as_utc(value)
        return value

    def process_literal_param(self, value: datetime | None, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[datetime]:
        return datetime
