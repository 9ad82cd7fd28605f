"""Domain layer utilities."""

from dataclasses import fields, is_dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_jsonable(value: Any) -> Any:
    """Recursively convert domain values into JSON-safe primitives.

    Decimals become strings (no float rounding), enums become their values,
    datetimes become ISO-8601 strings and dataclasses become dicts.
    """
    match value:
        case Enum():
            return to_jsonable(value.value)
        case None | bool() | int() | float() | str():
            return value
        case Decimal():
            return str(value)
        case datetime():
            return value.isoformat()
        case dict():
            return {str(k): to_jsonable(v) for k, v in value.items()}
        case list() | tuple():
            return [to_jsonable(v) for v in value]
        case _ if is_dataclass(value) and not isinstance(value, type):
            return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
        case _:
            raise TypeError(f"Cannot convert {type(value).__name__} to JSON")


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime (naive is treated as UTC)."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
