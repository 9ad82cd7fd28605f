"""The ``UNSET`` marker used by partial updates.

Update operations take ``Unsettable[T]`` arguments so that "leave this
field alone" (``UNSET``) stays distinguishable from "clear this field"
(``None``).
"""

from enum import Enum
from typing import Literal, overload

from .errors import ValidationError


class _Unset(Enum):
    """Single-member enum, so copies and unpickled values stay identical."""

    UNSET = "UNSET"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return self.value


UNSET = _Unset.UNSET

type Unsettable[T] = T | _Unset | None


def is_unset(value: object) -> bool:
    """Tell whether *value* is the ``UNSET`` marker."""
    return value is UNSET


@overload
def resolve[T](
    value: Unsettable[T], current: T, *, clearable: Literal[False], field: str
) -> T: ...
@overload
def resolve[T](
    value: Unsettable[T], current: T, *, clearable: Literal[True], field: str
) -> T | None: ...
def resolve[T](
    value: Unsettable[T], current: T, *, clearable: bool, field: str
) -> T | None:
    """Merge an update argument with the value an aggregate already holds.

    ``UNSET`` yields *current*, a concrete value replaces it and ``None``
    clears it, which only *clearable* fields accept.

    Raises:
        ValidationError: If *field* is not clearable and *value* is ``None``.
    """
    if value is UNSET:
        return current
    if value is None and not clearable:
        raise ValidationError(field, "cannot be cleared")
    return value
