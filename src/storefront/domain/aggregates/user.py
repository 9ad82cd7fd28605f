"""Aggregate representing a registered user."""

import re
from datetime import datetime
from typing import Any, Self

from storefront.domain import errors, events
from storefront.domain.utils import parse_datetime

from .base import Aggregate

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: str) -> str:
    """Return *email* if it is non-empty and well-formed.

    Raises:
        ValidationError: If the email is missing or malformed.
    """
    if not email:
        raise errors.ValidationError("email", "is required")
    if not EMAIL_PATTERN.match(email):
        raise errors.ValidationError("email", "is not a valid email address")
    return email


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise errors.ValidationError(field, "is required")
    return value


class User(Aggregate):
    """Aggregate representing a registered user.

    The password is expected to be hashed before it reaches the aggregate.
    """

    def __init__(self, aggregate_id: str) -> None:
        super().__init__(aggregate_id)
        self.email: str = ""
        self.name: str = ""
        self.password: str = ""

    # --- Construction Paths ---

    @classmethod
    def register(
        cls, aggregate_id: str, *, email: str, name: str, password: str
    ) -> "User":
        """Register a new user.

        Args:
            aggregate_id: The unique identifier for the user.
            email: The user's email address; must be well-formed.
            name: The display name; must not be blank.
            password: The pre-hashed password; must not be blank.

        Returns:
            User: The newly registered user with one pending ``user.created`` event.

        Raises:
            ValidationError: If any attribute violates the user invariants.
        """
        validate_email(email)
        _require_text(name, "name")
        _require_text(password, "password")

        user = cls(aggregate_id)
        user._enqueue(
            events.UserCreated(
                user_id=aggregate_id, email=email, name=name, password=password
            )
        )
        return user

    # --- State Transitions ---

    def update(self, name: str) -> None:
        """Change the display name."""
        _require_text(name, "name")
        self._enqueue(events.UserUpdated(user_id=self.aggregate_id, name=name))

    def change_password(self, password: str) -> None:
        """Replace the stored password hash."""
        _require_text(password, "password")
        self._enqueue(
            events.UserPasswordChanged(user_id=self.aggregate_id, password=password)
        )

    def _deleted_event(self, deleted_at: datetime) -> events.DomainEvent:
        return events.UserDeleted(
            user_id=self.aggregate_id, deleted_at=deleted_at.isoformat()
        )

    # --- Event Application ---

    def _apply(self, event: events.DomainEvent) -> None:
        match event:
            case events.UserCreated():
                self.email = event.email
                self.name = event.name
                self.password = event.password
            case events.UserUpdated():
                self.name = event.name
            case events.UserPasswordChanged():
                self.password = event.password
            case events.UserDeleted():
                self.deleted_at = parse_datetime(event.deleted_at)
            case _:
                raise ValueError(f"Unhandled event type: {type(event).__name__}")

    # --- Snapshots ---

    def to_snapshot(self) -> dict[str, Any]:
        return {
            **self._base_snapshot(),
            "email": self.email,
            "name": self.name,
            "password": self.password,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]) -> Self:
        user = cls(data["id"])
        user.email = data["email"]
        user.name = data["name"]
        user.password = data["password"]
        user._restore_timestamps(data)
        return user
