"""Base class for all aggregates."""

import abc
from datetime import datetime
from typing import Any, Self

from storefront.domain.errors import AlreadyDeletedError
from storefront.domain.events import DomainEvent
from storefront.domain.utils import parse_datetime, utc_now


class Aggregate(abc.ABC):
    """Generic base class for all aggregates.

    State changes happen only by enqueueing a domain event: the event is applied
    to the aggregate and buffered until the service layer drains it. The buffer
    is private; `drain_events` is the only way to take events out of it.
    """

    def __init__(self, aggregate_id: str) -> None:
        self.aggregate_id: str = aggregate_id
        self.created_at: datetime | None = None
        self.updated_at: datetime | None = None
        self.deleted_at: datetime | None = None
        self._pending_events: list[DomainEvent] = []

    # --- Soft Deletion ---

    @property
    def is_deleted(self) -> bool:
        """Whether the aggregate has been soft-deleted."""
        return self.deleted_at is not None

    def mark_deleted(self) -> None:
        """Soft-delete the aggregate.

        Raises:
            AlreadyDeletedError: If the aggregate is already soft-deleted.
        """
        if self.is_deleted:
            raise AlreadyDeletedError(self.aggregate_id)
        self._enqueue(self._deleted_event(utc_now()))

    @abc.abstractmethod
    def _deleted_event(self, deleted_at: datetime) -> DomainEvent:
        """Build the event recording this aggregate's deletion."""

    # --- Event Application ---

    @abc.abstractmethod
    def _apply(self, event: DomainEvent) -> None:
        """Apply an event to the aggregate.

        Raises:
            ValueError: If the concrete aggregate does not handle the event type.
        """

    # --- Plumbing ---

    def _enqueue(self, event: DomainEvent) -> None:
        if event.aggregate_id != self.aggregate_id:
            raise ValueError(
                f"Event aggregate ID '{event.aggregate_id}' does not match "
                f"aggregate ID '{self.aggregate_id}'."
            )
        now = utc_now()
        self._apply(event)
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now
        self._pending_events.append(event)

    def drain_events(self) -> list[DomainEvent]:
        """Return all pending events and clear the buffer.

        Note: This is NOT thread-safe. An aggregate instance belongs to a single
        service operation; the caller drains it exactly once, after persisting.
        """
        pending = self._pending_events
        self._pending_events = []
        return pending

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        """Read-only view of the events not yet drained."""
        return tuple(self._pending_events)

    # --- Snapshots ---

    @abc.abstractmethod
    def to_snapshot(self) -> dict[str, Any]:
        """Return a JSON-safe representation of the current state.

        Pending events are never part of a snapshot.
        """

    @classmethod
    @abc.abstractmethod
    def from_snapshot(cls, data: dict[str, Any]) -> Self:
        """Rebuild an aggregate from `to_snapshot` output, with no pending events."""

    def _base_snapshot(self) -> dict[str, Any]:
        return {
            "id": self.aggregate_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }

    def _restore_timestamps(self, data: dict[str, Any]) -> None:
        self.created_at = parse_datetime(data.get("created_at"))
        self.updated_at = parse_datetime(data.get("updated_at"))
        self.deleted_at = parse_datetime(data.get("deleted_at"))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(aggregate_id={self.aggregate_id!r})"
