"""Event bus contracts and the published event envelope."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from storefront.domain.utils import utc_now

if TYPE_CHECKING:
    from storefront.domain.events import DomainEvent


@dataclass(frozen=True, slots=True)
class Event:
    """A domain event wrapped for publication.

    Attributes:
        event_id: Unique ID of this publication.
        name: Dotted event name, e.g. ``"order.created"``.
        aggregate_id: ID of the aggregate that raised the event.
        payload: JSON-safe event payload.
        occurred_at: UTC time the event was published.
        actor_id: ID of the user on whose behalf it happened, when known.
    """

    event_id: str
    name: str
    aggregate_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)
    actor_id: str | None = None

    @classmethod
    def from_domain_event(
        cls,
        domain_event: DomainEvent,
        event_id: str,
        occurred_at: datetime | None = None,
    ) -> Event:
        """Wrap *domain_event* in an envelope with the given ID."""
        return cls(
            event_id=event_id,
            name=domain_event.NAME,
            aggregate_id=domain_event.aggregate_id,
            payload=domain_event.payload(),
            occurred_at=occurred_at or utc_now(),
            actor_id=domain_event.actor_id,
        )


@dataclass(frozen=True, slots=True)
class HandlerFailure:
    """Records a handler that raised while handling an event."""

    handler_name: str
    event: Event
    error: Exception


class EventHandler(abc.ABC):
    """Contract for an event bus subscriber."""

    @abc.abstractmethod
    def interested_in(self, event_name: str) -> bool:
        """Return True if this handler wants events called *event_name*."""

    @abc.abstractmethod
    def handle(self, event: Event) -> None:
        """Handle one event. Exceptions are reported to the bus."""


class EventBus(abc.ABC):
    """Contract for a synchronous, in-process publish/subscribe bus."""

    @abc.abstractmethod
    def subscribe(self, handler: EventHandler) -> None:
        """Register *handler*; handlers run in registration order."""

    @abc.abstractmethod
    def publish(self, event: Event) -> list[HandlerFailure]:
        """Dispatch *event* to every interested handler.

        Returns:
            The failures of individual handlers; empty on full success. A
            failing handler never prevents the remaining handlers from running.
        """
