"""Event handlers subscribed to the event bus."""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import UTC, datetime

from storefront.domain.audit import classify_event
from storefront.interfaces.eventbus import Event, EventHandler
from storefront.interfaces.messaging import AuditMessage, MessageProducer

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_TOPIC = "audit-events"


def rfc3339(moment: datetime) -> str:
    """Format *moment* as an RFC 3339 UTC timestamp with a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


class LoggingEventHandler(EventHandler):
    """Logs every event it is interested in at INFO.

    Args:
        event_names: Names to log; every event is logged when omitted.
    """

    name = "logging"

    def __init__(self, event_names: Collection[str] | None = None) -> None:
        self._event_names = frozenset(event_names) if event_names else None

    def interested_in(self, event_name: str) -> bool:
        return self._event_names is None or event_name in self._event_names

    def handle(self, event: Event) -> None:
        logger.info(
            "Event %s on %s (id=%s, actor=%s)",
            event.name,
            event.aggregate_id,
            event.event_id,
            event.actor_id or "-",
        )


class AuditForwardingHandler(EventHandler):
    """Forwards every event to the audit topic as an `AuditMessage`.

    The event ID is used as the message key, so redelivery of the same event
    is idempotent at the consumer.

    Args:
        producer: Transport the messages are sent through.
        topic: Topic the audit consumer listens on.
    """

    name = "audit-forwarder"

    def __init__(
        self, producer: MessageProducer, topic: str = DEFAULT_AUDIT_TOPIC
    ) -> None:
        self._producer = producer
        self._topic = topic

    def interested_in(self, event_name: str) -> bool:
        return True

    def handle(self, event: Event) -> None:
        entity_type, action = classify_event(event.name)
        message = AuditMessage(
            id=event.event_id,
            event_name=event.name,
            entity_type=entity_type.value,
            entity_id=event.aggregate_id,
            action=action.value,
            timestamp=rfc3339(event.occurred_at),
            payload=event.payload,
            user_id=event.actor_id,
        )
        self._producer.send(
            self._topic, event.event_id, message.to_json().encode("utf-8")
        )
