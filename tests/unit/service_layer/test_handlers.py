"""Unit tests for the logging and audit-forwarding handlers."""

import json
import logging
from datetime import UTC, datetime, timedelta, timezone

import pytest

from storefront.adapters.messaging import InMemoryMessageProducer
from storefront.interfaces.eventbus import Event
from storefront.interfaces.messaging import AuditMessage
from storefront.service_layer.handlers import (
    DEFAULT_AUDIT_TOPIC,
    AuditForwardingHandler,
    LoggingEventHandler,
    rfc3339,
)
from tests.helpers.logs import assert_log_message

# pylint: disable=magic-value-comparison

OCCURRED = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)


def order_created() -> Event:
    """An order.created envelope."""
    return Event(
        event_id="e-1",
        name="order.created",
        aggregate_id="o-1",
        payload={"order_id": "o-1", "total": "20.00"},
        occurred_at=OCCURRED,
        actor_id="u-1",
    )


@pytest.mark.parametrize(
    ("moment", "expected"),
    [
        (OCCURRED, "2024-05-01T12:30:00Z"),
        (datetime(2024, 5, 1, 12, 30), "2024-05-01T12:30:00Z"),
        (
            datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2))),
            "2024-05-01T12:30:00Z",
        ),
    ],
)
def test_rfc3339(moment, expected):
    """Timestamps are rendered in UTC with a Z suffix."""
    assert rfc3339(moment) == expected


class TestLoggingEventHandler:
    """Tests for LoggingEventHandler."""

    @staticmethod
    def test_logs_events_at_info(caplog):
        """Each event produces one INFO line."""
        caplog.set_level(logging.INFO)
        LoggingEventHandler().handle(order_created())
        assert_log_message(
            caplog.records, "Event order.created on o-1 (id=e-1, actor=u-1)", "INFO"
        )

    @staticmethod
    def test_filters_by_name():
        """With names given, only those are of interest."""
        handler = LoggingEventHandler(["order.created"])
        assert handler.interested_in("order.created")
        assert not handler.interested_in("user.created")
        assert LoggingEventHandler().interested_in("anything")


class TestAuditForwardingHandler:
    """Tests for AuditForwardingHandler."""

    @staticmethod
    def test_sends_an_audit_message_keyed_by_event_id():
        """The event is classified and sent to the audit topic."""
        producer = InMemoryMessageProducer()
        AuditForwardingHandler(producer).handle(order_created())

        (sent,) = producer.sent
        assert sent.topic == DEFAULT_AUDIT_TOPIC
        assert sent.key == "e-1"
        message = AuditMessage.from_json(sent.value)
        assert message.id == "e-1"
        assert message.event_name == "order.created"
        assert message.entity_type == "order"
        assert message.entity_id == "o-1"
        assert message.action == "created"
        assert message.timestamp == "2024-05-01T12:30:00Z"
        assert message.user_id == "u-1"
        assert json.loads(sent.value)["payload"]["total"] == "20.00"

    @staticmethod
    def test_unknown_events_are_still_forwarded():
        """An unrecognised event is audited as unknown."""
        producer = InMemoryMessageProducer()
        event = Event(event_id="e-9", name="cart.emptied", aggregate_id="c-1")
        AuditForwardingHandler(producer, topic="audit").handle(event)
        (sent,) = producer.sent
        message = AuditMessage.from_json(sent.value)
        assert sent.topic == "audit"
        assert (message.entity_type, message.action) == ("unknown", "unknown")
