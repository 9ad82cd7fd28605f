"""Unit tests for the audit service and the audit consumer."""

from dataclasses import replace
from datetime import UTC, datetime
from unittest import mock

import pytest

from storefront.adapters.repositories.memory import InMemoryAuditLogRepository
from storefront.domain.audit import AuditLog
from storefront.domain.errors import ValidationError
from storefront.interfaces.messaging import AuditMessage
from storefront.service_layer.services import AuditConsumer, AuditService
from tests.helpers.logs import assert_logged_containing

# pylint: disable=magic-value-comparison

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def log(audit_id: str, entity_id: str = "o-1", minute: int = 0) -> AuditLog:
    """Build an order audit record."""
    return AuditLog(
        audit_id=audit_id,
        entity_type="order",
        entity_id=entity_id,
        action="created",
        timestamp=T0.replace(minute=minute),
        payload={"n": audit_id},
    )


def message(**overrides) -> bytes:
    """Encode an audit message."""
    fields = {
        "id": "e-1",
        "event_name": "order.created",
        "entity_type": "order",
        "entity_id": "o-1",
        "action": "created",
        "timestamp": "2024-05-01T12:00:00Z",
        "payload": {"total": "20.00"},
        "user_id": "u-1",
    } | overrides
    return AuditMessage(**fields).to_json().encode()


class TestAuditService:
    """Tests for AuditService."""

    @staticmethod
    def test_record_is_idempotent(audit_service):
        """Recording the same ID twice keeps the first record."""
        first = audit_service.record(log("a-1"))
        again = audit_service.record(replace(first, payload={"changed": True}))
        assert again.payload == {"n": "a-1"}
        assert audit_service.get("a-1").payload == {"n": "a-1"}

    @staticmethod
    def test_record_absorbs_concurrent_duplicate(memory_store):
        """A record inserted between the lookup and the add is returned."""
        repository = InMemoryAuditLogRepository(memory_store)
        repository.add(log("a-1"))
        spy = mock.Mock(wraps=repository)
        spy.get_by_id.side_effect = [None, repository.get_by_id("a-1")]

        stored = AuditService(spy).record(replace(log("a-1"), payload={"late": True}))

        assert stored.payload == {"n": "a-1"}
        spy.add.assert_called_once()

    @staticmethod
    def test_by_entity_type_pages_by_key(audit_service):
        """Pages follow ID order and hand back the next key."""
        for n in range(5):
            audit_service.record(log(f"a-{n}"))
        page, next_key = audit_service.by_entity_type("order", limit=2)
        assert [r.audit_id for r in page] == ["a-0", "a-1"]
        assert next_key == "a-1"
        page, next_key = audit_service.by_entity_type("order", limit=2, after="a-3")
        assert [r.audit_id for r in page] == ["a-4"]
        assert next_key is None
        assert audit_service.by_entity_type("user") == ([], None)

    @staticmethod
    def test_by_entity_id_is_oldest_first(audit_service):
        """An entity's history is in timestamp order."""
        audit_service.record(log("a-2", minute=5))
        audit_service.record(log("a-1", minute=1))
        audit_service.record(log("a-3", entity_id="o-2"))
        history = audit_service.by_entity_id("order", "o-1")
        assert [r.audit_id for r in history] == ["a-1", "a-2"]


class TestAuditConsumer:
    """Tests for AuditConsumer."""

    @staticmethod
    def test_records_the_message(audit_service):
        """Messages become audit records keyed by event ID."""
        consumer = AuditConsumer(audit_service)
        record = consumer(message())
        assert record.audit_id == "e-1"
        assert record.actor_id == "u-1"
        assert record.timestamp == T0
        assert audit_service.get("e-1").payload == {"total": "20.00"}

    @staticmethod
    def test_redelivery_is_absorbed(audit_service):
        """The same message twice yields one record."""
        consumer = AuditConsumer(audit_service)
        consumer.handle(message())
        consumer.handle(message())
        assert len(audit_service.by_entity_id("order", "o-1")) == 1

    @staticmethod
    @pytest.mark.parametrize("timestamp", ["", "yesterday"])
    def test_bad_timestamp_falls_back_to_now(audit_service, caplog, timestamp):
        """A missing or malformed timestamp is replaced by the current time."""
        before = datetime.now(UTC)
        record = AuditConsumer(audit_service).handle(message(timestamp=timestamp))
        assert record.timestamp >= before
        assert_logged_containing(caplog.records, "invalid timestamp", "WARNING")

    @staticmethod
    @pytest.mark.parametrize("raw", [b"not json", b"[]", b'{"id": "e-1"}'])
    def test_rejects_malformed_messages(audit_service, raw):
        """Undecodable messages are validation errors."""
        with pytest.raises(ValidationError):
            AuditConsumer(audit_service).handle(raw)
