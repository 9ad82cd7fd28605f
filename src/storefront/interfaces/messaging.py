"""Outbound messaging contract and the audit message wire shape."""

from __future__ import annotations

import abc
import json
from dataclasses import asdict, dataclass, field
from typing import Any

from storefront.domain.errors import ValidationError

# pylint: disable=too-few-public-methods


class MessageProducer(abc.ABC):
    """Contract for handing messages to an outbound transport."""

    @abc.abstractmethod
    def send(self, topic: str, key: str, value: bytes) -> None:
        """Send *value* under *key* to *topic*.

        Raises:
            PublishError: If the transport rejects the message.
        """


@dataclass(frozen=True, slots=True)
class AuditMessage:
    """Flat message forwarded to the audit trail for every published event.

    Attributes:
        id: The published event's ID.
        event_name: Dotted event name.
        entity_type: Entity type derived from the event name.
        entity_id: ID of the aggregate that raised the event.
        action: Action derived from the event name.
        payload: JSON-safe event payload.
        timestamp: RFC 3339 UTC timestamp.
        user_id: Acting user's ID, when known.
    """

    id: str
    event_name: str
    entity_type: str
    entity_id: str
    action: str
    timestamp: str
    payload: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None

    def to_json(self) -> str:
        """Serialize the message; ``user_id`` is omitted when unknown."""
        data = asdict(self)
        if data["user_id"] is None:
            del data["user_id"]
        return json.dumps(data, separators=(",", ":"), sort_keys=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> AuditMessage:
        """Deserialize a message produced by `to_json`.

        Raises:
            ValidationError: If *raw* is not valid JSON or misses required fields.
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError("message", "is not valid JSON") from e
        if not isinstance(data, dict):
            raise ValidationError("message", "must be a JSON object")

        required = ("id", "event_name", "entity_type", "entity_id", "action")
        if missing := [name for name in required if not data.get(name)]:
            raise ValidationError("message", f"missing fields: {', '.join(missing)}")

        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise ValidationError("payload", "must be a JSON object")

        return cls(
            id=str(data["id"]),
            event_name=str(data["event_name"]),
            entity_type=str(data["entity_type"]),
            entity_id=str(data["entity_id"]),
            action=str(data["action"]),
            timestamp=str(data.get("timestamp") or ""),
            payload=payload,
            user_id=data.get("user_id"),
        )
