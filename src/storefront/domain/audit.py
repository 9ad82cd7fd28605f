"""Append-only audit records derived from domain events."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import ValidationError
from .utils import parse_datetime


class AuditEntityType(str, Enum):
    """Kinds of entities that appear in the audit trail."""

    USER = "user"
    PRODUCT = "product"
    ORDER = "order"
    UNKNOWN = "unknown"


class AuditAction(str, Enum):
    """Actions recorded in the audit trail."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    PASSWORD_CHANGED = "password_changed"
    STOCK_UPDATED = "stock_updated"
    STATUS_CHANGED = "status_changed"
    CANCELED = "canceled"
    UNKNOWN = "unknown"


# event name -> (entity type, action)
EVENT_AUDIT_MAPPING: dict[str, tuple[AuditEntityType, AuditAction]] = {
    "user.created": (AuditEntityType.USER, AuditAction.CREATED),
    "user.updated": (AuditEntityType.USER, AuditAction.UPDATED),
    "user.password_changed": (AuditEntityType.USER, AuditAction.PASSWORD_CHANGED),
    "user.deleted": (AuditEntityType.USER, AuditAction.DELETED),
    "product.created": (AuditEntityType.PRODUCT, AuditAction.CREATED),
    "product.updated": (AuditEntityType.PRODUCT, AuditAction.UPDATED),
    "product.stock_updated": (AuditEntityType.PRODUCT, AuditAction.STOCK_UPDATED),
    "product.deleted": (AuditEntityType.PRODUCT, AuditAction.DELETED),
    "order.created": (AuditEntityType.ORDER, AuditAction.CREATED),
    "order.status_changed": (AuditEntityType.ORDER, AuditAction.STATUS_CHANGED),
    "order.cancelled": (AuditEntityType.ORDER, AuditAction.CANCELED),
    "order.deleted": (AuditEntityType.ORDER, AuditAction.DELETED),
}


def classify_event(event_name: str) -> tuple[AuditEntityType, AuditAction]:
    """Map an event name onto its audit entity type and action.

    Unknown names map to ``(UNKNOWN, UNKNOWN)`` rather than raising, so that an
    unrecognised event still leaves a trace.
    """
    return EVENT_AUDIT_MAPPING.get(
        event_name, (AuditEntityType.UNKNOWN, AuditAction.UNKNOWN)
    )


@dataclass(frozen=True, slots=True)
class AuditLog:
    """A single, immutable audit record."""

    audit_id: str
    entity_type: str
    entity_id: str
    action: str
    timestamp: datetime
    payload: dict[str, Any] = field(default_factory=dict)
    actor_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation."""
        return {
            "id": self.audit_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "actor_id": self.actor_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditLog":
        """Rebuild a record from `to_dict` output."""
        timestamp = parse_datetime(data.get("timestamp"))
        if timestamp is None:
            raise ValidationError("timestamp", "is required")
        return cls(
            audit_id=data["id"],
            entity_type=data["entity_type"],
            entity_id=data["entity_id"],
            action=data["action"],
            timestamp=timestamp,
            payload=dict(data.get("payload") or {}),
            actor_id=data.get("actor_id"),
        )
