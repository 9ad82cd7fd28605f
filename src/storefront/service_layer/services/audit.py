"""Audit trail service and the consumer feeding it from the audit topic."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from storefront.domain.audit import AuditLog
from storefront.domain.errors import DuplicateAuditLogError
from storefront.domain.utils import parse_datetime, utc_now
from storefront.interfaces.messaging import AuditMessage
from storefront.interfaces.services import DEFAULT_PAGE_SIZE

if TYPE_CHECKING:
    from datetime import datetime

    from storefront.interfaces.repositories import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Records and queries the append-only audit trail."""

    def __init__(self, repository: AuditLogRepository) -> None:
        self._repository = repository

    def record(self, log: AuditLog) -> AuditLog:
        """Append *log* to the trail.

        Recording an ID that is already present is a no-op returning the
        stored record, so redelivered messages are absorbed.
        """
        if (existing := self._repository.get_by_id(log.audit_id)) is not None:
            logger.debug("Audit log %s already recorded; skipping", log.audit_id)
            return existing
        try:
            self._repository.add(log)
        except DuplicateAuditLogError:
            # a concurrent redelivery won the insert
            logger.debug("Audit log %s recorded concurrently; skipping", log.audit_id)
            stored = self._repository.get_by_id(log.audit_id)
            return log if stored is None else stored
        logger.info(
            "Audit log recorded: %s (%s.%s)", log.audit_id, log.entity_type, log.action
        )
        return log

    def get(self, audit_id: str) -> AuditLog | None:
        """Return the record with *audit_id*, or None."""
        return self._repository.get_by_id(audit_id)

    def by_entity_type(
        self, entity_type: str, limit: int = 0, after: str | None = None
    ) -> tuple[Sequence[AuditLog], str | None]:
        """Page through the records of one entity type in ID order.

        Returns:
            The records and the key for the next page (None on the last page).
        """
        limit = limit if limit > 0 else DEFAULT_PAGE_SIZE
        return self._repository.find_by_entity_type(entity_type, limit, after)

    def by_entity_id(self, entity_type: str, entity_id: str) -> Sequence[AuditLog]:
        """Return the full history of one entity, oldest first."""
        return self._repository.find_by_entity_id(entity_type, entity_id)


class AuditConsumer:
    """Turns audit messages into audit records.

    Subscribe `handle` to the audit topic of a message producer.
    """

    def __init__(self, audit_service: AuditService) -> None:
        self._audit_service = audit_service

    def handle(self, raw: str | bytes) -> AuditLog:
        """Decode one message and record it.

        Raises:
            ValidationError: If the message is not a valid audit message.
        """
        message = AuditMessage.from_json(raw)
        log = AuditLog(
            audit_id=message.id,
            entity_type=message.entity_type,
            entity_id=message.entity_id,
            action=message.action,
            timestamp=self._timestamp(message),
            payload=message.payload,
            actor_id=message.user_id,
        )
        return self._audit_service.record(log)

    __call__ = handle

    @staticmethod
    def _timestamp(message: AuditMessage) -> datetime:
        try:
            if (timestamp := parse_datetime(message.timestamp)) is not None:
                return timestamp
        except ValueError:
            pass
        logger.warning(
            "Audit message %s has an invalid timestamp %r; using the current time",
            message.id,
            message.timestamp,
        )
        return utc_now()
