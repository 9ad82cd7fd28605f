"""Plumbing shared by the default domain services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from storefront.interfaces.eventbus import Event
from storefront.interfaces.services import DEFAULT_PAGE_SIZE, clamp_page
from storefront.service_layer.eventbus import NoopEventBus

if TYPE_CHECKING:
    from storefront.domain.aggregates import Aggregate
    from storefront.interfaces.eventbus import EventBus
    from storefront.interfaces.id_generator import IdGenerator
    from storefront.interfaces.transaction import TransactionFactory

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods


class AggregateService:
    """Base for services that persist aggregates and publish their events.

    Args:
        tx_factory: Opens transactions against the repositories' stores.
        id_generator: Source of aggregate, item and event IDs.
        event_bus: Receives the drained events after commit. Defaults to a
            bus that drops everything.
        default_page_size: Page size used when a caller passes ``limit <= 0``.
    """

    def __init__(
        self,
        tx_factory: TransactionFactory,
        id_generator: IdGenerator,
        event_bus: EventBus | None = None,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._tx_factory = tx_factory
        self._id_generator = id_generator
        self._event_bus = event_bus or NoopEventBus()
        self._default_page_size = default_page_size

    def _page(self, offset: int, limit: int) -> tuple[int, int]:
        return clamp_page(offset, limit, self._default_page_size)

    def _publish(self, aggregate: Aggregate) -> None:
        """Drain *aggregate* and publish its events.

        Must only be called once the changes are committed. Failures are
        logged; the committed operation is never undone because of them.
        """
        for domain_event in aggregate.drain_events():
            event = Event.from_domain_event(domain_event, self._id_generator.new_id())
            try:
                failures = self._event_bus.publish(event)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Failed to publish event %s", event.name)
                continue
            for failure in failures:
                logger.warning(
                    "Handler %s failed on event %s (%s): %s",
                    failure.handler_name,
                    event.name,
                    event.event_id,
                    failure.error,
                )
