"""Synchronous in-process event bus."""

import logging
import threading

from storefront.interfaces.eventbus import Event, EventBus, EventHandler, HandlerFailure

logger = logging.getLogger(__name__)


class SimpleEventBus(EventBus):
    """Dispatches each event to every interested handler, in registration order.

    A handler that raises is logged and reported back to the publisher; it
    never stops the remaining handlers from running. Subscribing while another
    thread publishes is safe: each publication works on a copy of the handler
    list taken when it starts.
    """

    def __init__(self, handlers: list[EventHandler] | None = None) -> None:
        self._handlers: list[EventHandler] = list(handlers or [])
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)
        logger.debug("Subscribed handler %s", self._get_handler_name(handler))

    @property
    def handlers(self) -> tuple[EventHandler, ...]:
        """The subscribed handlers, in dispatch order."""
        with self._lock:
            return tuple(self._handlers)

    def publish(self, event: Event) -> list[HandlerFailure]:
        failures: list[HandlerFailure] = []
        for handler in self.handlers:
            if not handler.interested_in(event.name):
                continue
            handler_name = self._get_handler_name(handler)
            logger.debug(
                "Dispatching event %s (%s) to handler %s",
                event.name,
                event.event_id,
                handler_name,
            )
            try:
                handler.handle(event)
            except Exception as e:  # pylint: disable=broad-except
                logger.exception(
                    "Exception handling event %s (%s) with handler %s",
                    event.name,
                    event.event_id,
                    handler_name,
                )
                failures.append(HandlerFailure(handler_name, event, e))
        return failures

    @staticmethod
    def _get_handler_name(handler: EventHandler) -> str:
        return getattr(handler, "name", None) or type(handler).__name__


class NoopEventBus(EventBus):
    """Event bus that drops everything it is given."""

    def subscribe(self, handler: EventHandler) -> None:
        return None

    def publish(self, event: Event) -> list[HandlerFailure]:
        return []
