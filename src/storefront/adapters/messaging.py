"""In-process message producer.

Stands in for a broker: messages are delivered synchronously to the consumers
subscribed to their topic, and a bounded window of them is kept for inspection.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from storefront.interfaces.errors import PublishError
from storefront.interfaces.messaging import MessageProducer

logger = logging.getLogger(__name__)

type MessageConsumer = Callable[[bytes], object]

DEFAULT_HISTORY = 1000


@dataclass(frozen=True, slots=True)
class SentMessage:
    """A message handed to the producer."""

    topic: str
    key: str
    value: bytes


class InMemoryMessageProducer(MessageProducer):
    """Forwards messages to topic subscribers and remembers the latest ones.

    Only the last *history* messages are kept in `sent`, so a long-running
    process does not accumulate every message it ever produced.
    """

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        if history < 0:
            raise ValueError("history must be zero or positive")
        self.sent: deque[SentMessage] = deque(maxlen=history)
        self._consumers: dict[str, list[MessageConsumer]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, consumer: MessageConsumer) -> None:
        """Deliver every message sent to *topic* to *consumer*."""
        with self._lock:
            self._consumers.setdefault(topic, []).append(consumer)

    def send(self, topic: str, key: str, value: bytes) -> None:
        with self._lock:
            self.sent.append(SentMessage(topic, key, value))
            consumers = tuple(self._consumers.get(topic, ()))
        logger.debug("Sent message %s to topic %s", key, topic)
        for consumer in consumers:
            try:
                consumer(value)
            except Exception as e:
                logger.exception("Consumer failed for message %s on %s", key, topic)
                raise PublishError(f"Delivery of {key} to {topic} failed") from e
