"""Unit tests for the in-process message producer."""

import pytest

from storefront.adapters.messaging import InMemoryMessageProducer, SentMessage
from storefront.interfaces.errors import PublishError


def test_records_and_delivers_to_topic_subscribers():
    """Messages are recorded and delivered only to their topic's consumers."""
    producer = InMemoryMessageProducer()
    audit: list[bytes] = []
    other: list[bytes] = []
    producer.subscribe("audit", audit.append)
    producer.subscribe("other", other.append)

    producer.send("audit", "k1", b"payload")

    assert list(producer.sent) == [SentMessage("audit", "k1", b"payload")]
    assert audit == [b"payload"]
    assert not other


def test_consumer_failure_raises_publish_error():
    """A failing consumer surfaces as PublishError; the message stays recorded."""
    producer = InMemoryMessageProducer()

    def broken(_value: bytes) -> None:
        raise RuntimeError("boom")

    producer.subscribe("audit", broken)
    with pytest.raises(PublishError):
        producer.send("audit", "k1", b"payload")
    assert len(producer.sent) == 1


def test_keeps_only_the_latest_messages():
    """The record is bounded; delivery goes on after the oldest fall off."""
    producer = InMemoryMessageProducer(history=2)
    delivered: list[bytes] = []
    producer.subscribe("audit", delivered.append)

    for n in range(5):
        producer.send("audit", f"k{n}", b"%d" % n)

    assert [m.key for m in producer.sent] == ["k3", "k4"]
    assert len(delivered) == 5


def test_history_can_be_disabled():
    producer = InMemoryMessageProducer(history=0)
    producer.send("audit", "k1", b"payload")
    assert not producer.sent


def test_negative_history_is_rejected():
    with pytest.raises(ValueError, match="history"):
        InMemoryMessageProducer(history=-1)
