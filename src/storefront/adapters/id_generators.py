"""Identifier strategies: ULIDs in production, sequential IDs in tests."""

import threading
import uuid

from ulid import monotonic

from storefront.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class ULIDGenerator(IdGenerator):
    """Monotonic ULIDs from `ulid-py`, serialized across threads.

    IDs minted later always sort after earlier ones, which is what the audit
    trail relies on when it pages by ID.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class UUIDv4Generator(IdGenerator):
    """Random UUIDv4 strings; unique but unordered."""

    def new_id(self) -> str:
        """Generate a new UUID."""
        return str(uuid.uuid4())


class SequentialIdGenerator(IdGenerator):
    """Deterministic, zero-padded sequential IDs with an optional prefix.

    Note:
        Not suitable for production use; intended for tests and demos.
    """

    def __init__(self, prefix: str = "", length: int = 26) -> None:
        self._counter = 0
        self._prefix = prefix
        self._length = length
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate the next identifier."""
        with self._lock:
            self._counter += 1
            return f"{self._prefix}{self._counter:0{self._length}d}"
