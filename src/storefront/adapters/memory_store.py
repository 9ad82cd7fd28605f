"""Shared in-memory backing store.

`InMemoryStore` holds one table per aggregate type, each mapping an ID to a
JSON-safe snapshot. A re-entrant lock serialises access: an open
`InMemoryTransaction` holds it for its whole lifetime, so other threads wait
until the transaction is committed or rolled back.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

Table = dict[str, dict[str, Any]]


class InMemoryStore:
    """A set of named tables guarded by one re-entrant lock."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._tables: dict[str, Table] = {}

    def table(self, name: str) -> Table:
        """Return (creating if needed) the table called *name*."""
        return self._tables.setdefault(name, {})

    @contextmanager
    def locked(self) -> Iterator[InMemoryStore]:
        """Hold the store lock for the duration of the block."""
        with self.lock:
            yield self

    def snapshot(self) -> dict[str, Table]:
        """Deep copy of every table, used to roll back a transaction."""
        return copy.deepcopy(self._tables)

    def restore(self, tables: dict[str, Table]) -> None:
        """Replace every table with a previously taken snapshot."""
        self._tables = tables
