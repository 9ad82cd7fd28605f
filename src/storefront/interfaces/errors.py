"""Infrastructure error definitions.

These errors describe failures of the stores behind the interfaces
(databases, caches, brokers), as opposed to domain rule violations.
"""


class StoreError(Exception):
    """Base class for infrastructural failures of a backing store."""


class StoreUnavailableError(StoreError):
    """Raised when a store cannot complete an operation (timeout, lost connection, ...)."""


class UnsupportedStoreError(StoreError):
    """Raised when no adapter is configured for the requested store."""

    def __init__(self, store: object) -> None:
        name = getattr(store, "value", store)
        super().__init__(f"No adapter configured for store {name!r}.")
        self.store = store


class CacheError(StoreError):
    """Raised when a cache operation fails."""


class PublishError(StoreError):
    """Raised when an outbound message cannot be handed to the transport."""
