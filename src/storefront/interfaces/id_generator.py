"""Where aggregate, order-item and audit-log identifiers come from."""

import abc

# pylint: disable=too-few-public-methods


class IdGenerator(abc.ABC):
    """Hands out identifiers that are never repeated by the same generator."""

    @abc.abstractmethod
    def new_id(self) -> str:
        """Return a fresh identifier as a string of at most 64 characters."""
