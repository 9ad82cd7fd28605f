"""Default user service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from storefront.domain import errors
from storefront.domain.aggregates import User
from storefront.interfaces.services import DEFAULT_PAGE_SIZE, UserService

from .base import AggregateService

if TYPE_CHECKING:
    from storefront.interfaces.eventbus import EventBus
    from storefront.interfaces.id_generator import IdGenerator
    from storefront.interfaces.repositories import UserRepository
    from storefront.interfaces.transaction import Transaction, TransactionFactory

logger = logging.getLogger(__name__)

# pylint: disable=too-many-arguments


class DefaultUserService(AggregateService, UserService):
    """User operations over a `UserRepository`."""

    def __init__(
        self,
        repository: UserRepository,
        tx_factory: TransactionFactory,
        id_generator: IdGenerator,
        event_bus: EventBus | None = None,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(
            tx_factory, id_generator, event_bus, default_page_size=default_page_size
        )
        self._repository = repository

    def _load(self, user_id: str, tx: Transaction) -> User:
        if (user := self._repository.get_by_id(user_id, tx)) is None:
            raise errors.UserNotFoundError(user_id)
        return user

    # --- Commands ---

    def create(self, email: str, name: str, password: str) -> User:
        user = User.register(
            self._id_generator.new_id(), email=email, name=name, password=password
        )
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            if self._repository.get_by_email(email, tx) is not None:
                raise errors.EmailAlreadyRegisteredError(email)
            self._repository.add(user, tx)
            tx.commit()
        logger.debug("Created user %s", user.aggregate_id)
        self._publish(user)
        return user

    def update(self, user_id: str, name: str) -> User:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            user = self._load(user_id, tx)
            user.update(name)
            self._repository.update(user, tx)
            tx.commit()
        self._publish(user)
        return user

    def change_password(self, user_id: str, password: str) -> User:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            user = self._load(user_id, tx)
            user.change_password(password)
            self._repository.update(user, tx)
            tx.commit()
        self._publish(user)
        return user

    def delete(self, user_id: str) -> None:
        with self._tx_factory.new_transaction(self._repository.store) as tx:
            user = self._load(user_id, tx)
            user.mark_deleted()
            self._repository.delete(user_id, tx, deleted_at=user.deleted_at)
            tx.commit()
        logger.debug("Deleted user %s", user_id)
        self._publish(user)

    # --- Queries ---

    def get(self, user_id: str) -> User | None:
        return self._repository.get_by_id(user_id)

    def get_by_email(self, email: str) -> User | None:
        return self._repository.get_by_email(email)

    def list(self, offset: int = 0, limit: int = 0) -> tuple[Sequence[User], int]:
        return self._repository.list(*self._page(offset, limit))
