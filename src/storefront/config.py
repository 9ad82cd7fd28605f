"""Configuration utilities for Storefront.

This module centralizes the application settings, their loading from the
environment, and small helpers related to database migrations.

Settings are immutable snapshots: a running application picks up new values by
asking its `ConfigSupervisor` to reload, never by mutating the current one.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from importlib.resources import files
from typing import TextIO

from alembic.config import Config

from storefront.interfaces.services import DEFAULT_PAGE_SIZE
from storefront.interfaces.transaction import StoreType

logger = logging.getLogger(__name__)

ALEMBIC_URL_KEY = "sqlalchemy.url"  # pragma: no mutate
ALEMBIC_SCRIPT_LOCATION_KEY = "script_location"  # pragma: no mutate

ENV_PREFIX = "STOREFRONT_"
DB_URL_ENV = f"{ENV_PREFIX}DB_URL"

DEFAULT_CACHE_TTL = timedelta(minutes=30)
DEFAULT_AUDIT_TOPIC = "audit-events"


class DatabaseUrlNotSetError(Exception):
    """Raised when the STOREFRONT_DB_URL environment variable is not set."""


class ConfigError(ValueError):
    """Raised when a configuration value is missing or invalid."""

    def __init__(self, variable: str, reason: str) -> None:
        super().__init__(f"{variable}: {reason}")
        self.variable = variable
        self.reason = reason


class CacheBackend(str, Enum):
    """Available cache backends."""

    MEMORY = "memory"
    REDIS = "redis"
    NONE = "none"


@dataclass(frozen=True)
class Settings:  # pylint: disable=too-many-instance-attributes
    """Immutable snapshot of the application settings.

    Attributes:
        db_url: SQLAlchemy URL of the relational store; None when every
            aggregate lives in memory.
        user_store: Store backing users.
        product_store: Store backing products.
        order_store: Store backing orders.
        audit_store: Store backing the audit trail.
        cache_backend: Cache used by the cache-aside decorators.
        redis_url: Redis URL, required by the ``redis`` cache backend.
        cache_ttl: Lifetime of cache entries.
        default_page_size: Page size used when a caller passes no limit.
        audit_topic: Topic audit messages are published on.
    """

    db_url: str | None = None
    user_store: StoreType = StoreType.MEMORY
    product_store: StoreType = StoreType.MEMORY
    order_store: StoreType = StoreType.MEMORY
    audit_store: StoreType = StoreType.MEMORY
    cache_backend: CacheBackend = CacheBackend.MEMORY
    redis_url: str | None = None
    cache_ttl: timedelta = field(default=DEFAULT_CACHE_TTL)
    default_page_size: int = DEFAULT_PAGE_SIZE
    audit_topic: str = DEFAULT_AUDIT_TOPIC

    @property
    def stores(self) -> frozenset[StoreType]:
        """Every store some aggregate is configured to live in."""
        return frozenset(
            {self.user_store, self.product_store, self.order_store, self.audit_store}
        )


def _store(environ: Mapping[str, str], name: str, default: StoreType) -> StoreType:
    variable = f"{ENV_PREFIX}{name}_STORE"
    if not (raw := environ.get(variable)):
        return default
    try:
        return StoreType(raw.strip().lower())
    except ValueError as e:
        choices = ", ".join(s.value for s in StoreType)
        raise ConfigError(variable, f"expected one of {choices}, got {raw!r}") from e


def _positive_int(environ: Mapping[str, str], variable: str, default: int) -> int:
    if not (raw := environ.get(variable)):
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(variable, f"expected an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(variable, "must be greater than zero")
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build a `Settings` snapshot from ``STOREFRONT_*`` environment variables.

    Aggregates default to the SQL store when ``STOREFRONT_DB_URL`` is set and
    to the in-memory store otherwise.

    Args:
        environ: Mapping to read from; defaults to `os.environ`.

    Raises:
        ConfigError: If a variable holds an invalid value or a required
            companion variable is missing.
    """
    environ = os.environ if environ is None else environ

    db_url = environ.get(DB_URL_ENV) or None
    default_store = StoreType.SQL if db_url else StoreType.MEMORY
    stores = {
        name: _store(environ, name.upper(), default_store)
        for name in ("user", "product", "order", "audit")
    }
    if StoreType.SQL in stores.values() and not db_url:
        raise ConfigError(DB_URL_ENV, "required when an aggregate uses the sql store")

    raw_backend = environ.get(f"{ENV_PREFIX}CACHE_BACKEND") or CacheBackend.MEMORY.value
    try:
        cache_backend = CacheBackend(raw_backend.strip().lower())
    except ValueError as e:
        raise ConfigError(
            f"{ENV_PREFIX}CACHE_BACKEND", f"unknown backend {raw_backend!r}"
        ) from e
    redis_url = environ.get(f"{ENV_PREFIX}REDIS_URL") or None
    if cache_backend is CacheBackend.REDIS and not redis_url:
        raise ConfigError(f"{ENV_PREFIX}REDIS_URL", "required by the redis cache")

    ttl_seconds = _positive_int(
        environ,
        f"{ENV_PREFIX}CACHE_TTL_SECONDS",
        int(DEFAULT_CACHE_TTL.total_seconds()),
    )

    return Settings(
        db_url=db_url,
        user_store=stores["user"],
        product_store=stores["product"],
        order_store=stores["order"],
        audit_store=stores["audit"],
        cache_backend=cache_backend,
        redis_url=redis_url,
        cache_ttl=timedelta(seconds=ttl_seconds),
        default_page_size=_positive_int(
            environ, f"{ENV_PREFIX}PAGE_SIZE", DEFAULT_PAGE_SIZE
        ),
        audit_topic=environ.get(f"{ENV_PREFIX}AUDIT_TOPIC") or DEFAULT_AUDIT_TOPIC,
    )


class ConfigSupervisor:
    """Holds the current `Settings` snapshot and swaps it on reload.

    Args:
        loader: Builds a fresh snapshot; `load_settings` by default.
    """

    def __init__(self, loader: Callable[[], Settings] = load_settings) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._current = loader()
        self._subscribers: list[Callable[[Settings], None]] = []

    @property
    def current(self) -> Settings:
        """The active snapshot."""
        with self._lock:
            return self._current

    def subscribe(self, callback: Callable[[Settings], None]) -> None:
        """Call *callback* with every new snapshot produced by `reload`."""
        with self._lock:
            self._subscribers.append(callback)

    def reload(self) -> Settings:
        """Load a fresh snapshot, make it current and notify subscribers.

        Raises:
            ConfigError: If the new configuration is invalid. The current
                snapshot is kept.
        """
        settings = self._loader()
        with self._lock:
            self._current = settings
            subscribers = tuple(self._subscribers)
        logger.info("Configuration reloaded")
        for callback in subscribers:
            callback(settings)
        return settings


def get_db_url() -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `STOREFRONT_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `STOREFRONT_DB_URL` is not set.
    """
    if not (url := os.environ.get(DB_URL_ENV)):
        raise DatabaseUrlNotSetError
    return url


def build_alembic_config(
    db_url: str | None = None, stdout: TextIO = sys.stdout
) -> Config:
    """Build an Alembic `Config` object for Storefront's migrations.

    Args:
        db_url: SQLAlchemy database URL. Can be `None` only in contexts where
            Alembic won't need to connect to the DB.
        stdout: Text stream Alembic will write status lines to.

    Returns:
        An `alembic.config.Config` pointing to the packaged migration scripts.
    """
    cfg = Config(stdout=stdout)
    if db_url is not None:
        cfg.set_main_option(ALEMBIC_URL_KEY, db_url)
    cfg.set_main_option(
        ALEMBIC_SCRIPT_LOCATION_KEY,
        str(files("storefront.adapters.db.alembic")),
    )
    return cfg
