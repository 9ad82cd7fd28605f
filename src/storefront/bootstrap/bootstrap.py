"""Wire adapters and services into an `AppContainer`."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from storefront import config
from storefront.adapters.cache import InMemoryCache, RedisCache
from storefront.adapters.db.engine import make_engine
from storefront.adapters.id_generators import ULIDGenerator
from storefront.adapters.memory_store import InMemoryStore
from storefront.adapters.messaging import InMemoryMessageProducer
from storefront.adapters.metrics import PrometheusCacheMetrics
from storefront.adapters.repositories import memory, sql
from storefront.adapters.transaction import (
    InMemoryTransaction,
    SqlAlchemyTransaction,
    StoreTransactionFactory,
    TransactionOpener,
)
from storefront.interfaces.errors import UnsupportedStoreError
from storefront.interfaces.transaction import StoreType
from storefront.service_layer.cached import CachedProductService, CachedUserService
from storefront.service_layer.eventbus import SimpleEventBus
from storefront.service_layer.handlers import (
    AuditForwardingHandler,
    LoggingEventHandler,
)
from storefront.service_layer.services import (
    AuditConsumer,
    AuditService,
    DefaultOrderService,
    DefaultProductService,
    DefaultUserService,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from storefront.interfaces.cache import Cache, CacheMetrics
    from storefront.interfaces.eventbus import EventBus
    from storefront.interfaces.id_generator import IdGenerator
    from storefront.interfaces.messaging import MessageProducer
    from storefront.interfaces.services import (
        OrderService,
        ProductService,
        UserService,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:  # pylint: disable=too-many-instance-attributes
    """The assembled application."""

    settings: config.Settings
    users: UserService
    products: ProductService
    orders: OrderService
    audit: AuditService
    audit_consumer: AuditConsumer
    event_bus: EventBus
    producer: MessageProducer
    transactions: StoreTransactionFactory
    memory_store: InMemoryStore
    engine: Engine | None = None
    cache: Cache | None = None
    metrics: CacheMetrics | None = None


def _pick[R](
    store: StoreType,
    engine: Engine | None,
    memory_store: InMemoryStore,
    sql_repository: Callable[[Engine], R],
    memory_repository: Callable[[InMemoryStore], R],
) -> R:
    match store:
        case StoreType.SQL if engine is not None:
            return sql_repository(engine)
        case StoreType.MEMORY:
            return memory_repository(memory_store)
        case _:
            raise UnsupportedStoreError(store)


def build_cache(settings: config.Settings) -> Cache | None:
    """Build the cache selected by *settings*, or None when caching is off."""
    match settings.cache_backend:
        case config.CacheBackend.REDIS:
            if settings.redis_url is None:
                raise config.ConfigError(
                    f"{config.ENV_PREFIX}REDIS_URL", "required by the redis cache"
                )
            return RedisCache.from_url(settings.redis_url)
        case config.CacheBackend.MEMORY:
            return InMemoryCache()
        case _:
            return None


def bootstrap(  # pylint: disable=too-many-locals
    settings: config.Settings | None = None,
    *,
    id_generator: IdGenerator | None = None,
    producer: MessageProducer | None = None,
    cache: Cache | None = None,
    metrics: CacheMetrics | None = None,
) -> AppContainer:
    """Assemble the application.

    Args:
        settings: Settings snapshot; loaded from the environment when omitted.
        id_generator: Defaults to monotonic ULIDs.
        producer: Outbound transport for audit messages. Defaults to the
            in-process producer, with the audit consumer subscribed to the
            audit topic.
        cache: Overrides the cache selected by the settings.
        metrics: Defaults to Prometheus counters on a private registry.

    Raises:
        UnsupportedStoreError: If an aggregate is configured for a store
            without an adapter.
    """
    settings = settings or config.load_settings()
    id_generator = id_generator or ULIDGenerator()

    memory_store = InMemoryStore()
    engine = (
        make_engine(settings.db_url)
        if settings.db_url and StoreType.SQL in settings.stores
        else None
    )

    openers: dict[StoreType, TransactionOpener] = {
        StoreType.MEMORY: lambda _options: InMemoryTransaction(memory_store)
    }
    if engine is not None:
        openers[StoreType.SQL] = lambda options: SqlAlchemyTransaction(engine, options)
    transactions = StoreTransactionFactory(openers)

    user_repo = _pick(
        settings.user_store,
        engine,
        memory_store,
        sql.SqlAlchemyUserRepository,
        memory.InMemoryUserRepository,
    )
    product_repo = _pick(
        settings.product_store,
        engine,
        memory_store,
        sql.SqlAlchemyProductRepository,
        memory.InMemoryProductRepository,
    )
    order_repo = _pick(
        settings.order_store,
        engine,
        memory_store,
        sql.SqlAlchemyOrderRepository,
        memory.InMemoryOrderRepository,
    )
    audit_repo = _pick(
        settings.audit_store,
        engine,
        memory_store,
        sql.SqlAlchemyAuditLogRepository,
        memory.InMemoryAuditLogRepository,
    )

    audit = AuditService(audit_repo)
    audit_consumer = AuditConsumer(audit)
    if producer is None:
        in_process = InMemoryMessageProducer()
        in_process.subscribe(settings.audit_topic, audit_consumer.handle)
        producer = in_process

    event_bus = SimpleEventBus(
        [LoggingEventHandler(), AuditForwardingHandler(producer, settings.audit_topic)]
    )

    page_size = settings.default_page_size
    users: UserService = DefaultUserService(
        user_repo, transactions, id_generator, event_bus, default_page_size=page_size
    )
    products: ProductService = DefaultProductService(
        product_repo,
        transactions,
        id_generator,
        event_bus,
        default_page_size=page_size,
    )
    orders = DefaultOrderService(
        order_repo,
        user_repo,
        transactions,
        id_generator,
        event_bus,
        default_page_size=page_size,
    )

    cache = cache if cache is not None else build_cache(settings)
    if cache is not None:
        metrics = metrics or PrometheusCacheMetrics()
        users = CachedUserService(users, cache, metrics, settings.cache_ttl)
        products = CachedProductService(products, cache, metrics, settings.cache_ttl)

    logger.debug(
        "Bootstrapped storefront: users=%s products=%s orders=%s audit=%s cache=%s",
        settings.user_store.value,
        settings.product_store.value,
        settings.order_store.value,
        settings.audit_store.value,
        type(cache).__name__ if cache is not None else "none",
    )

    return AppContainer(
        settings=settings,
        users=users,
        products=products,
        orders=orders,
        audit=audit,
        audit_consumer=audit_consumer,
        event_bus=event_bus,
        producer=producer,
        transactions=transactions,
        memory_store=memory_store,
        engine=engine,
        cache=cache,
        metrics=metrics,
    )
