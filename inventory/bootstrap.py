"""Wire the inventory catalogue into a ready-to-use dispatcher."""
from typing import Optional

import structlog

from cache.client import CacheClient
from cache.core import CacheStore, MemoryCacheStore
from cache.redis_store import RedisCacheStore
from config.logging import configure_logging
from config.settings import CacheBackend, PipelineSettings
from pipeline.dispatcher import Dispatcher, HandlerRegistry, build_dispatcher

from .handlers import InventoryHandlers
from .invalidation_rules import INVENTORY_INVALIDATION_MAP
from .repositories import AuditLogRepository, CategoryRepository, ProductRepository

logger = structlog.get_logger()


def create_store(settings: PipelineSettings) -> CacheStore:
    """Instantiate the cache backend named by the settings."""
    if settings.CACHE_BACKEND == CacheBackend.REDIS:
        return RedisCacheStore(
            settings.REDIS_URL,
            use_key_index=settings.CACHE_KEY_INDEX,
            index_namespace=settings.CACHE_INDEX_NAMESPACE,
        )
    return MemoryCacheStore(max_size=settings.MEMORY_CACHE_MAX_SIZE)


def create_dispatcher(
    settings: Optional[PipelineSettings] = None,
    *,
    products: ProductRepository,
    categories: CategoryRepository,
    audit_logs: AuditLogRepository,
    store: Optional[CacheStore] = None,
    setup_logging: bool = True,
) -> Dispatcher:
    settings = settings or PipelineSettings()
    if setup_logging:
        configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    store = store or create_store(settings)
    client = CacheClient(store, operation_timeout=settings.CACHE_OPERATION_TIMEOUT)

    handlers = HandlerRegistry()
    InventoryHandlers(products, categories, audit_logs).register(handlers)

    logger.info(
        "inventory_pipeline_ready",
        cache_backend=type(store).__name__,
        invalidation_subjects=sorted(INVENTORY_INVALIDATION_MAP.subjects()),
    )
    return build_dispatcher(
        handlers,
        client,
        INVENTORY_INVALIDATION_MAP,
        ttl_policy=settings.ttl_policy(),
        max_key_length=settings.CACHE_MAX_KEY_LENGTH,
    )
