"""
Inventory back office requests.

Products, categories and the metrics dashboard, expressed as pipeline
requests with their handlers, field constraints and cache invalidation rules.
"""

from .bootstrap import create_dispatcher, create_store
from .handlers import InventoryHandlers, NotFoundError
from .invalidation_rules import INVENTORY_INVALIDATION_MAP
from .repositories import (
    InMemoryAuditLogRepository,
    InMemoryCategoryRepository,
    InMemoryProductRepository,
)

__all__ = [
    'create_dispatcher',
    'create_store',
    'InventoryHandlers',
    'NotFoundError',
    'INVENTORY_INVALIDATION_MAP',
    'InMemoryAuditLogRepository',
    'InMemoryCategoryRepository',
    'InMemoryProductRepository',
]
