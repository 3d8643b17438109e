"""
Which cached reads each inventory write makes stale.

This is the only place the relationship is declared. Prefixes come from the
query classes themselves, so renaming a query cannot silently orphan its
rule.
"""
from cache.invalidation import InvalidationMap
from pipeline.keys import key_prefix

from . import requests as rq

PRODUCT_READS = (
    rq.ListProducts,
    rq.GetProductById,
    rq.LowStockProducts,
    rq.SearchProducts,
    rq.Dashboard,
    rq.RecentProducts,
    rq.RecentAuditLogs,
)

CATEGORY_READS = (
    rq.ListCategories,
    rq.GetCategoryById,
    rq.Dashboard,
    rq.RecentAuditLogs,
    # product reads render the category name
    rq.ListProducts,
    rq.GetProductById,
    rq.LowStockProducts,
    rq.SearchProducts,
    rq.RecentProducts,
)

INVENTORY_INVALIDATION_MAP = InvalidationMap({
    rq.PRODUCT: [key_prefix(query) for query in PRODUCT_READS],
    rq.CATEGORY: [key_prefix(query) for query in CATEGORY_READS],
})
