"""
Cache lifetime policy.

A read's lifetime follows its declared purpose, tested in priority order:
dashboard, then collection listing, then single item, then the default.
"""
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from .requests import DashboardQuery, ItemQuery, ListQuery, Request

# Cache TTLs for the different kinds of reads
DASHBOARD_TTL = timedelta(minutes=1)     # metrics move with every write
LIST_QUERY_TTL = timedelta(minutes=2)
SINGLE_ITEM_TTL = timedelta(minutes=5)   # rarely change between writes
DEFAULT_TTL = timedelta(minutes=3)


class TTLClass(str, Enum):
    DASHBOARD = "dashboard"
    LIST_QUERY = "list_query"
    SINGLE_ITEM_QUERY = "single_item_query"
    DEFAULT = "default"


@dataclass(frozen=True)
class TTLPolicy:
    dashboard: timedelta = DASHBOARD_TTL
    list_query: timedelta = LIST_QUERY_TTL
    single_item: timedelta = SINGLE_ITEM_TTL
    default: timedelta = DEFAULT_TTL

    def __post_init__(self):
        for name in ('dashboard', 'list_query', 'single_item', 'default'):
            if getattr(self, name) <= timedelta(0):
                raise ValueError(f"{name} TTL must be positive")

    def duration(self, ttl_class: TTLClass) -> timedelta:
        return {
            TTLClass.DASHBOARD: self.dashboard,
            TTLClass.LIST_QUERY: self.list_query,
            TTLClass.SINGLE_ITEM_QUERY: self.single_item,
            TTLClass.DEFAULT: self.default,
        }[ttl_class]


DEFAULT_TTL_POLICY = TTLPolicy()


def classify(request: Request) -> TTLClass:
    if isinstance(request, DashboardQuery):
        return TTLClass.DASHBOARD
    if isinstance(request, ListQuery):
        return TTLClass.LIST_QUERY
    if isinstance(request, ItemQuery):
        return TTLClass.SINGLE_ITEM_QUERY
    return TTLClass.DEFAULT


def resolve_ttl(request: Request, policy: TTLPolicy = DEFAULT_TTL_POLICY) -> timedelta:
    """Lifetime of the cached response for ``request``. Never fails."""
    return policy.duration(classify(request))
