"""
Inventory request pipeline.

Requests flow through validation, then read-through caching (queries) or
write-through cache invalidation (commands), and finally their handler.
"""

from .requests import (
    Request,
    Query,
    Command,
    DashboardQuery,
    ListQuery,
    ItemQuery,
    is_read,
    is_write,
)
from .errors import (
    PipelineError,
    ValidationFailure,
    RequestValidationError,
    CacheDecodeError,
    HandlerNotFoundError,
    RequestClassificationError,
)
from .keys import derive_key, key_prefix
from .ttl import TTLClass, TTLPolicy, DEFAULT_TTL_POLICY, classify, resolve_ttl
from .serialization import ResponseCodec
from .validation import RequestValidator
from .behaviors import (
    PipelineBehavior,
    InvalidationClock,
    ValidationBehavior,
    CachingBehavior,
    CacheInvalidationBehavior,
)
from .dispatcher import Dispatcher, HandlerRegistry, build_dispatcher

__all__ = [
    'Request',
    'Query',
    'Command',
    'DashboardQuery',
    'ListQuery',
    'ItemQuery',
    'is_read',
    'is_write',
    'PipelineError',
    'ValidationFailure',
    'RequestValidationError',
    'CacheDecodeError',
    'HandlerNotFoundError',
    'RequestClassificationError',
    'derive_key',
    'key_prefix',
    'TTLClass',
    'TTLPolicy',
    'DEFAULT_TTL_POLICY',
    'classify',
    'resolve_ttl',
    'ResponseCodec',
    'RequestValidator',
    'PipelineBehavior',
    'InvalidationClock',
    'ValidationBehavior',
    'CachingBehavior',
    'CacheInvalidationBehavior',
    'Dispatcher',
    'HandlerRegistry',
    'build_dispatcher',
]
