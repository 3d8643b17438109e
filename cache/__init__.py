"""
Inventory Cache Module

This module provides the cache store client used by the request pipeline:
byte-oriented backends (in-memory and Redis), a timeout-bounded client that
normalizes backend failures, and the static invalidation map that ties write
subjects to the read-key prefixes they purge.

The cache is a best-effort accelerator, not a source of truth:
- Reads fail open when the store misbehaves
- Writes purge affected prefixes after they succeed
- No cross-instance locking or strong consistency
"""

from .core import CacheStore, MemoryCacheStore
from .redis_store import RedisCacheStore
from .client import CacheClient
from .errors import CacheError, CacheUnavailableError
from .invalidation import InvalidationMap, KEY_DELIMITER

__all__ = [
    'CacheStore',
    'MemoryCacheStore',
    'RedisCacheStore',
    'CacheClient',
    'CacheError',
    'CacheUnavailableError',
    'InvalidationMap',
    'KEY_DELIMITER',
]
