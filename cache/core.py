"""
Core cache storage for the inventory request pipeline.

This module defines the byte-oriented contract every cache backend
implements, plus a lightweight in-process backend used by tests and
single-process deployments.
"""
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger()


class CacheStore(ABC):
    """
    Byte-oriented key-value cache backend.

    Backends raise on failure; error normalization, timeouts and metrics
    live in ``cache.client.CacheClient``.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes for ``key`` or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Store ``value`` under ``key`` for ``ttl``, overwriting any entry."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove ``key`` if present."""

    @abstractmethod
    async def remove_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix`` and return the count."""


class MemoryCacheStore(CacheStore):
    """
    Simple in-memory cache backend.

    Entries expire lazily: an expired entry is dropped the next time it is
    looked at. When the store is full the oldest entry is evicted.
    """

    def __init__(self, max_size: int = 10000, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the store.

        Args:
            max_size: Maximum number of entries held at once
            clock: Monotonic time source in seconds, injectable for tests
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._max_size = max_size
        self._clock = clock
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._live_entry(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry['value']

    async def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("cache values must be bytes")

        # Enforce max size by removing oldest entry if needed
        if len(self._entries) >= self._max_size and key not in self._entries:
            oldest_key = min(self._entries.items(), key=lambda item: item[1]['timestamp'])[0]
            del self._entries[oldest_key]
            logger.debug("memory_cache_evicted", key=oldest_key)

        now = self._clock()
        self._entries[key] = {
            'value': bytes(value),
            'expiry': now + ttl.total_seconds(),
            'timestamp': now,
        }

    async def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    async def remove_by_prefix(self, prefix: str) -> int:
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def exists(self, key: str) -> bool:
        """Check if a key exists and is not expired."""
        return self._live_entry(key) is not None

    def keys(self) -> list:
        """Live keys, oldest first."""
        now = self._clock()
        return [key for key, entry in self._entries.items() if entry['expiry'] > now]

    def flush(self) -> None:
        """Clear all entries and reset the hit/miss counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """
        Get store statistics.

        Returns:
            Dictionary with size, max_size, hits, misses and hit_ratio
        """
        total_requests = self._hits + self._misses
        hit_ratio = self._hits / total_requests if total_requests > 0 else 0

        return {
            'size': len(self._entries),
            'max_size': self._max_size,
            'hits': self._hits,
            'misses': self._misses,
            'hit_ratio': hit_ratio,
        }

    def _live_entry(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry['expiry'] <= self._clock():
            del self._entries[key]
            return None
        return entry
