"""
Cache store client.

Every pipeline component talks to the cache through ``CacheClient``. It
bounds each backend call with a timeout and turns any backend failure into
``CacheUnavailableError`` so callers handle a single error type.
"""
import asyncio
from datetime import timedelta
from typing import Awaitable, Optional, TypeVar

from monitoring.cache_metrics import track_cache_operation

from .core import CacheStore
from .errors import CacheUnavailableError

T = TypeVar('T')

DEFAULT_OPERATION_TIMEOUT = 0.5


class CacheClient:
    """Timeout-bounded, error-normalizing wrapper over a ``CacheStore``."""

    def __init__(self, store: CacheStore, operation_timeout: float = DEFAULT_OPERATION_TIMEOUT):
        if operation_timeout <= 0:
            raise ValueError("operation_timeout must be positive")
        self.store = store
        self.operation_timeout = operation_timeout

    async def get(self, key: str) -> Optional[bytes]:
        return await self._run('get', key, self.store.get(key))

    async def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        await self._run('set', key, self.store.set(key, value, ttl))

    async def remove(self, key: str) -> None:
        await self._run('remove', key, self.store.remove(key))

    async def remove_by_prefix(self, prefix: str) -> int:
        return await self._run('remove_by_prefix', prefix, self.store.remove_by_prefix(prefix))

    async def _run(self, operation: str, target: str, call: Awaitable[T]) -> T:
        try:
            async with track_cache_operation(operation):
                return await asyncio.wait_for(call, timeout=self.operation_timeout)
        except CacheUnavailableError:
            raise
        except Exception as e:
            raise CacheUnavailableError(operation, target, e) from e
