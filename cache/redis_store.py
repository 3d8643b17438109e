import asyncio
from datetime import timedelta
from typing import List, Optional

import redis.asyncio as redis
import structlog

from .core import CacheStore

logger = structlog.get_logger()

# Characters with special meaning in a SCAN MATCH glob
_GLOB_SPECIAL = '\\*?[]'
SCAN_BATCH_SIZE = 100


def escape_glob(text: str) -> str:
    """Escape glob metacharacters so ``text`` matches literally."""
    return ''.join('\\' + char if char in _GLOB_SPECIAL else char for char in text)


class RedisCacheStore(CacheStore):
    def __init__(
        self,
        redis_url: str,
        use_key_index: bool = False,
        index_namespace: str = "cache-index",
        client: Optional[redis.Redis] = None,
    ):
        """
        Initialize the Redis store.

        With ``use_key_index`` every written key is also recorded in a Redis
        set per first key segment, and prefix removal reads that set instead
        of scanning the keyspace. Each index set expires with the longest
        lifetime written through this store, so entries that expired on
        their own do not pile up in it.
        """
        self.redis_url = redis_url
        self.use_key_index = use_key_index
        self.index_namespace = index_namespace
        self.redis: Optional[redis.Redis] = client
        self._connect_lock = asyncio.Lock()
        self._index_ttl_ms = 0

    async def connect(self) -> None:
        """Establish connection to Redis."""
        client = redis.from_url(self.redis_url)
        try:
            await client.ping()
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            raise
        self.redis = client
        logger.info("redis_connection_established", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("redis_connection_closed")

    async def _client(self) -> redis.Redis:
        if self.redis is None:
            async with self._connect_lock:
                if self.redis is None:
                    await self.connect()
        return self.redis

    async def get(self, key: str) -> Optional[bytes]:
        client = await self._client()
        return await client.get(key)

    async def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        client = await self._client()
        ttl_ms = max(1, int(ttl.total_seconds() * 1000))
        # Every stored key must already be in its index set
        if self.use_key_index:
            index_key = self.index_key(key)
            self._index_ttl_ms = max(self._index_ttl_ms, ttl_ms)
            await client.sadd(index_key, key)
            await client.pexpire(index_key, self._index_ttl_ms)
        await client.set(key, value, px=ttl_ms)

    async def remove(self, key: str) -> None:
        client = await self._client()
        await client.delete(key)
        if self.use_key_index:
            await client.srem(self.index_key(key), key)

    async def remove_by_prefix(self, prefix: str) -> int:
        if self.use_key_index:
            return await self._remove_indexed(prefix)
        return await self._remove_scanned(prefix)

    def index_key(self, key: str) -> str:
        """Name of the index set that tracks ``key``."""
        group = key.split(':', 1)[0]
        return f"{self.index_namespace}:{group}"

    async def _remove_scanned(self, prefix: str) -> int:
        client = await self._client()
        pattern = escape_glob(prefix) + '*'
        removed = 0
        cursor = 0
        while True:
            cursor, keys = await client.scan(cursor=cursor, match=pattern, count=SCAN_BATCH_SIZE)
            if keys:
                removed += await client.delete(*keys)
            if cursor == 0:
                break
        return removed

    async def _remove_indexed(self, prefix: str) -> int:
        client = await self._client()
        index_key = self.index_key(prefix)
        members = await client.smembers(index_key)
        doomed: List[str] = [
            key for key in (_as_text(member) for member in members)
            if key.startswith(prefix)
        ]
        if not doomed:
            return 0
        removed = await client.delete(*doomed)
        await client.srem(index_key, *doomed)
        return removed


def _as_text(value) -> str:
    return value.decode('utf-8') if isinstance(value, bytes) else value
