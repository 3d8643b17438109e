"""
Pipeline behaviors.

A behavior wraps the invocation of the next step in the chain (another
behavior or, last, the handler). The dispatcher composes them in a fixed
order: validation, then read-through caching for reads or write-through
invalidation for writes.
"""
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import structlog
from pydantic_core import PydanticSerializationError

from cache.client import CacheClient
from cache.errors import CacheUnavailableError
from cache.invalidation import InvalidationMap
from monitoring.cache_metrics import CACHE_HITS, CACHE_INVALIDATIONS, CACHE_MISSES

from .errors import CacheDecodeError, RequestValidationError
from .keys import DEFAULT_MAX_KEY_LENGTH, derive_key
from .requests import Request, is_read, is_write
from .serialization import ResponseCodec
from .ttl import DEFAULT_TTL_POLICY, TTLPolicy, resolve_ttl
from .validation import RequestValidator

logger = structlog.get_logger()

NextHandler = Callable[[], Awaitable[Any]]

_MISS = object()


class PipelineBehavior:
    """Base class for behaviors composed around a request handler."""

    def applies_to(self, request: Request) -> bool:
        return True

    async def handle(self, request: Request, next_: NextHandler) -> Any:
        raise NotImplementedError


class InvalidationClock:
    """
    Per-prefix invalidation generations, local to this process.

    A read snapshots the generations covering its key before computing a
    fresh response and refuses to store it if any of them moved meanwhile.
    """

    def __init__(self):
        self._generations: Dict[str, int] = {}

    def bump(self, prefix: str) -> None:
        self._generations[prefix] = self._generations.get(prefix, 0) + 1

    def snapshot(self, key: str) -> Tuple[Tuple[str, int], ...]:
        return tuple(sorted(
            (prefix, generation)
            for prefix, generation in self._generations.items()
            if key.startswith(prefix)
        ))

    def changed(self, key: str, snapshot: Tuple[Tuple[str, int], ...]) -> bool:
        return self.snapshot(key) != snapshot


class ValidationBehavior(PipelineBehavior):
    """Rejects a request whose fields break their declared constraints."""

    def __init__(self, validator: Optional[RequestValidator] = None):
        self.validator = validator or RequestValidator()

    async def handle(self, request: Request, next_: NextHandler) -> Any:
        failures = self.validator.validate(request)
        if failures:
            logger.info(
                "request_validation_failed",
                request_type=type(request).__name__,
                fields=sorted({failure.field for failure in failures}),
            )
            raise RequestValidationError(type(request).__name__, failures)
        return await next_()


class CachingBehavior(PipelineBehavior):
    """Read-through cache for queries. Cache trouble never fails the read."""

    def __init__(
        self,
        client: CacheClient,
        codec: Optional[ResponseCodec] = None,
        ttl_policy: TTLPolicy = DEFAULT_TTL_POLICY,
        clock: Optional[InvalidationClock] = None,
        max_key_length: int = DEFAULT_MAX_KEY_LENGTH,
    ):
        self.client = client
        self.codec = codec or ResponseCodec()
        self.ttl_policy = ttl_policy
        self.clock = clock or InvalidationClock()
        self.max_key_length = max_key_length

    def applies_to(self, request: Request) -> bool:
        return is_read(request)

    async def handle(self, request: Request, next_: NextHandler) -> Any:
        request_type = type(request)
        key = derive_key(request, self.max_key_length)

        cached = await self._lookup(request_type, key)
        if cached is not _MISS:
            CACHE_HITS.labels(request_type=request_type.cache_name).inc()
            logger.debug("cache_hit", key=key)
            return cached

        CACHE_MISSES.labels(request_type=request_type.cache_name).inc()
        logger.debug("cache_miss", key=key)

        snapshot = self.clock.snapshot(key)
        response = await next_()
        if response is None:
            return response
        if self.clock.changed(key, snapshot):
            logger.debug("cache_fill_skipped", key=key)
            return response

        ttl = resolve_ttl(request, self.ttl_policy)
        await self._store(request_type, key, response, ttl)
        return response

    async def _lookup(self, request_type, key: str) -> Any:
        try:
            raw = await self.client.get(key)
        except CacheUnavailableError as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return _MISS
        if raw is None:
            return _MISS

        try:
            return self.codec.decode(request_type, raw)
        except CacheDecodeError as e:
            logger.warning("cache_entry_corrupt", key=key, error=str(e))
            try:
                await self.client.remove(key)
            except CacheUnavailableError as remove_error:
                logger.warning("cache_remove_failed", key=key, error=str(remove_error))
            return _MISS

    async def _store(self, request_type, key: str, response: Any, ttl: timedelta) -> None:
        try:
            payload = self.codec.encode(request_type, response)
            await self.client.set(key, payload, ttl)
        except (CacheUnavailableError, PydanticSerializationError) as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return
        logger.debug("cache_set", key=key, ttl_seconds=ttl.total_seconds())


class CacheInvalidationBehavior(PipelineBehavior):
    """Purges the cached reads a successful command made stale."""

    def __init__(
        self,
        client: CacheClient,
        invalidation_map: InvalidationMap,
        clock: Optional[InvalidationClock] = None,
    ):
        self.client = client
        self.invalidation_map = invalidation_map
        self.clock = clock or InvalidationClock()

    def applies_to(self, request: Request) -> bool:
        return is_write(request)

    async def handle(self, request: Request, next_: NextHandler) -> Any:
        # A failed write propagates before anything is purged.
        response = await next_()

        subject = type(request).subject
        prefixes = self.invalidation_map.affected_prefixes(subject)
        if not prefixes:
            return response

        for prefix in prefixes:
            self.clock.bump(prefix)

        removed = 0
        failed = []
        for prefix in sorted(prefixes):
            try:
                removed += await self.client.remove_by_prefix(prefix)
            except CacheUnavailableError as e:
                failed.append(prefix)
                logger.warning(
                    "cache_invalidation_failed",
                    subject=subject,
                    prefix=prefix,
                    error=str(e),
                )

        CACHE_INVALIDATIONS.labels(subject=subject).inc()
        logger.info(
            "cache_invalidated",
            subject=subject,
            request_type=type(request).__name__,
            prefixes=sorted(prefixes),
            removed=removed,
            failed=failed,
        )
        return response
