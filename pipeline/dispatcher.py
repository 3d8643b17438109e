"""
Request dispatch.

``Dispatcher.send`` runs a request through an explicit, ordered list of
behaviors and finally its registered handler. Behaviors that do not apply
to the request (caching for writes, invalidation for reads) are skipped.
"""
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Type

import structlog

from cache.client import CacheClient
from cache.invalidation import InvalidationMap
from config.logging import log_error

from .behaviors import (
    CacheInvalidationBehavior,
    CachingBehavior,
    InvalidationClock,
    NextHandler,
    PipelineBehavior,
    ValidationBehavior,
)
from .errors import HandlerNotFoundError, PipelineError
from .keys import DEFAULT_MAX_KEY_LENGTH
from .requests import Request, is_abstract
from .serialization import ResponseCodec
from .ttl import DEFAULT_TTL_POLICY, TTLPolicy
from .validation import RequestValidator

logger = structlog.get_logger()

Handler = Callable[[Any], Awaitable[Any]]


class HandlerRegistry:
    """Maps each concrete request type to the coroutine function handling it."""

    def __init__(self):
        self._handlers: Dict[Type[Request], Handler] = {}

    def register(self, request_type: Type[Request], handler: Handler) -> None:
        if not isinstance(request_type, type) or not issubclass(request_type, Request):
            raise TypeError(f"{request_type!r} is not a request type")
        if is_abstract(request_type):
            raise TypeError(f"{request_type.__name__} is abstract and cannot be handled")
        if request_type in self._handlers:
            raise ValueError(f"a handler for {request_type.__name__} is already registered")
        self._handlers[request_type] = handler

    def resolve(self, request: Request) -> Handler:
        try:
            return self._handlers[type(request)]
        except KeyError:
            raise HandlerNotFoundError(f"no handler registered for {type(request).__name__}") from None

    def __contains__(self, request_type: object) -> bool:
        return request_type in self._handlers

    def request_types(self):
        return list(self._handlers)


class Dispatcher:
    def __init__(self, handlers: HandlerRegistry, behaviors: Sequence[PipelineBehavior] = ()):
        self.handlers = handlers
        self.behaviors = tuple(behaviors)

    async def send(self, request: Request) -> Any:
        if not isinstance(request, Request):
            raise TypeError(f"expected a Request, got {type(request).__name__}")

        handler = self.handlers.resolve(request)

        async def call_handler():
            return await handler(request)

        chain: NextHandler = call_handler
        for behavior in reversed(self.behaviors):
            if behavior.applies_to(request):
                chain = _bind(behavior, request, chain)
        try:
            return await chain()
        except PipelineError:
            raise
        except Exception as e:
            log_error(logger, e, {"request_type": type(request).__name__})
            raise


def _bind(behavior: PipelineBehavior, request: Request, next_: NextHandler) -> NextHandler:
    async def step():
        return await behavior.handle(request, next_)
    return step


def build_dispatcher(
    handlers: HandlerRegistry,
    client: CacheClient,
    invalidation_map: InvalidationMap,
    validator: Optional[RequestValidator] = None,
    ttl_policy: TTLPolicy = DEFAULT_TTL_POLICY,
    codec: Optional[ResponseCodec] = None,
    max_key_length: int = DEFAULT_MAX_KEY_LENGTH,
) -> Dispatcher:
    """
    Compose the standard pipeline.

    Order: validation, read-through caching (reads only), write-through
    invalidation (writes only), handler.
    """
    clock = InvalidationClock()
    behaviors = [
        ValidationBehavior(validator),
        CachingBehavior(client, codec, ttl_policy, clock, max_key_length),
        CacheInvalidationBehavior(client, invalidation_map, clock),
    ]
    logger.debug(
        "pipeline_built",
        behaviors=[type(behavior).__name__ for behavior in behaviors],
        handlers=len(handlers.request_types()),
    )
    return Dispatcher(handlers, behaviors)
