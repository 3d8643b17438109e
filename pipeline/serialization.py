"""Response (de)serialization for cached reads, backed by pydantic."""
from typing import Any, Type

from pydantic import ValidationError

from .errors import CacheDecodeError
from .requests import Request


class ResponseCodec:
    """
    JSON codec keyed by the request type's declared ``response_type``.

    The adapter is built when the request class is defined, so an
    unserializable response type never reaches a running pipeline.
    """

    def encode(self, request_type: Type[Request], response: Any) -> bytes:
        return request_type.response_adapter.dump_json(response)

    def decode(self, request_type: Type[Request], raw: bytes) -> Any:
        try:
            return request_type.response_adapter.validate_json(raw)
        except ValidationError as e:
            raise CacheDecodeError(f"cached {request_type.cache_name} payload is unreadable: {e}") from e
