"""
Cache key derivation.

A key is the request's cache name followed by its field name/value pairs in
declaration order, all joined by ``:``:

    ListProducts:page:1:page_size:10:category_id:

``None`` renders as an empty token and an empty string as ``%``. Every key
therefore starts with ``<cache name>:``, which is the unit the
invalidation map purges by.
"""
import dataclasses
import hashlib
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from cache.invalidation import KEY_DELIMITER

from .requests import Request

NULL_TOKEN = ''
# Escaped values never consist of a bare '%'
EMPTY_TOKEN = '%'
DEFAULT_MAX_KEY_LENGTH = 1024
HASHED_MARKER = '#'


def derive_key(request: Request, max_length: int = DEFAULT_MAX_KEY_LENGTH) -> str:
    """
    Build the deterministic cache key for ``request``.

    Keys longer than ``max_length`` are replaced by
    ``<cache name>:#<sha256>`` so that prefix invalidation still applies.
    """
    if not isinstance(request, Request) or not dataclasses.is_dataclass(request):
        raise TypeError(f"cannot derive a cache key for {type(request).__name__}")

    prefix = key_prefix(type(request))
    parts = []
    for field in dataclasses.fields(request):
        parts.append(field.name)
        parts.append(_token(getattr(request, field.name)))
    key = prefix + KEY_DELIMITER.join(parts)

    if len(key) > max_length:
        digest = hashlib.sha256(key.encode('utf-8')).hexdigest()
        key = f"{prefix}{HASHED_MARKER}{digest}"
    return key


def key_prefix(request_type: type) -> str:
    """The prefix shared by every key of ``request_type``."""
    return f"{request_type.cache_name}{KEY_DELIMITER}"


def render_value(value: Any) -> str:
    if value is None:
        return NULL_TOKEN
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, Enum):
        return render_value(value.value)
    if isinstance(value, (str, int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return json.dumps(_plain(value), sort_keys=True, separators=(',', ':'))


def _plain(value: Any) -> Any:
    """Reduce nested values to JSON-compatible data in a canonical order."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _plain(value.value)
    if isinstance(value, (Decimal, datetime, date, time)):
        return render_value(value)
    if isinstance(value, BaseModel):
        return _plain(value.model_dump(mode='json'))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {field.name: _plain(getattr(value, field.name)) for field in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_plain(item) for item in value), key=lambda item: json.dumps(item, sort_keys=True))
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    raise TypeError(f"cannot render {type(value).__name__} into a cache key")


def _token(value: Any) -> str:
    """Render one field value; None and the empty string stay distinct."""
    if value is None:
        return NULL_TOKEN
    return _escape(render_value(value)) or EMPTY_TOKEN


def _escape(token: str) -> str:
    return token.replace('%', '%25').replace(KEY_DELIMITER, '%3A')
