"""Errors raised by the cache store client."""
from typing import Optional


class CacheError(Exception):
    """Base exception for the cache layer."""


class CacheUnavailableError(CacheError):
    """
    A cache store operation failed or timed out.

    Always recovered by the pipeline behaviors; callers never see it.
    """

    def __init__(self, operation: str, target: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.target = target
        self.cause = cause
        detail = f": {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(f"cache {operation} failed for {target!r}{detail}")
