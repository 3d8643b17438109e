"""
Error taxonomy of the request pipeline.

Validation failures and handler failures reach the caller; cache-layer
failures (``cache.errors.CacheUnavailableError``, ``CacheDecodeError``) are
recovered inside the behaviors and only ever logged.
"""
from dataclasses import dataclass
from typing import Iterable, List


class PipelineError(Exception):
    """Base exception for the request pipeline."""


@dataclass(frozen=True)
class ValidationFailure:
    field: str
    message: str


class RequestValidationError(PipelineError):
    """The request failed validation before any cache or handler work."""

    def __init__(self, request_type: str, failures: Iterable[ValidationFailure]):
        self.request_type = request_type
        self.failures: List[ValidationFailure] = list(failures)
        summary = "; ".join(f"{f.field}: {f.message}" for f in self.failures)
        super().__init__(f"{request_type} is invalid: {summary}")

    def errors_by_field(self) -> dict:
        grouped: dict = {}
        for failure in self.failures:
            grouped.setdefault(failure.field, []).append(failure.message)
        return grouped


class CacheDecodeError(PipelineError):
    """A cached payload could not be turned back into a response."""


class HandlerNotFoundError(PipelineError):
    """No handler is registered for the request type."""


class RequestClassificationError(TypeError):
    """A request type was declared without exactly one read/write purpose."""
