"""
Request markers.

Every request is a frozen dataclass deriving from exactly one of ``Query``
(a read) or ``Command`` (a write). The classification is declared when the
type is defined and checked right there, so the pipeline never has to guess
a request's purpose from its name.

    @dataclass(frozen=True)
    class GetProductById(ItemQuery):
        response_type = Optional[ProductDto]
        id: str

    @dataclass(frozen=True)
    class DeleteProduct(Command):
        response_type = type(None)
        subject = "Product"
        id: str
"""
from typing import Any, ClassVar

from pydantic import ConfigDict, PydanticUserError, TypeAdapter

from .errors import RequestClassificationError

_UNSET = object()


class Request:
    """Base of all pipeline requests."""

    response_type: ClassVar[Any] = _UNSET
    response_adapter: ClassVar[TypeAdapter]
    cache_name: ClassVar[str]

    # Request fields are validated strictly and never coerced
    __pydantic_config__ = ConfigDict(strict=True, revalidate_instances="always")

    def __init_subclass__(cls, abstract: bool = False, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._abstract_request = abstract
        if abstract:
            return

        reads = issubclass(cls, Query)
        writes = issubclass(cls, Command)
        if reads and writes:
            raise RequestClassificationError(f"{cls.__name__} cannot be both a Query and a Command")
        if not reads and not writes:
            raise RequestClassificationError(f"{cls.__name__} must derive from Query or Command")
        if cls.response_type is _UNSET:
            raise RequestClassificationError(f"{cls.__name__} must declare response_type")
        if writes:
            subject = getattr(cls, 'subject', None)
            if not isinstance(subject, str) or not subject:
                raise RequestClassificationError(f"{cls.__name__} must declare a non-empty subject")

        if 'cache_name' not in cls.__dict__:
            cls.cache_name = cls.__name__
        if not cls.cache_name or ':' in cls.cache_name:
            raise RequestClassificationError(
                f"{cls.__name__}.cache_name must be non-empty and contain no ':'"
            )

        try:
            cls.response_adapter = TypeAdapter(cls.response_type)
        except PydanticUserError as e:
            raise RequestClassificationError(
                f"{cls.__name__}.response_type {cls.response_type!r} cannot be serialized: {e}"
            ) from e


class Query(Request, abstract=True):
    """A read. Responses are cached."""


class Command(Request, abstract=True):
    """A write. Success purges the cached reads of its subject."""

    subject: ClassVar[str]


class DashboardQuery(Query, abstract=True):
    """A read feeding the metrics dashboard."""


class ListQuery(Query, abstract=True):
    """A read returning a collection."""


class ItemQuery(Query, abstract=True):
    """A read fetching a single item by identifier."""


def is_abstract(request_type: type) -> bool:
    return request_type.__dict__.get('_abstract_request', False)


def is_read(request: Request) -> bool:
    return isinstance(request, Query)


def is_write(request: Request) -> bool:
    return isinstance(request, Command)
