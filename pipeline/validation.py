"""
Request validation.

Constraints are declared with pydantic on the request fields
(``Annotated[int, Field(gt=0)]``) and on the payload models they carry.
``RequestValidator`` checks a request against them and reports every
failure as a ``ValidationFailure`` named by its dotted field path.
"""
from typing import Dict, List, Type

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from .errors import RequestClassificationError, ValidationFailure
from .requests import Request


class RequestValidator:
    def __init__(self):
        self._adapters: Dict[Type[Request], TypeAdapter] = {}

    def validate(self, request: Request) -> List[ValidationFailure]:
        try:
            self._adapter(type(request)).validate_python(request)
        except ValidationError as e:
            return [_failure(error) for error in e.errors()]
        return []

    def _adapter(self, request_type: Type[Request]) -> TypeAdapter:
        adapter = self._adapters.get(request_type)
        if adapter is None:
            try:
                adapter = TypeAdapter(request_type)
            except PydanticUserError as e:
                raise RequestClassificationError(
                    f"{request_type.__name__} declares fields that cannot be validated: {e}"
                ) from e
            self._adapters[request_type] = adapter
        return adapter


def _failure(error: dict) -> ValidationFailure:
    field = '.'.join(str(part) for part in error['loc']) or '__root__'
    return ValidationFailure(field, error['msg'])
