"""Reconcile raw response bodies into typed results or ServiceError"""

from typing import NoReturn, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from difyflow.core.errors import ServiceError

T = TypeVar("T", bound=BaseModel)

NO_CONTENT = 204


class ErrorResponse(BaseModel):
    """Wire shape of every error the service reports"""
    model_config = ConfigDict(extra="allow")

    code: str
    message: str
    status: int

    def to_exception(self) -> ServiceError:
        return ServiceError(code=self.code, message=self.message, status=self.status, details=self.model_extra)


def parse_response(text: str, model: Type[T]) -> T:
    """Parse a body as `model`, falling back to the service error shapes.

    Success takes priority: a body that validates as `model` is returned even if
    it would also validate as ErrorResponse.

    Raises:
        ServiceError: the body is not a valid `model`
    """
    try:
        return model.model_validate_json(text)
    except ValidationError:
        parse_error_response(text)


def parse_error_response(text: str) -> NoReturn:
    """Raise the ServiceError described by `text`.

    Bodies that are not {code, message, status} raise an unknown_error
    (status 503) whose message is the raw body.
    """
    try:
        error = ErrorResponse.model_validate_json(text)
    except ValidationError:
        raise ServiceError.unknown(text) from None
    raise error.to_exception()


def ensure_no_content(status_code: int, text: str) -> None:
    """Accept only 204; any other status goes through the error cascade."""
    if status_code == NO_CONTENT:
        return
    parse_error_response(text)
