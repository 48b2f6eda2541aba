from typing import Literal, NotRequired, TypedDict


class FieldErrorResponse(TypedDict):
    field: str
    kind: str
    message: str


class ErrorResponse(TypedDict):
    error: str
    error_description: NotRequired[str]
    errors: NotRequired[list[FieldErrorResponse]]


class ConsumerResponse(TypedDict):
    key: str
    name: str
    secret: str
    callback_url: str | None
    signature_method: str


class FieldCheckResponse(TypedDict):
    kind: Literal["ok", "error"]
    message: str
