"""Error taxonomy for OAuth consumer registration.

Expected user-input failures are returned as values (``FieldCheck`` and the
``RegistrationError`` variants). Exceptions are reserved for the builder and
the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

FORM_ERROR_HEADER = "Unable to save the OAuth consumer, please correct the following:"


class ErrorKind(StrEnum):
    UNAUTHORIZED = "unauthorized"
    EMPTY_KEY = "empty_key"
    DUPLICATE_KEY = "duplicate_key"
    EMPTY_NAME = "empty_name"
    MALFORMED_CALLBACK = "malformed_callback"
    EMPTY_SECRET = "empty_secret"
    CONSUMER_NOT_FOUND = "consumer_not_found"


@dataclass(frozen=True)
class FieldCheck:
    """Outcome of a single field check: ok, or an error with a message."""

    field: str
    kind: ErrorKind | None = None
    message: str = ""

    @classmethod
    def passed(cls, field: str) -> Self:
        return cls(field=field)

    @classmethod
    def failed(cls, field: str, kind: ErrorKind, message: str) -> Self:
        return cls(field=field, kind=kind, message=message)

    @property
    def ok(self) -> bool:
        return self.kind is None


@dataclass(frozen=True)
class Unauthorized:
    message: str = "You must be an administrator to manage OAuth consumers"

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.UNAUTHORIZED


@dataclass(frozen=True)
class AggregateValidationError:
    """Every failing field check from one registration attempt, in field order."""

    errors: tuple[FieldCheck, ...]
    header: str = FORM_ERROR_HEADER

    @property
    def messages(self) -> list[str]:
        return [error.message for error in self.errors]

    @property
    def kinds(self) -> list[ErrorKind]:
        return [error.kind for error in self.errors if error.kind is not None]

    @property
    def message(self) -> str:
        return self.header + "\n" + "\n".join(self.messages)


@dataclass(frozen=True)
class InternalBuildError:
    """The builder rejected input that field validation had approved."""

    violations: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        details = "; ".join(f"{k}: {v}" for k, v in self.violations.items())
        return f"Internal error while building the OAuth consumer ({details})"


RegistrationError = Unauthorized | AggregateValidationError | InternalBuildError


class ConsumerValidationError(ValueError):
    """Raised by ``ConsumerBuilder.build`` when attributes violate constraints."""

    def __init__(self, violations: dict[str, str]):
        self.violations = dict(violations)
        super().__init__(
            "Invalid consumer: "
            + ", ".join(f"{k} ({v})" for k, v in self.violations.items())
        )


class ConsumerAlreadyExists(Exception):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Consumer with key {key!r} already exists")


class ConsumerNotFound(Exception):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No consumer with key {key!r}")
