from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Self
from urllib.parse import urlsplit

from src.errors import ConsumerValidationError


class SignatureMethod(StrEnum):
    """OAuth 1.0a signature methods a consumer can be registered with."""

    HMAC_SHA1 = "HMAC-SHA1"

    @property
    def requires_secret(self) -> bool:
        return self is SignatureMethod.HMAC_SHA1


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def is_valid_key_format(key: str | None) -> bool:
    """Keys are letters and decimal digits once hyphens are removed."""
    if key is None:
        return False
    stripped = key.replace("-", "")
    return bool(stripped) and all(c.isalpha() or c.isdecimal() for c in stripped)


def has_illegal_uri_chars(value: str) -> bool:
    # urlsplit silently drops tabs and newlines, so check before parsing
    return any(c.isspace() or ord(c) < 0x20 or ord(c) == 0x7F for c in value)


def is_absolute_uri(value: str) -> bool:
    if has_illegal_uri_chars(value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def _violations(
    key: str | None,
    name: str | None,
    secret: str | None,
    callback: str | None,
    signature_method: SignatureMethod | None,
) -> dict[str, str]:
    violations = {}
    if not is_valid_key_format(key):
        violations["key"] = "must be non-empty and alphanumeric apart from hyphens"
    if is_blank(name):
        violations["name"] = "must not be blank"
    if secret is not None and is_blank(secret):
        violations["secret"] = "must not be blank when given"
    if callback is not None and not is_absolute_uri(callback):
        violations["callback"] = "must be an absolute URI"
    if not isinstance(signature_method, SignatureMethod):
        violations["signature_method"] = "must be one of " + ", ".join(
            m.value for m in SignatureMethod
        )
    elif signature_method.requires_secret and secret is None:
        violations["secret"] = f"is required for {signature_method.value}"
    return violations


@dataclass(frozen=True)
class Consumer:
    """A registered OAuth consumer.

    Instances are validated on construction, so an invalid consumer can never
    be observed. Use ``ConsumerBuilder`` to assemble one.
    """

    key: str
    name: str
    signature_method: SignatureMethod
    secret: str | None = None
    callback: str | None = None

    def __post_init__(self) -> None:
        violations = _violations(
            self.key, self.name, self.secret, self.callback, self.signature_method
        )
        if violations:
            raise ConsumerValidationError(violations)


class ConsumerBuilder:
    """Fluent builder for ``Consumer``.

    Setters only record values; every constraint is checked by ``build``,
    which reports all violated attributes at once.
    """

    def __init__(self, key: str | None = None) -> None:
        self._key = key
        self._name: str | None = None
        self._secret: str | None = None
        self._callback: str | None = None
        self._signature_method: SignatureMethod | None = None

    @classmethod
    def from_consumer(cls, consumer: Consumer) -> Self:
        return (
            cls(consumer.key)
            .name(consumer.name)
            .secret(consumer.secret)
            .callback(consumer.callback)
            .signature_method(consumer.signature_method)
        )

    def key(self, key: str) -> Self:
        self._key = key
        return self

    def name(self, name: str) -> Self:
        self._name = name
        return self

    def secret(self, secret: str | None) -> Self:
        self._secret = secret
        return self

    def callback(self, callback: str | None) -> Self:
        self._callback = callback
        return self

    def signature_method(self, signature_method: SignatureMethod) -> Self:
        self._signature_method = signature_method
        return self

    def build(self) -> Consumer:
        violations = _violations(
            self._key, self._name, self._secret, self._callback, self._signature_method
        )
        if violations:
            raise ConsumerValidationError(violations)
        return Consumer(
            key=self._key,
            name=self._name,
            secret=self._secret,
            callback=self._callback,
            signature_method=self._signature_method,
        )


@dataclass(frozen=True)
class ConsumerTemplate:
    """Placeholder values for the empty "add consumer" form.

    Not a consumer: it is never validated and the store refuses to persist it.
    """

    key: str = "Enter Key"
    name: str = "Enter Name"
    signature_method: SignatureMethod = SignatureMethod.HMAC_SHA1
    secret: None = None
    callback: None = None


BLANK_TEMPLATE = ConsumerTemplate()
