"""Registration and update validation for OAuth consumers.

``ConsumerRegistrationValidator`` runs every field check, aggregates the
failures into a single ``AggregateValidationError`` and only then hands the
input to ``ConsumerBuilder``. Each entry point checks the caller's administer
capability first and short-circuits with ``Unauthorized`` without touching
the store.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol
from urllib.parse import urlsplit

from structlog import get_logger

from src.consumer import (
    Consumer,
    ConsumerBuilder,
    SignatureMethod,
    has_illegal_uri_chars,
    is_blank,
    is_valid_key_format,
)
from src.errors import (
    AggregateValidationError,
    ConsumerValidationError,
    ErrorKind,
    FieldCheck,
    InternalBuildError,
    RegistrationError,
    Unauthorized,
)

logger = get_logger(__name__)

# Form field names, shared with the web layer
CONSUMER_KEY_FIELD = "consumerKey"
CONSUMER_NAME_FIELD = "consumerName"
CONSUMER_SECRET_FIELD = "consumerSecret"
CONSUMER_CALLBACKURL_FIELD = "callbackUrl"

EMPTY_KEY_MESSAGE = "Consumer key cannot be empty"
DUPLICATE_KEY_MESSAGE = "Key with the same name already exists"
EMPTY_NAME_MESSAGE = "Consumer name cannot be empty"
EMPTY_SECRET_MESSAGE = "Consumer secret cannot be empty"
INVALID_URL_MESSAGE = "This URL is invalid"
UNKNOWN_KEY_MESSAGE = "No consumer exists with this key"


class AuthorizationChecker(Protocol):
    def has_administer_capability(self, caller: Any) -> bool: ...


class ConsumerStore(Protocol):
    def lookup(self, key: str) -> Consumer | None: ...


BaseUrlValidator = Callable[[str], FieldCheck]


def check_base_url(url: str, field: str = CONSUMER_CALLBACKURL_FIELD) -> FieldCheck:
    """Check that ``url`` is an absolute http(s) URL with a host.

    A path is allowed but not required.
    """
    invalid = FieldCheck.failed(field, ErrorKind.MALFORMED_CALLBACK, INVALID_URL_MESSAGE)
    if is_blank(url) or has_illegal_uri_chars(url):
        return invalid
    try:
        parts = urlsplit(url)
        # Accessing port validates it
        parts.port
    except ValueError:
        return invalid
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return invalid
    return FieldCheck.passed(field)


class ConsumerRegistrationValidator:
    def __init__(
        self,
        authorization: AuthorizationChecker,
        store: ConsumerStore,
        base_url_validator: BaseUrlValidator = check_base_url,
    ) -> None:
        self.authorization = authorization
        self.store = store
        self.base_url_validator = base_url_validator

    def _is_authorized(self, caller: Any) -> bool:
        if self.authorization.has_administer_capability(caller):
            return True
        logger.warning("consumer_admin_unauthorized", caller=str(caller))
        return False

    @staticmethod
    def _unauthorized_check(field: str) -> FieldCheck:
        return FieldCheck.failed(field, ErrorKind.UNAUTHORIZED, Unauthorized().message)

    # Per-field checks, each usable on its own for live form feedback

    def check_key(self, caller: Any, key: str) -> FieldCheck:
        if not self._is_authorized(caller):
            return self._unauthorized_check(CONSUMER_KEY_FIELD)
        return self._check_key(key)

    def check_name(self, caller: Any, name: str) -> FieldCheck:
        if not self._is_authorized(caller):
            return self._unauthorized_check(CONSUMER_NAME_FIELD)
        return self._check_name(name)

    def check_callback(self, caller: Any, callback_url: str) -> FieldCheck:
        if not self._is_authorized(caller):
            return self._unauthorized_check(CONSUMER_CALLBACKURL_FIELD)
        return self._check_callback(callback_url)

    def check_secret(self, caller: Any, secret: str) -> FieldCheck:
        if not self._is_authorized(caller):
            return self._unauthorized_check(CONSUMER_SECRET_FIELD)
        return self._check_secret(secret)

    def _check_key(self, key: str) -> FieldCheck:
        if not is_valid_key_format(key):
            return FieldCheck.failed(
                CONSUMER_KEY_FIELD, ErrorKind.EMPTY_KEY, EMPTY_KEY_MESSAGE
            )
        # Uniqueness is checked against the raw key, hyphens included
        if self.store.lookup(key) is not None:
            return FieldCheck.failed(
                CONSUMER_KEY_FIELD, ErrorKind.DUPLICATE_KEY, DUPLICATE_KEY_MESSAGE
            )
        return FieldCheck.passed(CONSUMER_KEY_FIELD)

    def _check_existing_key(self, key: str) -> FieldCheck:
        if not is_valid_key_format(key):
            return FieldCheck.failed(
                CONSUMER_KEY_FIELD, ErrorKind.EMPTY_KEY, EMPTY_KEY_MESSAGE
            )
        if self.store.lookup(key) is None:
            return FieldCheck.failed(
                CONSUMER_KEY_FIELD, ErrorKind.CONSUMER_NOT_FOUND, UNKNOWN_KEY_MESSAGE
            )
        return FieldCheck.passed(CONSUMER_KEY_FIELD)

    def _check_name(self, name: str) -> FieldCheck:
        if is_blank(name):
            return FieldCheck.failed(
                CONSUMER_NAME_FIELD, ErrorKind.EMPTY_NAME, EMPTY_NAME_MESSAGE
            )
        return FieldCheck.passed(CONSUMER_NAME_FIELD)

    def _check_callback(self, callback_url: str) -> FieldCheck:
        if is_blank(callback_url):
            return FieldCheck.passed(CONSUMER_CALLBACKURL_FIELD)
        return self.base_url_validator(callback_url)

    def _check_secret(self, secret: str) -> FieldCheck:
        if is_blank(secret):
            return FieldCheck.failed(
                CONSUMER_SECRET_FIELD, ErrorKind.EMPTY_SECRET, EMPTY_SECRET_MESSAGE
            )
        return FieldCheck.passed(CONSUMER_SECRET_FIELD)

    # Full submissions

    def validate_and_build(
        self,
        caller: Any,
        raw_key: str,
        raw_name: str,
        raw_secret: str,
        raw_callback_url: str,
    ) -> Consumer | RegistrationError:
        """Validate a new consumer submission and build it.

        Returns the ``Consumer`` ready to be persisted, or one of the
        ``RegistrationError`` variants. Nothing is written to the store.
        """
        if not self._is_authorized(caller):
            return Unauthorized()
        return self._validate(
            self._check_key(raw_key), raw_key, raw_name, raw_secret, raw_callback_url
        )

    def validate_update(
        self,
        caller: Any,
        raw_key: str,
        raw_name: str,
        raw_secret: str,
        raw_callback_url: str,
    ) -> Consumer | RegistrationError:
        """Validate edits to an existing consumer.

        The key must already be registered; the returned ``Consumer`` is the
        edited state to hand to the store as a replacement.
        """
        if not self._is_authorized(caller):
            return Unauthorized()
        return self._validate(
            self._check_existing_key(raw_key),
            raw_key,
            raw_name,
            raw_secret,
            raw_callback_url,
        )

    def _validate(
        self,
        key_check: FieldCheck,
        raw_key: str,
        raw_name: str,
        raw_secret: str,
        raw_callback_url: str,
    ) -> Consumer | RegistrationError:
        checks = [
            key_check,
            self._check_name(raw_name),
            self._check_callback(raw_callback_url),
            self._check_secret(raw_secret),
        ]
        failures = tuple(check for check in checks if not check.ok)
        if failures:
            error = AggregateValidationError(failures)
            logger.info(
                "consumer_submission_rejected",
                key=raw_key,
                kinds=[str(kind) for kind in error.kinds],
            )
            return error

        builder = (
            ConsumerBuilder(raw_key)
            .name(raw_name)
            .secret(raw_secret)
            .signature_method(SignatureMethod.HMAC_SHA1)
        )
        if not is_blank(raw_callback_url):
            builder.callback(raw_callback_url)
        try:
            return builder.build()
        except ConsumerValidationError as e:
            logger.error(
                "consumer_build_invariant_violated",
                key=raw_key,
                violations=e.violations,
            )
            return InternalBuildError(e.violations)
