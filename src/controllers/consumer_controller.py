from flask import Blueprint, jsonify, redirect, render_template, request, url_for
from structlog import get_logger

from src.auth import AdminAuthorizationChecker, get_current_user
from src.consumer import Consumer
from src.dto import (
    ConsumerResponse,
    ErrorResponse,
    FieldCheckResponse,
    FieldErrorResponse,
)
from src.entry import ConsumerEntry
from src.errors import (
    AggregateValidationError,
    ConsumerAlreadyExists,
    ConsumerNotFound,
    ErrorKind,
    InternalBuildError,
    RegistrationError,
    Unauthorized,
)
from src.models import ConsumerStore
from src.validation import (
    CONSUMER_CALLBACKURL_FIELD,
    CONSUMER_KEY_FIELD,
    CONSUMER_NAME_FIELD,
    CONSUMER_SECRET_FIELD,
    DUPLICATE_KEY_MESSAGE,
    ConsumerRegistrationValidator,
)

logger = get_logger(__name__)

consumer_bp = Blueprint("consumer", __name__, url_prefix="/admin")

store = ConsumerStore()
authorization = AdminAuthorizationChecker()


def get_validator() -> ConsumerRegistrationValidator:
    return ConsumerRegistrationValidator(authorization, store)


def consumer_response(consumer: Consumer) -> ConsumerResponse:
    return ConsumerResponse(
        key=consumer.key,
        name=consumer.name,
        secret=consumer.secret or "",
        callback_url=consumer.callback,
        signature_method=consumer.signature_method.value,
    )


def unauthorized_response():
    error = Unauthorized()
    return (
        jsonify(ErrorResponse(error="unauthorized", error_description=error.message)),
        403,
    )


def not_found_response():
    return jsonify(ErrorResponse(error="Consumer not found")), 404


def registration_error_response(error: RegistrationError):
    if isinstance(error, Unauthorized):
        return unauthorized_response()
    if isinstance(error, InternalBuildError):
        return (
            jsonify(ErrorResponse(error="internal_error", error_description=error.message)),
            500,
        )
    status = 404 if ErrorKind.CONSUMER_NOT_FOUND in error.kinds else 400
    return (
        jsonify(
            ErrorResponse(
                error="invalid_consumer",
                error_description=error.message,
                errors=[
                    FieldErrorResponse(
                        field=check.field, kind=str(check.kind), message=check.message
                    )
                    for check in error.errors
                ],
            )
        ),
        status,
    )


def require_admin_page():
    """Redirect anonymous callers to login, reject non-admins."""
    user = get_current_user()
    if user is None:
        return redirect(url_for("user.login", next=request.path))
    if not authorization.has_administer_capability(user):
        return unauthorized_response()
    return None


def submitted_fields() -> tuple[str, str, str, str]:
    return (
        request.form.get(CONSUMER_KEY_FIELD, ""),
        request.form.get(CONSUMER_NAME_FIELD, ""),
        request.form.get(CONSUMER_SECRET_FIELD, ""),
        request.form.get(CONSUMER_CALLBACKURL_FIELD, ""),
    )


@consumer_bp.route("/consumers")
def consumers():
    """Consumer management page.
    ---
    tags:
      - Consumer
    responses:
      200:
        description: HTML page listing all registered OAuth consumers
      302:
        description: Redirect to login when not logged in
      403:
        description: Caller is not an administrator
    """
    denied = require_admin_page()
    if denied is not None:
        return denied
    entries = [ConsumerEntry.for_update(consumer) for consumer in store.all()]
    return render_template("consumers.html", entries=entries)


@consumer_bp.route("/consumer-form")
def add_consumer_form():
    """Form for registering a new consumer.
    ---
    tags:
      - Consumer
    responses:
      200:
        description: HTML form pre-filled with placeholder values
      403:
        description: Caller is not an administrator
    """
    denied = require_admin_page()
    if denied is not None:
        return denied
    return render_template("consumer_form.html", entry=ConsumerEntry.for_add())


@consumer_bp.route("/consumers/<key>")
def update_consumer_form(key: str):
    """Form for editing an existing consumer.
    ---
    tags:
      - Consumer
    parameters:
      - name: key
        in: path
        type: string
        required: true
        description: Consumer key
    responses:
      200:
        description: HTML form filled with the consumer's current values
      403:
        description: Caller is not an administrator
      404:
        description: Consumer not found
    """
    denied = require_admin_page()
    if denied is not None:
        return denied
    consumer = store.lookup(key)
    if consumer is None:
        return not_found_response()
    return render_template(
        "consumer_form.html", entry=ConsumerEntry.for_update(consumer)
    )


@consumer_bp.route("/consumers/<key>/details")
def consumer_details(key: str):
    """Fetch a consumer by key.
    ---
    tags:
      - Consumer
    parameters:
      - name: key
        in: path
        type: string
        required: true
        description: Consumer key
    responses:
      200:
        description: The consumer
      403:
        description: Caller is not an administrator
      404:
        description: Consumer not found
    """
    if not authorization.has_administer_capability(get_current_user()):
        return unauthorized_response()
    consumer = store.lookup(key)
    if consumer is None:
        return not_found_response()
    return jsonify(consumer_response(consumer))


@consumer_bp.route("/consumers", methods=["POST"])
def register_consumer():
    """Register a new OAuth consumer.
    ---
    tags:
      - Consumer
    consumes:
      - application/x-www-form-urlencoded
    parameters:
      - name: consumerKey
        in: formData
        type: string
        required: true
        description: Consumer key, letters and decimal digits apart from hyphens
      - name: consumerName
        in: formData
        type: string
        required: true
        description: Display name of the consumer
      - name: consumerSecret
        in: formData
        type: string
        required: true
        description: Shared secret used for HMAC-SHA1 signatures
      - name: callbackUrl
        in: formData
        type: string
        required: false
        description: Absolute callback URL, leave empty for none
    responses:
      200:
        description: Consumer registered successfully
        schema:
          type: object
          properties:
            key:
              type: string
              example: "my-app"
            name:
              type: string
              example: "My App"
            secret:
              type: string
            callback_url:
              type: string
            signature_method:
              type: string
              example: "HMAC-SHA1"
      400:
        description: One or more fields are invalid
      403:
        description: Caller is not an administrator
      409:
        description: A consumer with the same key was registered concurrently
    """
    result = get_validator().validate_and_build(
        get_current_user(), *submitted_fields()
    )
    if not isinstance(result, Consumer):
        return registration_error_response(result)

    try:
        store.add(result)
    except ConsumerAlreadyExists:
        logger.info("consumer_registration_lost_race", key=result.key)
        return (
            jsonify(
                ErrorResponse(
                    error="duplicate_key", error_description=DUPLICATE_KEY_MESSAGE
                )
            ),
            409,
        )
    return jsonify(consumer_response(result))


@consumer_bp.route("/consumers/<key>", methods=["POST"])
def update_consumer(key: str):
    """Update an existing consumer.
    ---
    tags:
      - Consumer
    consumes:
      - application/x-www-form-urlencoded
    parameters:
      - name: key
        in: path
        type: string
        required: true
        description: Consumer key (cannot be changed)
      - name: consumerName
        in: formData
        type: string
        required: true
      - name: consumerSecret
        in: formData
        type: string
        required: true
      - name: callbackUrl
        in: formData
        type: string
        required: false
    responses:
      200:
        description: Consumer updated successfully
      400:
        description: One or more fields are invalid
      403:
        description: Caller is not an administrator
      404:
        description: Consumer not found
    """
    _, name, secret, callback_url = submitted_fields()
    result = get_validator().validate_update(
        get_current_user(), key, name, secret, callback_url
    )
    if not isinstance(result, Consumer):
        return registration_error_response(result)

    try:
        store.update(result)
    except ConsumerNotFound:
        return not_found_response()
    return jsonify(consumer_response(result))


@consumer_bp.route("/consumers/<key>", methods=["DELETE"])
def delete_consumer(key: str):
    """Delete a consumer.
    ---
    tags:
      - Consumer
    parameters:
      - name: key
        in: path
        type: string
        required: true
        description: Consumer key
    responses:
      200:
        description: Consumer deleted successfully
      403:
        description: Caller is not an administrator
      404:
        description: Consumer not found
    """
    if not authorization.has_administer_capability(get_current_user()):
        return unauthorized_response()
    try:
        store.delete(key)
    except ConsumerNotFound:
        return not_found_response()
    return jsonify({"success": True})


@consumer_bp.route("/consumer-checks/<field>")
def check_field(field: str):
    """Check a single form field for live feedback.
    ---
    tags:
      - Consumer
    parameters:
      - name: field
        in: path
        type: string
        required: true
        enum: [consumerKey, consumerName, callbackUrl, consumerSecret]
        description: Name of the field to check; its value is read from the
                     query parameter of the same name
    responses:
      200:
        description: Check result
        schema:
          type: object
          properties:
            kind:
              type: string
              enum: [ok, error]
            message:
              type: string
      403:
        description: Caller is not an administrator
      404:
        description: Unknown field
    """
    validator = get_validator()
    checks = {
        CONSUMER_KEY_FIELD: validator.check_key,
        CONSUMER_NAME_FIELD: validator.check_name,
        CONSUMER_CALLBACKURL_FIELD: validator.check_callback,
        CONSUMER_SECRET_FIELD: validator.check_secret,
    }
    if field not in checks:
        return jsonify(ErrorResponse(error=f"Unknown field: {field}")), 404

    result = checks[field](get_current_user(), request.args.get(field, ""))
    if result.kind is ErrorKind.UNAUTHORIZED:
        return unauthorized_response()
    if result.ok:
        return jsonify(FieldCheckResponse(kind="ok", message=""))
    return jsonify(FieldCheckResponse(kind="error", message=result.message))
