from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from utils.exceptions import (
    CryptoError,
    DuplicateEmailError,
    InvalidInput,
    StoreError,
    Unauthenticated,
)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def json_object() -> dict:
    """Request body as a dict; anything else is InvalidInput (400)."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise InvalidInput("request body must be a JSON object")
    return payload


def _debug_log(err):
    if current_app and current_app.debug:
        logging.exception("Handled exception", exc_info=err)


def register_error_handlers(app):
    # 401: bad credentials, missing header, or an unusable token. The message
    # comes from the core and never says which check failed.
    @app.errorhandler(Unauthenticated)
    def unauthenticated(err: Unauthenticated):
        _debug_log(err)
        return error_response("UNAUTHORIZED", err.message, 401)

    @app.errorhandler(InvalidInput)
    def invalid_input(err: InvalidInput):
        _debug_log(err)
        return error_response("BAD_REQUEST", err.message, 400)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        _debug_log(err)
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    @app.errorhandler(DuplicateEmailError)
    def duplicate_email(err: DuplicateEmailError):
        _debug_log(err)
        return error_response("CONFLICT", err.message, 409)

    # Primitive failures are fatal for the request and never retried here
    @app.errorhandler(CryptoError)
    def crypto_error(err: CryptoError):
        logging.exception("Cryptographic failure", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    @app.errorhandler(StoreError)
    def store_error(err: StoreError):
        logging.exception("Storage failure", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    # Werkzeug HTTPExceptions (abort(...)) map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        _debug_log(err)
        error = {
            400: "BAD_REQUEST",
            403: "FORBIDDEN",
            404: "NOT_FOUND",
            405: "METHOD_NOT_ALLOWED",
            409: "CONFLICT",
            422: "VALIDATION_ERROR",
        }.get(err.code, "HTTP_ERROR")
        return error_response(error, err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
