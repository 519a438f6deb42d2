from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from models import storage

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def _field_names(messages) -> list[str]:
    if isinstance(messages, dict):
        return sorted(str(k) for k in messages)
    return []


def register_error_handlers(app):
    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        message = getattr(e, "description", None)
        # werkzeug's stock routing text is not useful to API clients
        if not message or message.startswith("The requested URL"):
            message = "Resource not found"
        return error_response("NOT_FOUND", message, 404)

    # Marshmallow validation errors: missing or malformed input
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        fields = _field_names(err.messages)
        message = f"Missing or invalid field(s): {', '.join(fields)}" if fields else "Invalid input"
        details = err.messages if isinstance(err.messages, dict) else {"_schema": err.messages}
        return error_response("VALIDATION_ERROR", message, 400, details=details)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        details = {"db_error": message} if current_app.debug else None
        if "unique" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409, details=details)
        return error_response("BAD_REQUEST", "Integrity error.", 400, details=details)

    # Werkzeug HTTPExceptions (abort(...)) map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(ERROR_CODES.get(status, "ERROR"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        # Exception details only in debug builds
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
