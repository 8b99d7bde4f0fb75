from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException, NotFound
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging
import traceback

from models import storage

logger = logging.getLogger(__name__)

RATE_LIMITED = "Too many requests from this IP, please try again later."


def success_response(message: str, data: dict | None = None, status: int = 200):
    payload = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def error_response(message: str, status: int, errors: list | None = None, data: dict | None = None, **extra):
    payload = {"success": False, "message": message}
    if data is not None:
        payload["data"] = data
    if errors:
        payload["errors"] = errors
    payload.update(extra)
    return jsonify(payload), status


def validation_errors(messages) -> list:
    """Flatten marshmallow's {field: [msg, ...]} into [{field, message}, ...]."""
    if isinstance(messages, list):
        return [{"field": None, "message": m} for m in messages]
    out = []
    for field, msgs in messages.items():
        if isinstance(msgs, dict):
            for sub in validation_errors(msgs):
                sub["field"] = f"{field}.{sub['field']}" if sub["field"] else field
                out.append(sub)
            continue
        for m in msgs if isinstance(msgs, list) else [msgs]:
            out.append({"field": field, "message": m})
    return out


def register_error_handlers(app):
    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("Validation errors", 400, errors=validation_errors(err.messages))

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        lower_msg = str(getattr(err, "orig", err)).lower()
        if current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique" in lower_msg:
            return error_response("Resource already exists", 409)
        if "foreign key" in lower_msg:
            return error_response("Foreign key constraint failed", 400)
        return error_response("Integrity error", 400)

    # Rate limit breaches keep the envelope but not the limit string
    @app.errorhandler(429)
    def handle_rate_limited(err: HTTPException):
        return error_response(RATE_LIMITED, 429)

    # Werkzeug HTTPExceptions (abort(...), unknown routes) map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        message = err.description
        if err.code == 404 and message == NotFound.description:
            message = "Resource not found"
        return error_response(message, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        if current_app.debug:
            # Outside production, include the stack to speed up debugging
            stack = "".join(traceback.format_exception(type(err), err, err.__traceback__))
            return error_response(str(err) or "Server Error", 500, stack=stack)
        return error_response("Server Error", 500)
