"""
Error taxonomy shared by services and API handlers.

Services raise these; ``register_error_handlers`` converts them into
``{"success": false, "error": "<message>"}`` responses so callers can branch on
the HTTP status instead of message text.
"""

import logging
from typing import Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class CharterError(Exception):
    """Base exception for all handled application errors"""
    status_code = 500

    def __init__(self, message: str, errors: Optional[dict] = None):
        self.message = message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(CharterError):
    """Bad input, rejected before any side effect"""
    status_code = 400


class AuthorizationError(CharterError):
    status_code = 403


class NotFoundError(CharterError):
    status_code = 404


class ConflictError(CharterError):
    """Lost an availability race or a concurrent status update"""
    status_code = 409


class IllegalTransition(ConflictError):
    """Payment status change not permitted by the intent state machine"""

    def __init__(self, intent_id: str, current: str, requested: str):
        self.intent_id = intent_id
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move payment from {current} to {requested}")


class GatewayUnavailable(CharterError):
    """Gateway unknown, disabled or missing credentials"""
    status_code = 400


class GatewayError(CharterError):
    """Upstream payment provider failure, normalized per provider"""
    status_code = 502

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class GatewayTimeout(GatewayError):
    status_code = 504


class NotificationError(CharterError):
    status_code = 502


class NotificationTimeout(NotificationError):
    status_code = 504


class InternalError(CharterError):
    status_code = 500


def error_body(message, errors=None):
    body = {'success': False, 'error': message}
    if errors:
        body['errors'] = errors
    return body


def register_error_handlers(app):
    """Attach JSON error handlers for the taxonomy, HTTP errors and crashes"""

    @app.errorhandler(CharterError)
    def handle_charter_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error.message}")
        else:
            app.logger.info(f"{type(error).__name__}: {error.message}")
        return jsonify(error_body(error.message, error.errors)), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify(error_body(error.description or error.name)), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception("Unhandled error")
        return jsonify(error_body('An unexpected error occurred. Please try again.')), 500
