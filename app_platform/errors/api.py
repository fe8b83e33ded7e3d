"""Central API error codes and registration helpers."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

from domains.accounts.exceptions import PortalError
from logging_lib import get_logger

logger = get_logger("portal.errors")


ERRORS: Dict[str, int] = {
    'INVALID_ARGUMENT': 400,
    'UNAUTHENTICATED': 401,
    'PERMISSION_DENIED': 403,
    'NOT_FOUND': 404,
    'METHOD_NOT_ALLOWED': 405,
    'ALREADY_EXISTS': 409,
    'INTERNAL': 500,
    'UNAVAILABLE': 503,
}

_HTTP_CODES: Dict[int, str] = {status: code for code, status in ERRORS.items()}


def make_error(message: str, code: str, details: Optional[Mapping[str, Any]] = None) -> Any:
    """Make an error response."""

    status = ERRORS.get(code, 500)
    payload: Dict[str, Any] = {'error': message, 'code': code}

    if details:
        payload['details'] = dict(details)

    return jsonify(payload), status


def register_error_handlers(app) -> None:
    """Register error handlers."""

    @app.errorhandler(PortalError)
    def _h_portal(e: PortalError):
        """Render taxonomy errors raised by the services."""

        return make_error(e.message, e.code, e.details)

    @app.errorhandler(404)
    def _h_404(_e):
        """Handle 404 errors."""

        return make_error('Not found', 'NOT_FOUND')

    @app.errorhandler(405)
    def _h_405(_e):
        """Handle 405 errors."""

        return make_error('Method not allowed', 'METHOD_NOT_ALLOWED')

    @app.errorhandler(Exception)
    def _h_exc(e: Exception):
        """Handle all other errors."""

        if isinstance(e, HTTPException):
            code = _HTTP_CODES.get(e.code or 500, 'INTERNAL')
            return make_error(e.description or e.name, code)

        logger.error("Unhandled exception", exception=type(e).__name__, detail=str(e))

        return make_error('Internal server error', 'INTERNAL')
