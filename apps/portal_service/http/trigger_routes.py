"""Signed webhook routes that drive the store-sync handlers.

Every decided outcome answers 200 so the source stops delivering; only an
outcome that could not read a collaborator answers 503 so it redelivers.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Tuple

from flask import Blueprint, jsonify, request

from app_platform.errors.api import make_error
from app_platform.schemas import SchemaValidationError
from logging_lib import get_logger

from .middleware import SignatureError, SignatureNotConfigured, validate_signature
from .schemas import parse_identity_created, parse_profile_updated

trigger_bp = Blueprint("portal_triggers", __name__, url_prefix="/triggers")

logger = get_logger("portal.triggers")


def _verified_payload(trigger: str) -> Tuple[Any, Any]:
    """Return ``(payload, None)`` or ``(None, error_response)``."""

    raw_body = request.get_data(cache=True) or b""
    try:
        validate_signature(getattr(request, "trigger_secret", None), request.headers, raw_body)
    except SignatureNotConfigured as exc:
        logger.error("Trigger signature validation misconfigured", trigger=trigger, error=str(exc))
        return None, make_error("Trigger endpoint not configured", "UNAVAILABLE")
    except SignatureError as exc:
        logger.warning("Trigger signature rejected", trigger=trigger, error=str(exc))
        return None, make_error("Invalid signature", "UNAUTHENTICATED")

    try:
        return json.loads(raw_body.decode("utf-8")), None
    except (UnicodeDecodeError, ValueError):
        logger.info("Trigger body is not JSON", trigger=trigger)
        return None, make_error("Invalid payload", "INVALID_ARGUMENT")


def _respond(trigger: str, run: Callable[[], Any]) -> Any:
    result = run()
    status = 503 if result.should_retry else 200
    logger.info("Trigger handled", trigger=trigger, outcome=result.outcome.value, status=status)
    return jsonify(result.to_dict()), status


@trigger_bp.route("/identity-created", methods=["POST"])
def identity_created() -> Any:
    service = getattr(request, "consistency_service", None)
    if service is None:
        return make_error("Consistency handler unavailable", "UNAVAILABLE")

    payload, error = _verified_payload("identity-created")
    if error is not None:
        return error

    try:
        event = parse_identity_created(payload)
    except SchemaValidationError as exc:
        logger.info("Identity-created payload invalid", error=str(exc))
        return make_error("Invalid payload", "INVALID_ARGUMENT", {"reason": str(exc)})

    return _respond("identity-created", lambda: service.handle_identity_created(event.uid, event.email))


@trigger_bp.route("/profile-updated", methods=["POST"])
def profile_updated() -> Any:
    service = getattr(request, "propagation_service", None)
    if service is None:
        return make_error("Propagation handler unavailable", "UNAVAILABLE")

    payload, error = _verified_payload("profile-updated")
    if error is not None:
        return error

    try:
        event = parse_profile_updated(payload)
    except SchemaValidationError as exc:
        logger.info("Profile-updated payload invalid", error=str(exc))
        return make_error("Invalid payload", "INVALID_ARGUMENT", {"reason": str(exc)})

    return _respond(
        "profile-updated",
        lambda: service.handle_profile_updated(event.email, event.before, event.after),
    )
