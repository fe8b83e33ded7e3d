"""Callable RPC routes: ``createUser``, ``initiatePasswordRecovery``, ``getVerificationCode``.

Collaborators are attached to the request by ``apps.portal_service.main``.
Taxonomy errors raised by the services propagate to the handlers registered
in ``app_platform.errors.api``.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from app_platform.errors.api import make_error
from logging_lib import get_logger

from .middleware import resolve_caller_claims

rpc_bp = Blueprint("portal_rpc", __name__, url_prefix="/rpc")

logger = get_logger("portal.rpc")


def _rpc_payload() -> Any:
    """Accept raw JSON bodies as well as callable-style ``{"data": ...}`` envelopes."""

    body = request.get_json(silent=True)
    if isinstance(body, dict) and set(body) == {"data"}:
        return body["data"]
    return body


def _service(name: str) -> Any:
    return getattr(request, name, None)


def _unavailable(operation: str):
    logger.error("RPC service not configured", operation=operation)
    return make_error(f"{operation} is unavailable", "UNAVAILABLE")


@rpc_bp.route("/createUser", methods=["POST"])
def create_user() -> Any:
    service = _service("provisioning_service")
    if service is None:
        return _unavailable("createUser")

    view = service.create_user(_rpc_payload(), resolve_caller_claims())
    return jsonify({"result": view.to_dict()}), 200


@rpc_bp.route("/initiatePasswordRecovery", methods=["POST"])
def initiate_password_recovery() -> Any:
    service = _service("recovery_service")
    if service is None:
        return _unavailable("initiatePasswordRecovery")

    service.initiate_password_recovery(_rpc_payload())
    return jsonify({"result": None}), 200


@rpc_bp.route("/getVerificationCode", methods=["POST"])
def get_verification_code() -> Any:
    service = _service("verification_service")
    if service is None:
        return _unavailable("getVerificationCode")

    code = service.get_verification_code(_rpc_payload(), resolve_caller_claims())
    return jsonify({"result": {"code": code}}), 200
