"""Verification-code issuance proxied to the external issuing server."""

from __future__ import annotations

import logging
from typing import Any, Optional

from adapters.verification import IssuerRequestError, VerificationIssuerClient
from app_platform.schemas import SchemaValidationError
from domains.accounts import CallerClaims, Internal, InvalidArgument, require_authenticated

from apps.portal_service.http.schemas import parse_issue_code

logger = logging.getLogger(__name__)


class VerificationService:
    def __init__(self, issuer: VerificationIssuerClient) -> None:
        self._issuer = issuer

    def get_verification_code(self, payload: Any, caller: Optional[CallerClaims]) -> Any:
        """Return the issued code exactly as the issuing server sent it."""

        caller = require_authenticated(caller)

        try:
            request = parse_issue_code(payload)
        except SchemaValidationError as exc:
            raise InvalidArgument("Request body is invalidly formatted.", details={"reason": str(exc)}) from exc

        try:
            code = self._issuer.issue_code(request.to_issuer_payload())
        except IssuerRequestError as exc:
            details = {"status": exc.status, "upstream_error": exc.upstream_error}
            raise Internal(str(exc), details={k: v for k, v in details.items() if v is not None}) from exc

        logger.info(
            "Verification code issued",
            extra={"caller_uid": caller.uid, "organization_id": caller.organization_id, "test_type": request.test_type},
        )
        return code
