"""Resolve RPC caller claims from the bearer token.

Absent or invalid tokens resolve to ``None``; the guards in
``domains.accounts.guards`` turn that into ``Unauthenticated`` when the
operation requires a caller.
"""

from __future__ import annotations

from typing import Optional

from flask import g, request

from domains.accounts.models import CallerClaims
from logging_lib import get_logger

logger = get_logger("portal.auth_context")


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = value.strip()
    return token or None


def resolve_caller_claims() -> Optional[CallerClaims]:
    """Verify the request's bearer token once per request and cache the result."""

    if "caller_claims" in g:
        return g.caller_claims

    claims: Optional[CallerClaims] = None
    token = _bearer_token()
    verifier = getattr(request, "token_verifier", None)

    if token and verifier is None:
        logger.warning("Bearer token presented but no verifier is configured")
    elif token:
        try:
            claims = verifier.authenticate(token)
        except ValueError as exc:
            logger.info("Caller token rejected", error=str(exc))
            claims = None

    g.caller_claims = claims
    if claims is not None:
        g.caller_uid = claims.uid
    return claims
