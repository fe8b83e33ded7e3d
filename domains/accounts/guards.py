"""Authorization guards evaluated before any mutating operation."""

from __future__ import annotations

from typing import Optional

from .exceptions import PermissionDenied, Unauthenticated
from .models import CallerClaims


def require_authenticated(claims: Optional[CallerClaims]) -> CallerClaims:
    """Return the claims, or raise :class:`Unauthenticated` when absent."""

    if claims is None:
        raise Unauthenticated("The function must be called while authenticated.")
    return claims


def require_admin(claims: Optional[CallerClaims]) -> CallerClaims:
    """Return the claims of an authenticated admin caller."""

    caller = require_authenticated(claims)
    if caller.is_admin is not True:
        raise PermissionDenied("The function must be called by an admin.")
    return caller
