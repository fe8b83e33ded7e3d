"""Request middleware for the portal HTTP surface."""

from .auth_context import resolve_caller_claims
from .signatures import SIGNATURE_HEADER, SignatureError, SignatureNotConfigured, sign, validate_signature

__all__ = [
    "SIGNATURE_HEADER",
    "SignatureError",
    "SignatureNotConfigured",
    "resolve_caller_claims",
    "sign",
    "validate_signature",
]
