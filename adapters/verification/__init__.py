"""Client for the external verification-code issuing server."""

from .issuer_client import IssuerRequestError, VerificationIssuerClient

__all__ = ["IssuerRequestError", "VerificationIssuerClient"]
