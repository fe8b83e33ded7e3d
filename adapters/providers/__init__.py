"""
Identity provider adapters.

``IdentityProvider`` is the interface services depend on; the Auth0
implementations cover both the Management API and caller token checks.
"""

from .auth0 import Auth0TokenVerifier
from .auth0_mgmt import Auth0IdentityProvider
from .base import IdentityProvider, IdentityProviderError, NewIdentity

__all__ = [
    "Auth0IdentityProvider",
    "Auth0TokenVerifier",
    "IdentityProvider",
    "IdentityProviderError",
    "NewIdentity",
]
