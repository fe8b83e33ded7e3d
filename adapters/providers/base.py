"""
Public identity provider interface for the adapters package.

Services depend on :class:`IdentityProvider` only; the Auth0 Management API
implementation lives in ``adapters.providers.auth0_mgmt``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from domains.accounts.models import IdentityClaims, IdentityRecord


class IdentityProviderError(Exception):
    """Failure reported by the identity provider.

    ``code`` is a provider-neutral slug (``already-exists``, ``not-found``,
    ``invalid-argument``, ``unavailable``, ``internal``); ``status`` carries the
    upstream HTTP status when there was one.
    """

    def __init__(self, message: str, *, code: str = "internal", status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @property
    def already_exists(self) -> bool:
        return self.code == "already-exists"


@dataclass(frozen=True)
class NewIdentity:
    """Arguments for creating an identity record."""

    email: str
    password: str
    email_verified: bool = False
    disabled: bool = False


class IdentityProvider(ABC):
    """Operations the portal needs from the identity store."""

    @abstractmethod
    def create_user(self, new_identity: NewIdentity) -> IdentityRecord:
        raise NotImplementedError

    @abstractmethod
    def delete_user(self, uid: str) -> None:
        """Delete the record; deleting an absent record succeeds."""

        raise NotImplementedError

    @abstractmethod
    def get_user(self, uid: str) -> Optional[IdentityRecord]:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[IdentityRecord]:
        raise NotImplementedError

    @abstractmethod
    def set_custom_claims(self, uid: str, claims: IdentityClaims) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_disabled(self, uid: str, disabled: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    def generate_sign_in_link(self, email: str, redirect_url: str) -> str:
        """Return a single-use link that signs ``email`` in and lands on ``redirect_url``."""

        raise NotImplementedError
