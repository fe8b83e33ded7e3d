"""Account domain models.

The portal keeps two stores describing the same person: the identity provider
record (credentials, claims, blocked flag) and the profile document in
Firestore (organization membership, role flags, onboarding state). The models
below are the typed views of both; conversion from raw storage payloads happens
once, here, so the services never inspect untyped dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .exceptions import MalformedProfileError

# Profile fields whose change must be projected onto the identity record.
AUTHORIZATION_FIELDS: tuple[str, ...] = ("disabled", "isAdmin", "isSuperAdmin", "organizationID")

_REQUIRED_BOOL_FIELDS = ("isAdmin", "disabled")
_REQUIRED_STR_FIELDS = ("organizationID", "firstName", "lastName")


def normalize_email(email: str) -> str:
    """Return the join key used by both stores."""

    return email.strip().lower()


@dataclass(frozen=True)
class IdentityClaims:
    """Custom claims stamped on an identity record."""

    is_admin: bool = False
    organization_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"isAdmin": self.is_admin, "organizationID": self.organization_id}

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "IdentityClaims":
        if not data:
            return cls()
        organization_id = data.get("organizationID")
        return cls(
            is_admin=data.get("isAdmin") is True,
            organization_id=organization_id if isinstance(organization_id, str) else None,
        )


@dataclass(frozen=True)
class CallerClaims:
    """Verified claims of the caller of an RPC."""

    uid: str
    email: Optional[str] = None
    is_admin: bool = False
    organization_id: Optional[str] = None


@dataclass
class IdentityRecord:
    """Identity provider user, as seen by this service."""

    uid: str
    email: Optional[str]
    disabled: bool = False
    claims: IdentityClaims = field(default_factory=IdentityClaims)
    email_verified: bool = False
    created_at: Optional[str] = None

    @property
    def join_key(self) -> Optional[str]:
        return normalize_email(self.email) if self.email else None


@dataclass(frozen=True)
class IdentityRecordView:
    """Serializable view of an identity record returned to RPC callers."""

    uid: str
    email: Optional[str]
    email_verified: bool
    disabled: bool
    custom_claims: Dict[str, Any]
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: IdentityRecord) -> "IdentityRecordView":
        return cls(
            uid=record.uid,
            email=record.email,
            email_verified=record.email_verified,
            disabled=record.disabled,
            custom_claims=record.claims.to_dict(),
            created_at=record.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "emailVerified": self.email_verified,
            "disabled": self.disabled,
            "customClaims": dict(self.custom_claims),
            "createdAt": self.created_at,
        }


@dataclass
class ProfileDocument:
    """A document in the ``users`` collection, keyed by lower-cased email."""

    email: str
    organization_id: str
    first_name: str
    last_name: str
    is_admin: bool = False
    is_super_admin: bool = False
    disabled: bool = False
    is_first_time_user: bool = False
    password_reset_requested: bool = False

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)

    @property
    def claims(self) -> IdentityClaims:
        """Projection of the document onto identity claims."""

        return IdentityClaims(is_admin=self.is_admin, organization_id=self.organization_id)

    def to_firestore(self) -> Dict[str, Any]:
        """Payload stored under ``users/{email}``; the key is not duplicated."""

        return {
            "isAdmin": self.is_admin,
            "isSuperAdmin": self.is_super_admin,
            "organizationID": self.organization_id,
            "disabled": self.disabled,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "isFirstTimeUser": self.is_first_time_user,
            "passwordResetRequested": self.password_reset_requested,
        }

    @classmethod
    def from_firestore(cls, email: str, data: Mapping[str, Any]) -> "ProfileDocument":
        """Validate a raw document and build the typed profile.

        Only the authorization and name fields decide well-formedness; the
        remaining flags read as true only when stored as boolean true.
        Raises :class:`MalformedProfileError` listing every offending field.
        """

        if not isinstance(data, Mapping):
            raise MalformedProfileError("Profile document is not a mapping")

        invalid = [name for name in _REQUIRED_BOOL_FIELDS if not isinstance(data.get(name), bool)]
        invalid.extend(name for name in _REQUIRED_STR_FIELDS if not isinstance(data.get(name), str))
        if invalid:
            raise MalformedProfileError(
                f"Profile document has invalid fields: {', '.join(invalid)}",
                fields=tuple(invalid),
            )

        return cls(
            email=email,
            organization_id=data["organizationID"],
            first_name=data["firstName"],
            last_name=data["lastName"],
            is_admin=data["isAdmin"],
            is_super_admin=data.get("isSuperAdmin") is True,
            disabled=data["disabled"],
            is_first_time_user=data.get("isFirstTimeUser") is True,
            password_reset_requested=data.get("passwordResetRequested") is True,
        )


def authorization_fields_changed(
    before: Optional[Mapping[str, Any]],
    after: Optional[Mapping[str, Any]],
) -> bool:
    """Return True when any authorization-relevant field differs."""

    before = before or {}
    after = after or {}
    return any(before.get(name) != after.get(name) for name in AUTHORIZATION_FIELDS)
