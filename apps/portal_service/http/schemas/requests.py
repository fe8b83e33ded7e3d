"""Request and trigger payload schemas for the portal service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from app_platform.schemas import (
    BaseSchema,
    SchemaValidationError,
    ensure_email,
    optional_int,
    optional_iso_date,
    optional_str,
    require_bool,
    require_non_empty_str,
    require_str,
)


def _extract(payload: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in payload:
            return payload[name]
    return None


def _require_mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise SchemaValidationError(f"{what} must be a JSON object")
    return payload


@dataclass(slots=True)
class CreateUserRequest(BaseSchema):
    email: str
    first_name: str
    last_name: str
    is_admin: bool
    password: Optional[str] = None


def parse_create_user(payload: Any) -> CreateUserRequest:
    payload = _require_mapping(payload, "createUser request")

    password = payload.get("password")
    if password is not None and not isinstance(password, str):
        raise SchemaValidationError("Field 'password' must be a string if provided")

    return CreateUserRequest(
        email=ensure_email(payload.get("email"), "email"),
        first_name=require_str(payload.get("firstName"), "firstName"),
        last_name=require_str(payload.get("lastName"), "lastName"),
        is_admin=require_bool(payload.get("isAdmin"), "isAdmin"),
        # An empty password means "generate one"
        password=password or None,
    )


@dataclass(slots=True)
class PasswordRecoveryRequest(BaseSchema):
    email: str


def parse_password_recovery(payload: Any) -> PasswordRecoveryRequest:
    payload = _require_mapping(payload, "initiatePasswordRecovery request")
    return PasswordRecoveryRequest(email=ensure_email(payload.get("email"), "email"))


@dataclass(slots=True)
class IssueCodeRequest(BaseSchema):
    test_type: str
    test_date: Optional[str] = None
    symptom_date: Optional[str] = None
    tz_offset: Optional[int] = None

    def to_issuer_payload(self) -> Dict[str, Any]:
        """Body forwarded to the issuing server; absent optionals are omitted."""

        body: Dict[str, Any] = {"testType": self.test_type}
        if self.test_date is not None:
            body["testDate"] = self.test_date
        if self.symptom_date is not None:
            body["symptomDate"] = self.symptom_date
        if self.tz_offset is not None:
            body["tzOffset"] = self.tz_offset
        return body


def parse_issue_code(payload: Any) -> IssueCodeRequest:
    payload = _require_mapping(payload, "getVerificationCode request")
    return IssueCodeRequest(
        test_type=require_non_empty_str(payload.get("testType"), "testType"),
        test_date=optional_iso_date(payload.get("testDate"), "testDate"),
        symptom_date=optional_iso_date(payload.get("symptomDate"), "symptomDate"),
        tz_offset=optional_int(payload.get("tzOffset"), "tzOffset"),
    )


@dataclass(slots=True)
class IdentityCreatedEvent(BaseSchema):
    uid: str
    email: Optional[str] = None


def parse_identity_created(payload: Any) -> IdentityCreatedEvent:
    """Accept the flat shape and Auth0's ``{"user": {...}}`` post-registration shape."""

    payload = _require_mapping(payload, "identity-created event")
    user = payload.get("user") if isinstance(payload.get("user"), Mapping) else payload

    uid = require_non_empty_str(_extract(user, "user_id", "uid", "id"), "user_id")
    return IdentityCreatedEvent(uid=uid, email=optional_str(user.get("email"), "email"))


@dataclass(slots=True)
class ProfileUpdatedEvent(BaseSchema):
    email: str
    before: Mapping[str, Any] = field(default_factory=dict)
    after: Mapping[str, Any] = field(default_factory=dict)


def parse_profile_updated(payload: Any) -> ProfileUpdatedEvent:
    payload = _require_mapping(payload, "profile-updated event")

    email = require_non_empty_str(_extract(payload, "email", "documentId"), "email")
    before = payload.get("before")
    after = payload.get("after")
    for name, value in (("before", before), ("after", after)):
        if value is not None and not isinstance(value, Mapping):
            raise SchemaValidationError(f"Field '{name}' must be an object")

    return ProfileUpdatedEvent(email=email, before=dict(before or {}), after=dict(after or {}))


__all__ = [
    "CreateUserRequest",
    "IdentityCreatedEvent",
    "IssueCodeRequest",
    "PasswordRecoveryRequest",
    "ProfileUpdatedEvent",
    "parse_create_user",
    "parse_identity_created",
    "parse_issue_code",
    "parse_password_recovery",
    "parse_profile_updated",
]
