"""Schemas for portal-service HTTP payloads."""

from .requests import (
    CreateUserRequest,
    IdentityCreatedEvent,
    IssueCodeRequest,
    PasswordRecoveryRequest,
    ProfileUpdatedEvent,
    parse_create_user,
    parse_identity_created,
    parse_issue_code,
    parse_password_recovery,
    parse_profile_updated,
)

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
