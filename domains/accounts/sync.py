"""Pure planners for keeping identity records and profile documents in sync.

The two stores cannot be written atomically, so every handler is a saga step:
it reads the current state of both stores, asks a planner below what to do,
and applies the returned actions in order. Planners never perform I/O, which
keeps the decision logic testable without Auth0 or Firestore.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .exceptions import MalformedProfileError
from .models import IdentityClaims, IdentityRecord, ProfileDocument


class ActionKind(str, Enum):
    DELETE_IDENTITY = "delete_identity"
    DELETE_PROFILE = "delete_profile"
    SET_CLAIMS = "set_claims"
    SET_DISABLED = "set_disabled"


class Violation(str, Enum):
    PROFILE_MISSING = "profile_missing"
    PROFILE_MALFORMED = "profile_malformed"
    ORGANIZATION_MISSING = "organization_missing"


@dataclass(frozen=True)
class SyncAction:
    kind: ActionKind
    uid: Optional[str] = None
    email: Optional[str] = None
    claims: Optional[IdentityClaims] = None
    disabled: Optional[bool] = None


@dataclass(frozen=True)
class SyncPlan:
    actions: tuple[SyncAction, ...] = ()
    violation: Optional[Violation] = None
    detail: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.violation is None


def parse_profile(email: str, raw: Optional[Mapping[str, Any]]) -> Optional[ProfileDocument]:
    """Return the typed profile, or None when absent or malformed."""

    if raw is None:
        return None
    try:
        return ProfileDocument.from_firestore(email, raw)
    except MalformedProfileError:
        return None


def plan_propagation(identity: IdentityRecord, profile: ProfileDocument) -> tuple[SyncAction, ...]:
    """Actions that make ``identity`` match the projection of ``profile``.

    Claims are always applied before the disabled flag. Values that already
    match are skipped so redelivered events issue no provider calls.
    """

    actions: list[SyncAction] = []
    if identity.claims != profile.claims:
        actions.append(SyncAction(ActionKind.SET_CLAIMS, uid=identity.uid, claims=profile.claims))
    if identity.disabled != profile.disabled:
        actions.append(SyncAction(ActionKind.SET_DISABLED, uid=identity.uid, disabled=profile.disabled))
    return tuple(actions)


def plan_identity_created(
    identity: IdentityRecord,
    raw_profile: Optional[Mapping[str, Any]],
    organization_exists: Optional[bool],
) -> SyncPlan:
    """Decide whether a newly created identity may live.

    ``organization_exists`` is only consulted when the profile is well formed;
    callers pass None when they did not look the organization up.
    """

    email = identity.join_key
    delete_identity = SyncAction(ActionKind.DELETE_IDENTITY, uid=identity.uid, email=email)

    if email is None or raw_profile is None:
        return SyncPlan(
            actions=(delete_identity,),
            violation=Violation.PROFILE_MISSING,
            detail=f"No profile document for identity {identity.uid}",
        )

    delete_profile = SyncAction(ActionKind.DELETE_PROFILE, email=email)

    try:
        profile = ProfileDocument.from_firestore(email, raw_profile)
    except MalformedProfileError as exc:
        return SyncPlan(
            actions=(delete_identity, delete_profile),
            violation=Violation.PROFILE_MALFORMED,
            detail=str(exc),
        )

    if organization_exists is None:
        raise ValueError("organization_exists is required for a well-formed profile")

    if not organization_exists:
        return SyncPlan(
            actions=(delete_identity, delete_profile),
            violation=Violation.ORGANIZATION_MISSING,
            detail=f"Organization {profile.organization_id} does not exist",
        )

    return SyncPlan(actions=plan_propagation(identity, profile))
