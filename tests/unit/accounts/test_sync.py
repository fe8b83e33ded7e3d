"""Tests for the pure store-sync planners."""

import pytest

from domains.accounts.models import IdentityClaims, IdentityRecord, ProfileDocument
from domains.accounts.sync import (
    ActionKind,
    SyncAction,
    Violation,
    parse_profile,
    plan_identity_created,
    plan_propagation,
)

from tests.utils.fakes import profile_data


def _identity(**kwargs):
    defaults = {"uid": "auth0|1", "email": "Ada@Example.com"}
    defaults.update(kwargs)
    return IdentityRecord(**defaults)


@pytest.mark.unit
class TestPlanIdentityCreated:

    def test_missing_profile_deletes_identity_only(self):
        plan = plan_identity_created(_identity(), None, None)

        assert plan.violation is Violation.PROFILE_MISSING
        assert [a.kind for a in plan.actions] == [ActionKind.DELETE_IDENTITY]
        assert plan.actions[0].uid == "auth0|1"

    def test_identity_without_email_is_rejected(self):
        plan = plan_identity_created(_identity(email=None), profile_data(), True)

        assert plan.violation is Violation.PROFILE_MISSING

    def test_malformed_profile_deletes_identity_then_profile(self):
        plan = plan_identity_created(_identity(), profile_data(isAdmin="no"), None)

        assert plan.violation is Violation.PROFILE_MALFORMED
        assert [a.kind for a in plan.actions] == [ActionKind.DELETE_IDENTITY, ActionKind.DELETE_PROFILE]
        assert plan.actions[1].email == "ada@example.com"

    def test_off_type_optional_flags_keep_the_profile(self):
        raw = profile_data(isSuperAdmin="no", isFirstTimeUser=1, passwordResetRequested="yes")

        plan = plan_identity_created(_identity(), raw, True)

        assert plan.accepted
        assert plan.violation is None
        assert ActionKind.DELETE_IDENTITY not in [a.kind for a in plan.actions]
        assert ActionKind.DELETE_PROFILE not in [a.kind for a in plan.actions]

    def test_missing_organization_deletes_both(self):
        plan = plan_identity_created(_identity(), profile_data(), False)

        assert plan.violation is Violation.ORGANIZATION_MISSING
        assert [a.kind for a in plan.actions] == [ActionKind.DELETE_IDENTITY, ActionKind.DELETE_PROFILE]

    def test_valid_profile_projects_claims_then_disabled(self):
        plan = plan_identity_created(_identity(), profile_data(isAdmin=True, disabled=True), True)

        assert plan.accepted
        assert plan.actions == (
            SyncAction(
                ActionKind.SET_CLAIMS,
                uid="auth0|1",
                claims=IdentityClaims(is_admin=True, organization_id="org-1"),
            ),
            SyncAction(ActionKind.SET_DISABLED, uid="auth0|1", disabled=True),
        )

    def test_well_formed_profile_requires_organization_lookup(self):
        with pytest.raises(ValueError):
            plan_identity_created(_identity(), profile_data(), None)


@pytest.mark.unit
class TestPlanPropagation:

    def test_matching_identity_needs_no_actions(self):
        profile = ProfileDocument.from_firestore("ada@example.com", profile_data())
        identity = _identity(claims=profile.claims)

        assert plan_propagation(identity, profile) == ()

    def test_only_disabled_differs(self):
        profile = ProfileDocument.from_firestore("ada@example.com", profile_data(disabled=True))
        identity = _identity(claims=profile.claims)

        actions = plan_propagation(identity, profile)

        assert [a.kind for a in actions] == [ActionKind.SET_DISABLED]

    def test_reenabling_is_planned(self):
        profile = ProfileDocument.from_firestore("ada@example.com", profile_data(disabled=False))
        identity = _identity(claims=profile.claims, disabled=True)

        actions = plan_propagation(identity, profile)

        assert actions == (SyncAction(ActionKind.SET_DISABLED, uid="auth0|1", disabled=False),)


@pytest.mark.unit
def test_parse_profile_hides_malformed_documents():
    assert parse_profile("a@b.com", None) is None
    assert parse_profile("a@b.com", {"isAdmin": 1}) is None
    assert parse_profile("a@b.com", profile_data()).first_name == "Ada"
