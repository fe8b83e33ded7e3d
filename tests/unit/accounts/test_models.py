"""Tests for the account domain models and guards."""

import pytest

from domains.accounts import (
    CallerClaims,
    IdentityClaims,
    IdentityRecord,
    IdentityRecordView,
    MalformedProfileError,
    PermissionDenied,
    ProfileDocument,
    Unauthenticated,
    normalize_email,
    require_admin,
    require_authenticated,
)
from domains.accounts.models import authorization_fields_changed

from tests.utils.fakes import profile_data


@pytest.mark.unit
class TestProfileDocument:

    def test_from_firestore_builds_typed_profile(self):
        profile = ProfileDocument.from_firestore("Ada@Example.COM", profile_data(isAdmin=True))

        assert profile.email == "ada@example.com"
        assert profile.organization_id == "org-1"
        assert profile.is_admin is True
        assert profile.claims == IdentityClaims(is_admin=True, organization_id="org-1")

    def test_optional_flags_default_to_false(self):
        raw = profile_data()
        for name in ("isSuperAdmin", "isFirstTimeUser", "passwordResetRequested"):
            raw.pop(name)

        profile = ProfileDocument.from_firestore("a@b.com", raw)

        assert profile.is_super_admin is False
        assert profile.password_reset_requested is False

    def test_optional_flags_read_true_only_for_boolean_true(self):
        profile = ProfileDocument.from_firestore(
            "a@b.com", profile_data(isSuperAdmin="no", isFirstTimeUser=1, passwordResetRequested=True)
        )

        assert profile.is_super_admin is False
        assert profile.is_first_time_user is False
        assert profile.password_reset_requested is True

    def test_malformed_fields_are_listed(self):
        raw = profile_data(isAdmin="yes", organizationID=7)
        raw.pop("disabled")

        with pytest.raises(MalformedProfileError) as excinfo:
            ProfileDocument.from_firestore("a@b.com", raw)

        assert set(excinfo.value.fields) == {"isAdmin", "disabled", "organizationID"}

    def test_non_mapping_is_malformed(self):
        with pytest.raises(MalformedProfileError):
            ProfileDocument.from_firestore("a@b.com", ["not", "a", "dict"])

    def test_to_firestore_omits_email_key(self):
        profile = ProfileDocument(email="A@B.com", organization_id="org-1", first_name="A", last_name="B")

        payload = profile.to_firestore()

        assert "email" not in payload
        assert payload["organizationID"] == "org-1"
        assert payload["disabled"] is False
        assert ProfileDocument.from_firestore(profile.email, payload) == profile


@pytest.mark.unit
class TestIdentityModels:

    def test_claims_from_mapping_ignores_wrong_types(self):
        claims = IdentityClaims.from_mapping({"isAdmin": "true", "organizationID": 3})

        assert claims == IdentityClaims(is_admin=False, organization_id=None)

    def test_claims_from_empty_mapping(self):
        assert IdentityClaims.from_mapping(None) == IdentityClaims()

    def test_join_key_is_lowercased(self):
        record = IdentityRecord(uid="u1", email=" Mixed@Case.Org ")

        assert record.join_key == "mixed@case.org"
        assert IdentityRecord(uid="u2", email=None).join_key is None

    def test_view_serialization(self):
        record = IdentityRecord(
            uid="u1",
            email="a@b.com",
            claims=IdentityClaims(is_admin=True, organization_id="org-1"),
            created_at="2020-06-01T00:00:00Z",
        )

        view = IdentityRecordView.from_record(record).to_dict()

        assert view == {
            "uid": "u1",
            "email": "a@b.com",
            "emailVerified": False,
            "disabled": False,
            "customClaims": {"isAdmin": True, "organizationID": "org-1"},
            "createdAt": "2020-06-01T00:00:00Z",
        }

    def test_normalize_email(self):
        assert normalize_email("  USER@Example.com ") == "user@example.com"


@pytest.mark.unit
class TestAuthorizationFieldsChanged:

    @pytest.mark.parametrize("field,value", [
        ("disabled", True),
        ("isAdmin", True),
        ("isSuperAdmin", True),
        ("organizationID", "org-2"),
    ])
    def test_authorization_fields_trigger(self, field, value):
        before = profile_data()
        after = dict(before, **{field: value})

        assert authorization_fields_changed(before, after) is True

    def test_other_fields_do_not_trigger(self):
        before = profile_data()
        after = dict(before, firstName="Grace", passwordResetRequested=True)

        assert authorization_fields_changed(before, after) is False


@pytest.mark.unit
class TestGuards:

    def test_require_authenticated_rejects_missing_claims(self):
        with pytest.raises(Unauthenticated):
            require_authenticated(None)

    def test_require_admin_rejects_non_admin(self, member_caller):
        with pytest.raises(PermissionDenied):
            require_admin(member_caller)

    def test_require_admin_rejects_anonymous_as_unauthenticated(self):
        with pytest.raises(Unauthenticated):
            require_admin(None)

    def test_require_admin_returns_caller(self, admin_caller):
        assert require_admin(admin_caller) is admin_caller

    def test_truthy_non_bool_is_not_admin(self):
        with pytest.raises(PermissionDenied):
            require_admin(CallerClaims(uid="x", is_admin=1))
