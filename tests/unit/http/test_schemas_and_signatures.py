"""Tests for request schemas and trigger signature validation."""

import pytest

from app_platform.schemas import SchemaValidationError
from apps.portal_service.http.middleware import (
    SIGNATURE_HEADER,
    SignatureError,
    SignatureNotConfigured,
    sign,
    validate_signature,
)
from apps.portal_service.http.schemas import (
    parse_create_user,
    parse_identity_created,
    parse_issue_code,
    parse_password_recovery,
    parse_profile_updated,
)


@pytest.mark.unit
class TestCreateUserSchema:

    def test_email_case_is_preserved(self):
        request = parse_create_user(
            {"email": " Ada@Example.com ", "firstName": "Ada", "lastName": "L", "isAdmin": True}
        )

        assert request.email == "Ada@Example.com"
        assert request.is_admin is True
        assert request.password is None

    def test_empty_names_are_accepted(self):
        request = parse_create_user({"email": "a@b.com", "firstName": "", "lastName": "", "isAdmin": False})

        assert request.first_name == ""

    def test_non_string_password_is_rejected(self):
        with pytest.raises(SchemaValidationError):
            parse_create_user({"email": "a@b.com", "firstName": "A", "lastName": "B", "isAdmin": False, "password": 1})

    def test_recovery_requires_email(self):
        with pytest.raises(SchemaValidationError):
            parse_password_recovery({"email": ""})


@pytest.mark.unit
class TestIssueCodeSchema:

    def test_optional_fields_are_omitted(self):
        request = parse_issue_code({"testType": "confirmed"})

        assert request.to_issuer_payload() == {"testType": "confirmed"}

    def test_all_fields_forwarded(self):
        request = parse_issue_code(
            {"testType": "likely", "testDate": "2020-06-01", "symptomDate": "2020-05-28", "tzOffset": 60}
        )

        assert request.to_issuer_payload() == {
            "testType": "likely",
            "testDate": "2020-06-01",
            "symptomDate": "2020-05-28",
            "tzOffset": 60,
        }

    def test_boolean_offset_is_rejected(self):
        with pytest.raises(SchemaValidationError):
            parse_issue_code({"testType": "likely", "tzOffset": True})


@pytest.mark.unit
class TestEventSchemas:

    @pytest.mark.parametrize("payload", [
        {"user_id": "auth0|1"},
        {"uid": "auth0|1"},
        {"user": {"id": "auth0|1", "email": "a@b.com"}},
    ])
    def test_identity_created_shapes(self, payload):
        assert parse_identity_created(payload).uid == "auth0|1"

    def test_profile_updated_defaults(self):
        event = parse_profile_updated({"email": "a@b.com"})

        assert event.before == {}
        assert event.after == {}

    def test_events_must_be_objects(self):
        with pytest.raises(SchemaValidationError):
            parse_identity_created("auth0|1")


@pytest.mark.unit
class TestSignatures:

    def test_hex_signature(self):
        body = b'{"uid": "x"}'

        validate_signature("secret", {SIGNATURE_HEADER: sign("secret", body)}, body)

    def test_uppercase_hex_with_prefix(self):
        body = b"{}"

        validate_signature("secret", {SIGNATURE_HEADER: "sha256=" + sign("secret", body).upper()}, body)

    def test_tampered_body(self):
        with pytest.raises(SignatureError):
            validate_signature("secret", {SIGNATURE_HEADER: sign("secret", b"{}")}, b'{"a": 1}')

    def test_non_ascii_signature(self):
        with pytest.raises(SignatureError):
            validate_signature("secret", {SIGNATURE_HEADER: "é"}, b"{}")

    def test_missing_secret(self):
        with pytest.raises(SignatureNotConfigured):
            validate_signature("", {SIGNATURE_HEADER: "abc"}, b"{}")
