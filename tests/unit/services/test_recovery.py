"""Tests for password-recovery initiation."""

import pytest
from google.api_core.exceptions import ServiceUnavailable

from adapters.providers import IdentityProviderError
from domains.accounts import Internal, InvalidArgument, NotFound

from apps.portal_service.services import InlineDispatcher, NotificationService, RecoveryService

from tests.utils.fakes import RecordingMailer, profile_data


@pytest.fixture
def seeded(firestore_client):
    firestore_client.docs("users")["ada@example.com"] = profile_data()
    return firestore_client


@pytest.fixture
def service(profiles, notifications):
    return RecoveryService(profiles, notifications)


@pytest.fixture
def live_notifications(portal_config, identity_provider, mailer):
    portal_config.environment = "production"
    return NotificationService(portal_config, mailer, identity_provider, dispatcher=InlineDispatcher())


@pytest.mark.unit
class TestInitiatePasswordRecovery:

    def test_sets_flag_in_test_environment_without_email(self, service, seeded, identity_provider, mailer):
        assert service.initiate_password_recovery({"email": "ada@example.com"}) is None

        assert seeded.docs("users")["ada@example.com"]["passwordResetRequested"] is True
        assert mailer.sent == []
        assert identity_provider.calls == []

    def test_email_is_matched_case_insensitively(self, service, seeded):
        service.initiate_password_recovery({"email": "ADA@Example.com"})

        assert seeded.docs("users")["ada@example.com"]["passwordResetRequested"] is True

    def test_other_fields_untouched(self, service, seeded):
        service.initiate_password_recovery({"email": "ada@example.com"})

        stored = seeded.docs("users")["ada@example.com"]
        assert stored == profile_data(passwordResetRequested=True)

    def test_unknown_email_is_not_found(self, service, firestore_client):
        with pytest.raises(NotFound):
            service.initiate_password_recovery({"email": "nobody@example.com"})

        assert firestore_client.docs("users") == {}

    @pytest.mark.parametrize("payload", [{}, {"email": "nope"}, {"email": 5}, None])
    def test_invalid_payload(self, service, payload):
        with pytest.raises(InvalidArgument):
            service.initiate_password_recovery(payload)

    def test_store_failure_is_internal(self, service, seeded):
        seeded.fail("update", "users", ServiceUnavailable("down"))

        with pytest.raises(Internal):
            service.initiate_password_recovery({"email": "ada@example.com"})

    def test_sends_sign_in_link_outside_test_environment(self, profiles, live_notifications, seeded, identity_provider, mailer):
        record = identity_provider.add_user("ada@example.com")
        service = RecoveryService(profiles, live_notifications)

        service.initiate_password_recovery({"email": "ada@example.com"})

        assert len(mailer.sent) == 1
        message = mailer.sent[0]
        assert message.subject == "Password Recovery Requested"
        assert f"uid={record.uid}" in message.html
        assert ("generate_sign_in_link", ("ada@example.com", "https://portal.example")) in identity_provider.calls

    def test_link_failure_does_not_reach_caller(self, profiles, live_notifications, seeded, identity_provider, mailer):
        identity_provider.failures["generate_sign_in_link"] = IdentityProviderError("down", code="unavailable")
        service = RecoveryService(profiles, live_notifications)

        service.initiate_password_recovery({"email": "ada@example.com"})

        assert seeded.docs("users")["ada@example.com"]["passwordResetRequested"] is True
        assert mailer.sent == []

    def test_delivery_failure_does_not_reach_caller(self, portal_config, profiles, seeded, identity_provider):
        portal_config.environment = "production"
        identity_provider.add_user("ada@example.com")
        notifications = NotificationService(
            portal_config, RecordingMailer(fail=True), identity_provider, dispatcher=InlineDispatcher()
        )

        RecoveryService(profiles, notifications).initiate_password_recovery({"email": "ada@example.com"})

        assert seeded.docs("users")["ada@example.com"]["passwordResetRequested"] is True
