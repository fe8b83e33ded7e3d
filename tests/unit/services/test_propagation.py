"""Tests for profile-to-identity propagation."""

import pytest
from google.api_core.exceptions import DeadlineExceeded

from adapters.providers import IdentityProviderError
from domains.accounts.models import IdentityClaims
from domains.accounts.sync import ActionKind

from apps.portal_service.services import PropagationService, SyncOutcome

from tests.utils.fakes import profile_data


@pytest.fixture
def service(identity_provider, profiles):
    return PropagationService(identity_provider, profiles)


@pytest.fixture
def synced_user(identity_provider, firestore_client):
    firestore_client.docs("users")["ada@example.com"] = profile_data()
    return identity_provider.add_user(
        "ada@example.com", claims=IdentityClaims(is_admin=False, organization_id="org-1")
    )


@pytest.mark.unit
class TestHandleProfileUpdated:

    def test_disabling_profile_blocks_identity(self, service, identity_provider, firestore_client, synced_user):
        before = profile_data()
        after = profile_data(disabled=True)
        firestore_client.docs("users")["ada@example.com"] = after

        result = service.handle_profile_updated("ada@example.com", before, after)

        assert result.outcome is SyncOutcome.APPLIED
        assert result.applied == [ActionKind.SET_DISABLED]
        assert identity_provider.users[synced_user.uid].disabled is True

    def test_promotion_updates_claims(self, service, identity_provider, firestore_client, synced_user):
        after = profile_data(isAdmin=True)
        firestore_client.docs("users")["ada@example.com"] = after

        result = service.handle_profile_updated("ada@example.com", profile_data(), after)

        assert result.applied == [ActionKind.SET_CLAIMS]
        assert identity_provider.users[synced_user.uid].claims.is_admin is True

    def test_non_authorization_change_is_skipped(self, service, identity_provider, synced_user):
        result = service.handle_profile_updated(
            "ada@example.com", profile_data(), profile_data(firstName="Augusta")
        )

        assert result.outcome is SyncOutcome.SKIPPED
        assert identity_provider.calls == []

    def test_stored_document_wins_over_event_payload(self, service, identity_provider, firestore_client, synced_user):
        # The event says "disabled" but a later write already re-enabled the profile
        firestore_client.docs("users")["ada@example.com"] = profile_data(disabled=False)

        result = service.handle_profile_updated("ada@example.com", profile_data(), profile_data(disabled=True))

        assert result.outcome is SyncOutcome.UNCHANGED
        assert identity_provider.users[synced_user.uid].disabled is False

    def test_missing_identity_is_skipped(self, service, identity_provider, firestore_client):
        firestore_client.docs("users")["ghost@example.com"] = profile_data(disabled=True)

        result = service.handle_profile_updated("ghost@example.com", profile_data(), profile_data(disabled=True))

        assert result.outcome is SyncOutcome.SKIPPED
        assert identity_provider.mutations() == []

    def test_deleted_profile_is_skipped(self, service, identity_provider, synced_user, firestore_client):
        firestore_client.docs("users").clear()

        result = service.handle_profile_updated("ada@example.com", profile_data(), {})

        assert result.outcome is SyncOutcome.SKIPPED
        assert identity_provider.mutations() == []

    def test_malformed_profile_is_skipped(self, service, identity_provider, firestore_client, synced_user):
        firestore_client.docs("users")["ada@example.com"] = profile_data(disabled="yes")

        result = service.synchronize("ada@example.com")

        assert result.outcome is SyncOutcome.SKIPPED
        assert result.detail == "profile_malformed"

    def test_claims_failure_stops_before_disabled(self, service, identity_provider, firestore_client, synced_user):
        after = profile_data(isAdmin=True, disabled=True)
        firestore_client.docs("users")["ada@example.com"] = after
        identity_provider.failures["set_custom_claims"] = IdentityProviderError("down", code="unavailable")

        result = service.handle_profile_updated("ada@example.com", profile_data(), after)

        assert result.outcome is SyncOutcome.INCOMPLETE
        assert "set_disabled" not in identity_provider.mutations()
        assert identity_provider.users[synced_user.uid].disabled is False

    def test_disabled_failure_after_claims_is_incomplete(self, service, identity_provider, firestore_client, synced_user):
        after = profile_data(isAdmin=True, disabled=True)
        firestore_client.docs("users")["ada@example.com"] = after
        identity_provider.failures["set_disabled"] = IdentityProviderError("down", code="unavailable")

        result = service.handle_profile_updated("ada@example.com", profile_data(), after)

        assert result.outcome is SyncOutcome.INCOMPLETE
        assert result.applied == [ActionKind.SET_CLAIMS]
        assert result.error.startswith("set_disabled")

    def test_profile_read_failure_is_retryable(self, service, identity_provider, firestore_client, synced_user):
        firestore_client.fail("get", "users", DeadlineExceeded("slow"))

        result = service.synchronize("ada@example.com")

        assert result.should_retry is True
        assert identity_provider.calls == []

    def test_mixed_case_email_is_normalized(self, service, identity_provider, firestore_client, synced_user):
        firestore_client.docs("users")["ada@example.com"] = profile_data(disabled=True)

        result = service.synchronize("ADA@example.com")

        assert result.outcome is SyncOutcome.APPLIED
