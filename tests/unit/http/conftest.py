"""Fixtures building the portal Flask app around in-memory collaborators."""

from __future__ import annotations

import json

import pytest

from adapters.verification import VerificationIssuerClient
from apps.portal_service.http.middleware import SIGNATURE_HEADER, sign
from apps.portal_service.main import PortalRuntime, create_app
from apps.portal_service.services import (
    ConsistencyService,
    PropagationService,
    ProvisioningService,
    RecoveryService,
    VerificationService,
)

from tests.utils.fakes import ScriptedSession, StaticTokenVerifier


@pytest.fixture
def issuer_session() -> ScriptedSession:
    return ScriptedSession()


@pytest.fixture
def token_verifier(admin_caller, member_caller) -> StaticTokenVerifier:
    return StaticTokenVerifier({"admin-token": admin_caller, "member-token": member_caller})


@pytest.fixture
def runtime(portal_config, identity_provider, profiles, organizations, user_images, notifications, token_verifier, issuer_session):
    return PortalRuntime(
        config=portal_config,
        identity_provider=identity_provider,
        token_verifier=token_verifier,
        notifications=notifications,
        provisioning_service=ProvisioningService(identity_provider, profiles, user_images, notifications),
        recovery_service=RecoveryService(profiles, notifications),
        verification_service=VerificationService(
            VerificationIssuerClient(portal_config.verification, issuer_session)
        ),
        consistency_service=ConsistencyService(identity_provider, profiles, organizations),
        propagation_service=PropagationService(identity_provider, profiles),
    )


@pytest.fixture
def app(runtime):
    app = create_app(runtime=runtime)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def post_trigger(client, portal_config):
    """POST a JSON body to a trigger route, signed with the configured secret."""

    def _post(path, payload, *, secret=None, signature=None):
        body = json.dumps(payload).encode("utf-8")
        if signature is None:
            signature = sign(secret or portal_config.trigger_secret, body)
        return client.post(
            path,
            data=body,
            headers={SIGNATURE_HEADER: signature, "Content-Type": "application/json"},
        )

    return _post
