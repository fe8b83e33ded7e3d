"""Top-level pytest configuration for the permission portal tests.

Every collaborator that would leave the process (Auth0, Firestore, SMTP, the
verification issuer) is replaced by an in-memory double from
``tests.utils.fakes``; structured logs go to the in-memory sink.
"""

from __future__ import annotations

import random
from typing import Generator

import pytest

from app_platform.config.portal import PortalConfig, VerificationIssuerConfig
from domains.accounts.models import CallerClaims
from logging_lib import configure as configure_structured_logging, reset_loggers

from apps.portal_service.services import InlineDispatcher, NotificationService

from tests.utils.fakes import (
    FakeFirestoreClient,
    FakeIdentityProvider,
    RecordingMailer,
    build_repositories,
)


@pytest.fixture(autouse=True)
def structured_logs(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Route logging_lib records to the memory sink for every test."""

    monkeypatch.setenv("LOG_SINKS", "memory")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    configure_structured_logging(service="portal-tests", env="test")
    yield
    reset_loggers()


@pytest.fixture(autouse=True)
def deterministic_random_seed() -> Generator[None, None, None]:
    """Keep Python's RNG deterministic so retry jitter is reproducible."""

    state = random.getstate()
    random.seed(1337)
    yield
    random.setstate(state)


@pytest.fixture
def portal_config() -> PortalConfig:
    return PortalConfig(
        environment="test",
        client_url="https://portal.example",
        trigger_secret="trigger-secret",
        verification=VerificationIssuerConfig(url="https://issuer.example", api_key="issuer-key"),
    )


@pytest.fixture
def firestore_client() -> FakeFirestoreClient:
    client = FakeFirestoreClient()
    client.docs("organizations")["org-1"] = {"name": "Org One"}
    return client


@pytest.fixture
def repositories(firestore_client):
    return build_repositories(firestore_client)


@pytest.fixture
def profiles(repositories):
    return repositories[0]


@pytest.fixture
def organizations(repositories):
    return repositories[1]


@pytest.fixture
def user_images(repositories):
    return repositories[2]


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def notifications(portal_config, mailer, identity_provider) -> NotificationService:
    return NotificationService(portal_config, mailer, identity_provider, dispatcher=InlineDispatcher())


@pytest.fixture
def admin_caller() -> CallerClaims:
    return CallerClaims(uid="admin-1", email="admin@org.test", is_admin=True, organization_id="org-1")


@pytest.fixture
def member_caller() -> CallerClaims:
    return CallerClaims(uid="member-1", email="member@org.test", is_admin=False, organization_id="org-1")
