"""Tests for the callable RPC routes."""

import pytest

from apps.portal_service.main import PortalRuntime, create_app

from tests.utils.fakes import make_response, profile_data

ADMIN = {"Authorization": "Bearer admin-token"}
MEMBER = {"Authorization": "Bearer member-token"}

NEW_USER = {"email": "a@b.com", "firstName": "A", "lastName": "B", "isAdmin": False}


@pytest.mark.unit
class TestCreateUserRoute:

    def test_admin_creates_user(self, client, firestore_client, identity_provider):
        response = client.post("/rpc/createUser", json=NEW_USER, headers=ADMIN)

        assert response.status_code == 200
        result = response.get_json()["result"]
        assert result["email"] == "a@b.com"
        assert result["uid"] in identity_provider.users
        assert firestore_client.docs("users")["a@b.com"]["organizationID"] == "org-1"

    def test_data_envelope_is_unwrapped(self, client, firestore_client):
        response = client.post("/rpc/createUser", json={"data": NEW_USER}, headers=ADMIN)

        assert response.status_code == 200
        assert "a@b.com" in firestore_client.docs("users")

    def test_member_is_forbidden(self, client, firestore_client):
        response = client.post("/rpc/createUser", json=NEW_USER, headers=MEMBER)

        assert response.status_code == 403
        assert response.get_json()["code"] == "PERMISSION_DENIED"
        assert firestore_client.docs("users") == {}

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer forged"}, {"Authorization": "Basic abc"}])
    def test_unauthenticated(self, client, headers):
        response = client.post("/rpc/createUser", json=NEW_USER, headers=headers)

        assert response.status_code == 401
        assert response.get_json()["code"] == "UNAUTHENTICATED"

    def test_invalid_body(self, client):
        response = client.post("/rpc/createUser", json={"email": "a@b.com"}, headers=ADMIN)

        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_ARGUMENT"

    def test_duplicate_is_conflict(self, client, identity_provider):
        identity_provider.add_user("a@b.com")

        response = client.post("/rpc/createUser", json=NEW_USER, headers=ADMIN)

        assert response.status_code == 409
        assert response.get_json()["code"] == "ALREADY_EXISTS"

    def test_request_id_is_echoed(self, client):
        response = client.post(
            "/rpc/createUser", json=NEW_USER, headers={**ADMIN, "X-Request-Id": "rid-123"}
        )

        assert response.headers["X-Request-Id"] == "rid-123"


@pytest.mark.unit
class TestPasswordRecoveryRoute:

    def test_flags_profile(self, client, firestore_client):
        firestore_client.docs("users")["ada@example.com"] = profile_data()

        response = client.post("/rpc/initiatePasswordRecovery", json={"data": {"email": "ada@example.com"}})

        assert response.status_code == 200
        assert response.get_json() == {"result": None}
        assert firestore_client.docs("users")["ada@example.com"]["passwordResetRequested"] is True

    def test_unknown_email(self, client):
        response = client.post("/rpc/initiatePasswordRecovery", json={"email": "nobody@example.com"})

        assert response.status_code == 404
        assert response.get_json()["code"] == "NOT_FOUND"


@pytest.mark.unit
class TestVerificationCodeRoute:

    def test_returns_code(self, client, issuer_session):
        issuer_session.queue.append(make_response(200, {"code": "00012345"}))

        response = client.post("/rpc/getVerificationCode", json={"testType": "confirmed"}, headers=MEMBER)

        assert response.status_code == 200
        assert response.get_json() == {"result": {"code": "00012345"}}

    def test_requires_authentication(self, client, issuer_session):
        response = client.post("/rpc/getVerificationCode", json={"testType": "confirmed"})

        assert response.status_code == 401
        assert issuer_session.calls == []

    def test_upstream_failure_is_internal(self, client, issuer_session):
        issuer_session.queue.append(make_response(500, {"error": "db down"}))

        response = client.post("/rpc/getVerificationCode", json={"testType": "confirmed"}, headers=MEMBER)

        assert response.status_code == 500
        body = response.get_json()
        assert body["code"] == "INTERNAL"
        assert body["details"] == {"status": 500, "upstream_error": "db down"}


@pytest.mark.unit
class TestUnavailableServices:

    def test_missing_services_answer_503(self, portal_config):
        client = create_app(runtime=PortalRuntime(config=portal_config)).test_client()

        for name in ("createUser", "initiatePasswordRecovery", "getVerificationCode"):
            response = client.post(f"/rpc/{name}", json={})
            assert response.status_code == 503
            assert response.get_json()["code"] == "UNAVAILABLE"

    def test_unknown_route_and_method(self, client):
        assert client.post("/rpc/deleteEverything", json={}).status_code == 404
        assert client.get("/rpc/createUser").status_code == 405


@pytest.mark.unit
def test_healthz_reports_runtime(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["email_enabled"] is False
    assert body["token_verifier"] == "enabled"
