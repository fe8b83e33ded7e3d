"""Tests for portal configuration loading."""

import pytest

from app_platform.config.portal import PortalConfig


@pytest.mark.unit
class TestPortalConfig:

    def test_from_env(self):
        config = PortalConfig.from_env({
            "PORTAL_ENV": "test",
            "PORTAL_TRIGGER_SECRET": "s",
            "AUTH0_DOMAIN": "https://tenant.example.auth0.com/",
            "AUTH0_MGMT_CLIENT_ID": "id",
            "AUTH0_MGMT_CLIENT_SECRET": "secret",
            "AUTH0_MGMT_RETRIES": "not-a-number",
            "SMTP_PORT": "2525",
            "SMTP_USE_TLS": "false",
            "VERIFICATION_SERVER_URL": "https://issuer.example",
        })

        assert config.is_test_environment is True
        assert config.email_enabled is False
        assert config.auth0.base_url == "https://tenant.example.auth0.com/"
        assert config.auth0.mgmt_enabled is True
        assert config.auth0.retries == 2
        assert config.smtp.port == 2525
        assert config.smtp.use_tls is False
        assert config.verification.issue_url == "https://issuer.example/api/issue"

    def test_environment_match_is_case_insensitive(self):
        assert PortalConfig(environment=" TEST ").email_enabled is False
        assert PortalConfig(environment="production").email_enabled is True

    def test_from_mapping_builds_nested_sections(self):
        config = PortalConfig.from_mapping({
            "client_url": "https://portal.example",
            "smtp": {"host": "smtp.example"},
            "bogus": True,
        })

        assert config.client_url == "https://portal.example"
        assert config.smtp.host == "smtp.example"

    def test_invalid_json_file_falls_back(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        assert PortalConfig.from_file(str(path)).environment == "local"

    def test_validate_lists_missing_pieces(self):
        warnings = PortalConfig(environment="production").validate()

        assert any("Auth0 management" in w for w in warnings)
        assert any("PORTAL_TRIGGER_SECRET" in w for w in warnings)
        assert any("SMTP host" in w for w in warnings)

    def test_validate_quiet_when_complete(self):
        config = PortalConfig.from_env({
            "PORTAL_ENV": "test",
            "PORTAL_TRIGGER_SECRET": "s",
            "AUTH0_DOMAIN": "tenant.example.auth0.com",
            "AUTH0_MGMT_CLIENT_ID": "id",
            "AUTH0_MGMT_CLIENT_SECRET": "secret",
            "AUTH0_API_AUDIENCE": "https://portal.example/api",
            "VERIFICATION_SERVER_URL": "https://issuer.example",
            "VERIFICATION_SERVER_KEY": "k",
        })

        assert config.validate() == []
