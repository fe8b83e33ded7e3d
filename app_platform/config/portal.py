"""Portal service configuration management."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

TEST_ENVIRONMENTS = frozenset({"test"})


def _bool_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float_env(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Auth0Config:
    """Identity provider settings (Management API + access token checks)."""

    domain: Optional[str] = None
    mgmt_client_id: Optional[str] = None
    mgmt_client_secret: Optional[str] = None
    mgmt_audience: Optional[str] = None
    connection: str = "Username-Password-Authentication"
    connection_id: Optional[str] = None
    timeout_s: float = 5.0
    retries: int = 2
    backoff_base_ms: int = 100
    backoff_max_ms: int = 1000
    api_audience: Optional[str] = None
    claim_namespace: str = "https://portal.example/"
    jwks_cache_ttl_s: int = 3600
    rps: float = 5.0
    burst: int = 10

    @property
    def base_url(self) -> Optional[str]:
        if not self.domain:
            return None
        domain = self.domain.strip().rstrip("/")
        if not domain.startswith("http"):
            domain = f"https://{domain}"
        return f"{domain}/"

    @property
    def issuer(self) -> Optional[str]:
        return self.base_url

    @property
    def mgmt_enabled(self) -> bool:
        return all([self.base_url, self.mgmt_client_id, self.mgmt_client_secret])


@dataclass
class SmtpConfig:
    """Outbound transactional email settings."""

    host: Optional[str] = None
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    from_email: str = "noreply@covidwatch.org"
    timeout_s: float = 15.0


@dataclass
class VerificationIssuerConfig:
    """External verification-code issuing server."""

    url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_s: float = 10.0

    @property
    def issue_url(self) -> Optional[str]:
        if not self.url:
            return None
        base = self.url if self.url.endswith("/") else f"{self.url}/"
        return f"{base}api/issue"


@dataclass
class PortalConfig:
    """Explicit configuration passed to every portal service at construction."""

    environment: str = "local"
    client_url: str = "http://localhost:3000"
    trigger_secret: Optional[str] = None
    support_email: str = "support@covidwatch.org"

    # Firestore
    gcp_project_id: Optional[str] = None
    firestore_emulator_host: Optional[str] = None
    users_collection: str = "users"
    organizations_collection: str = "organizations"
    user_images_collection: str = "userImages"

    auth0: Auth0Config = field(default_factory=Auth0Config)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    verification: VerificationIssuerConfig = field(default_factory=VerificationIssuerConfig)

    @property
    def is_test_environment(self) -> bool:
        return self.environment.strip().lower() in TEST_ENVIRONMENTS

    @property
    def email_enabled(self) -> bool:
        """Email is never sent from test environments."""

        return not self.is_test_environment

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "PortalConfig":
        """Load configuration from environment variables."""

        source = env if env is not None else os.environ
        logger.info("Loading portal configuration from environment variables")
        return cls(
            environment=source.get("PORTAL_ENV", "local"),
            client_url=source.get("PORTAL_CLIENT_URL", "http://localhost:3000"),
            trigger_secret=source.get("PORTAL_TRIGGER_SECRET"),
            support_email=source.get("PORTAL_SUPPORT_EMAIL", "support@covidwatch.org"),
            gcp_project_id=source.get("GOOGLE_CLOUD_PROJECT"),
            firestore_emulator_host=source.get("FIRESTORE_EMULATOR_HOST"),
            auth0=Auth0Config(
                domain=source.get("AUTH0_DOMAIN"),
                mgmt_client_id=source.get("AUTH0_MGMT_CLIENT_ID"),
                mgmt_client_secret=source.get("AUTH0_MGMT_CLIENT_SECRET"),
                mgmt_audience=source.get("AUTH0_MGMT_AUDIENCE"),
                connection=source.get("AUTH0_CONNECTION", "Username-Password-Authentication"),
                connection_id=source.get("AUTH0_CONNECTION_ID"),
                timeout_s=_float_env(source.get("AUTH0_MGMT_TIMEOUT_S"), 5.0),
                retries=_int_env(source.get("AUTH0_MGMT_RETRIES"), 2),
                api_audience=source.get("AUTH0_API_AUDIENCE"),
                claim_namespace=source.get("AUTH0_CLAIM_NAMESPACE", "https://portal.example/"),
                jwks_cache_ttl_s=_int_env(source.get("AUTH0_JWKS_TTL_S"), 3600),
            ),
            smtp=SmtpConfig(
                host=source.get("SMTP_HOST"),
                port=_int_env(source.get("SMTP_PORT"), 587),
                username=source.get("SMTP_USERNAME"),
                password=source.get("SMTP_PASSWORD"),
                use_tls=_bool_env(source.get("SMTP_USE_TLS"), True),
                from_email=source.get("MAIL_FROM", "noreply@covidwatch.org"),
            ),
            verification=VerificationIssuerConfig(
                url=source.get("VERIFICATION_SERVER_URL"),
                api_key=source.get("VERIFICATION_SERVER_KEY"),
                timeout_s=_float_env(source.get("VERIFICATION_TIMEOUT_S"), 10.0),
            ),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "PortalConfig":
        """Load configuration from a JSON file, falling back to defaults."""

        try:
            logger.info("Loading portal configuration from file: %s", config_path)
            with open(config_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
            return cls.from_mapping(data)
        except FileNotFoundError:
            logger.warning("Portal config file not found: %s, using defaults", config_path)
            return cls()
        except (ValueError, TypeError) as exc:
            logger.error("Error loading portal config from %s: %s", config_path, exc)
            return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PortalConfig":
        nested = {
            "auth0": Auth0Config,
            "smtp": SmtpConfig,
            "verification": VerificationIssuerConfig,
        }
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown portal config key: %s", key)
                continue
            if key in nested and isinstance(value, Mapping):
                kwargs[key] = nested[key](**dict(value))
            else:
                kwargs[key] = value
        return cls(**kwargs)

    def validate(self) -> list[str]:
        """Return configuration warnings; never raises."""

        warnings: list[str] = []
        if not self.auth0.mgmt_enabled:
            warnings.append("Auth0 management credentials missing; identity operations will fail")
        if not self.auth0.api_audience:
            warnings.append("AUTH0_API_AUDIENCE missing; every RPC caller is unauthenticated")
        if not self.trigger_secret:
            warnings.append("PORTAL_TRIGGER_SECRET missing; trigger webhooks will be rejected")
        if not self.verification.issue_url or not self.verification.api_key:
            warnings.append("Verification server URL or key missing")
        if self.email_enabled and not self.smtp.host:
            warnings.append("SMTP host missing while email is enabled")

        for message in warnings:
            logger.warning(message)
        logger.info("Portal configuration validation completed", extra={"warnings": len(warnings)})
        return warnings
