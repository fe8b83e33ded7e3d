"""Portal service composition root.

Entry points:
    - :func:`create_app` constructs and wires a Flask application instance.
    - :func:`bootstrap_runtime` builds the adapters and services from a
      :class:`PortalConfig`.
    - :func:`register_healthcheck` exposes a lightweight readiness endpoint.

All runtime state is carried inside the Flask application; no module-level
singletons are required, so the service is safe to run under Gunicorn or
Cloud Run with several worker processes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import requests

from flask import Flask, jsonify, request

from adapters.db.firestore import FirestoreServiceFactory
from adapters.mail import SmtpMailer
from adapters.providers import Auth0IdentityProvider, Auth0TokenVerifier, IdentityProvider
from adapters.verification import VerificationIssuerClient
from app_platform.config.portal import PortalConfig
from app_platform.errors.api import register_error_handlers
from app_platform.utils.circuit_breaker import CircuitBreaker
from logging_lib import configure as configure_structured_logging, get_logger as get_structured_logger
from logging_lib.flask_ext import register_flask_context

from apps.portal_service.services import (
    BackgroundDispatcher,
    ConsistencyService,
    NotificationService,
    PropagationService,
    ProvisioningService,
    RecoveryService,
    VerificationService,
)

logger = get_structured_logger("portal.main")


DEFAULT_CONFIG_PATH = os.getenv("PORTAL_CONFIG_PATH")


@dataclass(slots=True)
class PortalRuntime:
    """Container for the portal service runtime dependencies."""

    config: PortalConfig
    identity_provider: Optional[IdentityProvider] = None
    token_verifier: Optional[Auth0TokenVerifier] = None
    firestore_factory: Optional[FirestoreServiceFactory] = None
    http_session: Optional[requests.Session] = None
    notifications: Optional[NotificationService] = None
    provisioning_service: Optional[ProvisioningService] = None
    recovery_service: Optional[RecoveryService] = None
    verification_service: Optional[VerificationService] = None
    consistency_service: Optional[ConsistencyService] = None
    propagation_service: Optional[PropagationService] = None


def load_config(config_path: Optional[str] = None) -> PortalConfig:
    path = config_path or DEFAULT_CONFIG_PATH
    config = PortalConfig.from_file(path) if path else PortalConfig.from_env()
    config.validate()
    return config


def create_app(
    config: Optional[PortalConfig] = None,
    *,
    config_path: Optional[str] = None,
    runtime: Optional[PortalRuntime] = None,
) -> Flask:
    """Construct the portal Flask application.

    Parameters
    ----------
    config:
        Explicit configuration; loaded from ``config_path`` or the environment
        when omitted.
    runtime:
        Pre-built dependencies (tests pass in-memory doubles here).
    """

    if runtime is not None:
        config = runtime.config
    elif config is None:
        config = load_config(config_path)

    logging.basicConfig(level=logging.INFO)
    configure_structured_logging(service="portal", env=config.environment)
    logger.info("Creating portal service application", environment=config.environment)

    app = Flask(__name__)
    register_flask_context(app, service="portal")
    register_error_handlers(app)

    runtime = runtime or bootstrap_runtime(app, config)
    app.config.setdefault("PORTAL_RUNTIME", runtime)

    register_healthcheck(app, runtime)
    _register_request_hooks(app, runtime)
    _register_blueprints(app)

    return app


def bootstrap_runtime(app: Flask, config: PortalConfig) -> PortalRuntime:
    """Initialize adapters and services for the portal."""

    http_session = requests.Session()
    http_session.headers.update({"User-Agent": "permission-portal/1.0"})

    mgmt_breaker = CircuitBreaker(failure_threshold=5, window_seconds=30, half_open_after_s=15)
    provider = Auth0IdentityProvider(config.auth0, http_session, breaker=mgmt_breaker)
    if not provider.enabled:
        logger.warning("Auth0 management credentials incomplete; identity calls will fail")

    token_verifier: Optional[Auth0TokenVerifier] = None
    if config.auth0.issuer and config.auth0.api_audience:
        try:
            token_verifier = Auth0TokenVerifier(
                issuer=config.auth0.issuer,
                audience=config.auth0.api_audience,
                claim_namespace=config.auth0.claim_namespace,
                jwks_cache_ttl_s=config.auth0.jwks_cache_ttl_s,
            )
        except ValueError as exc:
            logger.error("Token verifier initialization failed", error=str(exc))

    firestore_factory: Optional[FirestoreServiceFactory] = None
    profiles = organizations = user_images = None
    try:
        firestore_factory = FirestoreServiceFactory(config=config)
        profiles = firestore_factory.get_profile_service()
        organizations = firestore_factory.get_organization_service()
        user_images = firestore_factory.get_user_images_service()
    except Exception as exc:  # noqa: BLE001
        logger.error("Firestore initialization failed", error=str(exc))
        firestore_factory = None

    notifications = NotificationService(
        config,
        SmtpMailer(config.smtp),
        provider,
        dispatcher=BackgroundDispatcher(),
    )

    runtime = PortalRuntime(
        config=config,
        identity_provider=provider,
        token_verifier=token_verifier,
        firestore_factory=firestore_factory,
        http_session=http_session,
        notifications=notifications,
        verification_service=VerificationService(
            VerificationIssuerClient(config.verification, http_session)
        ),
    )

    if firestore_factory is not None:
        runtime.provisioning_service = ProvisioningService(provider, profiles, user_images, notifications)
        runtime.recovery_service = RecoveryService(profiles, notifications)
        runtime.consistency_service = ConsistencyService(provider, profiles, organizations)
        runtime.propagation_service = PropagationService(provider, profiles)

    logger.info(
        "Portal runtime initialized",
        environment=config.environment,
        email_enabled=config.email_enabled,
        firestore_enabled=firestore_factory is not None,
        token_verifier=token_verifier is not None,
        auth0_mgmt=provider.enabled,
    )

    return runtime


def register_healthcheck(app: Flask, runtime: PortalRuntime) -> None:
    """Expose a simple readiness endpoint."""

    @app.route("/healthz", methods=["GET"])
    def _healthcheck():
        status = {
            "status": "ok",
            "environment": runtime.config.environment,
            "email_enabled": runtime.config.email_enabled,
            "firestore": "enabled" if runtime.firestore_factory else "disabled",
            "token_verifier": "enabled" if runtime.token_verifier else "disabled",
        }
        return jsonify(status), 200


def _register_request_hooks(app: Flask, runtime: PortalRuntime) -> None:
    """Attach request lifecycle hooks so blueprints can pull dependencies."""

    @app.before_request
    def _attach_runtime_to_request() -> None:
        request.portal_config = runtime.config
        request.trigger_secret = runtime.config.trigger_secret
        request.token_verifier = runtime.token_verifier
        request.provisioning_service = runtime.provisioning_service
        request.recovery_service = runtime.recovery_service
        request.verification_service = runtime.verification_service
        request.consistency_service = runtime.consistency_service
        request.propagation_service = runtime.propagation_service


def _register_blueprints(app: Flask) -> None:
    from apps.portal_service.http.rpc_routes import rpc_bp  # noqa: WPS433
    from apps.portal_service.http.trigger_routes import trigger_bp  # noqa: WPS433

    app.register_blueprint(rpc_bp)
    app.register_blueprint(trigger_bp)


def main() -> None:  # pragma: no cover - CLI entrypoint
    app = create_app()
    port = int(os.getenv("PORT", os.getenv("PORTAL_SERVICE_PORT", "8080")))
    host = os.getenv("PORTAL_SERVICE_HOST", "0.0.0.0")
    logger.info("Starting portal service", host=host, port=port)
    app.run(host=host, port=port, debug=False)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
