"""Configuration utilities and loaders."""

from .portal import Auth0Config, PortalConfig, SmtpConfig, VerificationIssuerConfig

__all__ = [
    "Auth0Config",
    "PortalConfig",
    "SmtpConfig",
    "VerificationIssuerConfig",
]
