"""Transactional email for the portal, sent off the request path."""

from __future__ import annotations

import html
import logging
import threading
from typing import Any, Callable, Optional

from adapters.mail import OutboundEmail, SmtpMailer
from adapters.providers import IdentityProvider
from app_platform.config.portal import PortalConfig
from logging_lib import carry_context

from ._logfields import email_hash

logger = logging.getLogger(__name__)

_STYLE = 'style="font-family: Montserrat, Arial, Helvetica, sans-serif;font-size:18px;color: #585858;"'


class BackgroundDispatcher:
    """Run fire-and-forget jobs on daemon threads.

    Job failures are logged and never reach the caller that submitted them.
    The submitting request's logging context travels with the job.
    """

    def submit(self, job: Callable[..., Any], *args: Any, name: str = "notification", **kwargs: Any) -> None:
        thread = threading.Thread(
            target=carry_context(self._run, job=name),
            args=(job, name, args, kwargs),
            name=f"portal-{name}",
            daemon=True,
        )
        thread.start()

    @staticmethod
    def _run(job: Callable[..., Any], name: str, args: tuple, kwargs: dict) -> None:
        try:
            job(*args, **kwargs)
        except Exception:
            logger.exception("Background job failed", extra={"job": name})


class InlineDispatcher(BackgroundDispatcher):
    """Run jobs synchronously in the submitting thread (CLI and tests)."""

    def submit(self, job: Callable[..., Any], *args: Any, name: str = "notification", **kwargs: Any) -> None:
        self._run(job, name, args, kwargs)


def render_new_user_email(
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    sign_in_url: str,
    support_email: str,
) -> OutboundEmail:
    e = html.escape
    body = f"""<!DOCTYPE html>
<p {_STYLE}>{e(first_name)} {e(last_name)},</p>
<p {_STYLE}>You are receiving this email because you were added as a new member of Covid Watch by the Account Administrator.</p>
<p {_STYLE}><b>Your user name:</b> {e(email)}<br />  <b>Your temporary password:</b> {e(password)}</p>
<p {_STYLE}>Please click the following link or copy and paste it into your browser to sign in to your new account:</p>
<p {_STYLE}><a href="{e(sign_in_url)}">Sign In</a></p>
<p {_STYLE}>If you received this message in error, you can safely ignore it.</p>
<p {_STYLE}>If you have questions, please email {e(support_email)}.</p>
<p {_STYLE}>Thank you,<br />Covid Watch Team</p>"""
    text = (
        f"{first_name} {last_name},\n\n"
        "You were added as a new member of Covid Watch by the Account Administrator.\n"
        f"User name: {email}\nTemporary password: {password}\n"
        f"Sign in: {sign_in_url}\n\n"
        f"If you have questions, please email {support_email}.\n"
    )
    return OutboundEmail(to=email, subject="Welcome to the Covid Watch Portal", html=body, text=text)


def render_password_recovery_email(*, email: str, link: str) -> OutboundEmail:
    e = html.escape
    body = f"""<!DOCTYPE html>
<p {_STYLE}>You are receiving this message because you requested a password reset for the Covid Watch Portal account associated with this email address.</p>
<p {_STYLE}>Please click the following link or copy and paste it into your browser to reset your account password:</p>
<p {_STYLE}><a href="{e(link)}">Recover Account</a></p>
<p {_STYLE}>If you received this message in error, you can safely ignore it.</p>
<p {_STYLE}>Thank you,<br />Covid Watch Team</p>"""
    text = (
        "You requested a password reset for the Covid Watch Portal account associated with this email address.\n"
        f"Recover your account: {link}\n"
    )
    return OutboundEmail(to=email, subject="Password Recovery Requested", html=body, text=text)


class NotificationService:
    """Queue onboarding and recovery email; disabled in test environments."""

    def __init__(
        self,
        config: PortalConfig,
        mailer: SmtpMailer,
        provider: IdentityProvider,
        *,
        dispatcher: Optional[BackgroundDispatcher] = None,
    ) -> None:
        self._config = config
        self._mailer = mailer
        self._provider = provider
        self._dispatcher = dispatcher or BackgroundDispatcher()

    @property
    def enabled(self) -> bool:
        return self._config.email_enabled

    def send_new_user_email(self, *, email: str, password: str, first_name: str, last_name: str) -> bool:
        """Queue the onboarding email; returns False when email is disabled."""

        if not self.enabled:
            logger.warning("Skipping new-user email", extra={"environment": self._config.environment})
            return False

        message = render_new_user_email(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            sign_in_url=self._config.client_url,
            support_email=self._config.support_email,
        )
        self._dispatcher.submit(self._deliver, message, "new_user", name="new-user-email")
        return True

    def send_password_recovery_email(self, email: str) -> bool:
        """Queue link generation plus delivery; returns False when email is disabled."""

        if not self.enabled:
            logger.warning("Skipping password recovery email", extra={"environment": self._config.environment})
            return False

        self._dispatcher.submit(self._recover, email, name="password-recovery-email")
        return True

    def _recover(self, email: str) -> None:
        link = self._provider.generate_sign_in_link(email, self._config.client_url)
        self._deliver(render_password_recovery_email(email=email, link=link), "password_recovery")

    def _deliver(self, message: OutboundEmail, kind: str) -> None:
        self._mailer.send(message)
        logger.info("Email sent", extra={"kind": kind, "email_hash": email_hash(message.to)})
