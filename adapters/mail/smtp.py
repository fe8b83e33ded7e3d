"""SMTP delivery for transactional portal email."""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

from app_platform.config.portal import SmtpConfig

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when the SMTP server rejects a message or cannot be reached."""


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    html: str
    text: Optional[str] = None


class SmtpMailer:
    """Send ``OutboundEmail`` messages through the configured SMTP relay."""

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config

    @property
    def from_email(self) -> str:
        return self._config.from_email

    def build_message(self, email: OutboundEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = email.subject
        msg["To"] = email.to
        msg["From"] = self._config.from_email
        msg["Message-ID"] = make_msgid()
        # Plain-text part first so HTML-less clients still get content
        msg.set_content(email.text or "This message requires an HTML-capable mail client.")
        msg.add_alternative(email.html, subtype="html")
        return msg

    def send(self, email: OutboundEmail) -> str:
        """Send one message; returns its Message-ID."""

        cfg = self._config
        if not cfg.host or not cfg.port:
            raise MailDeliveryError("SMTP host and port are required")

        msg = self.build_message(email)

        try:
            context = ssl.create_default_context()
            if cfg.use_tls:
                with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_s) as server:
                    server.ehlo()
                    server.starttls(context=context)
                    server.ehlo()
                    if cfg.username and cfg.password:
                        server.login(cfg.username, cfg.password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP_SSL(cfg.host, cfg.port, context=context, timeout=cfg.timeout_s) as server:
                    if cfg.username and cfg.password:
                        server.login(cfg.username, cfg.password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SmtpMailer: send failed: %s", exc)
            raise MailDeliveryError("Failed to send email via SMTP") from exc

        logger.debug("SmtpMailer: email sent", extra={"subject": email.subject})
        return msg["Message-ID"]
