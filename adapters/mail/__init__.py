"""Transactional email delivery."""

from .smtp import MailDeliveryError, OutboundEmail, SmtpMailer

__all__ = ["MailDeliveryError", "OutboundEmail", "SmtpMailer"]
