"""Password-recovery initiation."""

from __future__ import annotations

import logging
from typing import Any

from adapters.db.firestore import FirestoreError, NotFoundError, ProfileRepository
from app_platform.schemas import SchemaValidationError
from domains.accounts import Internal, InvalidArgument, NotFound

from apps.portal_service.http.schemas import parse_password_recovery

from ._logfields import email_hash
from .notifications import NotificationService

logger = logging.getLogger(__name__)


class RecoveryService:
    def __init__(self, profiles: ProfileRepository, notifications: NotificationService) -> None:
        self._profiles = profiles
        self._notifications = notifications

    def initiate_password_recovery(self, payload: Any) -> None:
        """Flag the profile and queue a single-use sign-in link.

        The flag is committed before any email work; link or delivery
        failures are logged by the notification layer and never reach the
        caller.
        """

        try:
            request = parse_password_recovery(payload)
        except SchemaValidationError as exc:
            raise InvalidArgument("Request body is invalidly formatted.", details={"reason": str(exc)}) from exc

        log_extra = {"email_hash": email_hash(request.email)}
        try:
            self._profiles.mark_password_reset_requested(request.email)
        except NotFoundError as exc:
            logger.info("Password recovery for unknown profile", extra=log_extra)
            raise NotFound("No user exists for this email.") from exc
        except FirestoreError as exc:
            logger.error("Password recovery flag write failed", extra={**log_extra, "error": str(exc)})
            raise Internal("Failed to record the password recovery request.") from exc

        queued = self._notifications.send_password_recovery_email(request.email)
        logger.info("Password recovery requested", extra={**log_extra, "email_queued": queued})
