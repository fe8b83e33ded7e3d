"""Admin-driven account provisioning (``createUser``)."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Optional

from adapters.db.firestore import FirestoreError, ProfileRepository, UserImagesRepository
from adapters.providers import IdentityProvider, IdentityProviderError, NewIdentity
from app_platform.schemas import SchemaValidationError
from domains.accounts import (
    AlreadyExists,
    CallerClaims,
    IdentityRecordView,
    Internal,
    InvalidArgument,
    PermissionDenied,
    ProfileDocument,
    require_admin,
)

from apps.portal_service.http.schemas import parse_create_user

from ._logfields import email_hash
from .notifications import NotificationService

logger = logging.getLogger(__name__)


def generate_password() -> str:
    """Temporary password: 16 random bytes, hex encoded."""

    return secrets.token_hex(16)


class ProvisioningService:
    """Create a profile document, then the identity it authorizes.

    The profile is written first so the identity-created trigger finds it. A
    failed identity creation leaves the profile behind; provisioning the same
    email again overwrites it.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        profiles: ProfileRepository,
        user_images: UserImagesRepository,
        notifications: NotificationService,
    ) -> None:
        self._provider = provider
        self._profiles = profiles
        self._user_images = user_images
        self._notifications = notifications

    def create_user(self, payload: Any, caller: Optional[CallerClaims]) -> IdentityRecordView:
        admin = require_admin(caller)

        try:
            request = parse_create_user(payload)
        except SchemaValidationError as exc:
            raise InvalidArgument("Request body is invalidly formatted.", details={"reason": str(exc)}) from exc

        if not admin.organization_id:
            raise PermissionDenied("The calling admin is not a member of an organization.")

        profile = ProfileDocument(
            email=request.email,
            organization_id=admin.organization_id,
            first_name=request.first_name,
            last_name=request.last_name,
            is_admin=request.is_admin,
            disabled=False,
            is_first_time_user=True,
        )
        log_extra = {
            "email_hash": email_hash(profile.email),
            "caller_uid": admin.uid,
            "organization_id": admin.organization_id,
        }

        try:
            self._profiles.create(profile)
        except FirestoreError as exc:
            logger.error("Profile write failed", extra={**log_extra, "error": str(exc)})
            raise Internal("Failed to write the user profile.") from exc

        password = request.password or generate_password()

        try:
            record = self._provider.create_user(NewIdentity(email=request.email, password=password))
        except IdentityProviderError as exc:
            logger.warning(
                "Identity creation failed; profile left in place",
                extra={**log_extra, "code": exc.code, "status": exc.status},
            )
            if exc.already_exists:
                raise AlreadyExists(exc.message) from exc
            raise Internal(exc.message) from exc

        try:
            self._user_images.create_placeholder(profile.email)
        except FirestoreError as exc:
            logger.error(
                "User committed but image record missing",
                extra={**log_extra, "uid": record.uid, "error": str(exc)},
            )
            raise Internal("User created but the image record could not be written.") from exc

        self._notifications.send_new_user_email(
            email=request.email,
            password=password,
            first_name=request.first_name,
            last_name=request.last_name,
        )

        logger.info("User provisioned", extra={**log_extra, "uid": record.uid})
        return IdentityRecordView.from_record(record)
