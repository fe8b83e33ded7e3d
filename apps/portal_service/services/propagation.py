"""Profile-updated handler: project profile authorization fields onto the identity."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from adapters.db.firestore import FirestoreError, ProfileRepository
from adapters.providers import IdentityProvider, IdentityProviderError
from domains.accounts.exceptions import MalformedProfileError
from domains.accounts.models import ProfileDocument, authorization_fields_changed, normalize_email
from domains.accounts.sync import plan_propagation

from ._logfields import email_hash
from .saga import ActionRunner, SyncOutcome, SyncResult

logger = logging.getLogger(__name__)


class PropagationService:
    """Keep identity claims and the disabled flag in step with the profile.

    The projection always comes from the profile as currently stored, never
    from the event payload, so late or repeated events converge on the
    latest document.
    """

    def __init__(self, provider: IdentityProvider, profiles: ProfileRepository) -> None:
        self._provider = provider
        self._profiles = profiles
        self._runner = ActionRunner(provider, profiles)

    def handle_profile_updated(
        self,
        email: str,
        before: Optional[Mapping[str, Any]],
        after: Optional[Mapping[str, Any]],
    ) -> SyncResult:
        if not authorization_fields_changed(before, after):
            logger.debug("No authorization field changed", extra={"email_hash": email_hash(email)})
            return SyncResult(SyncOutcome.SKIPPED, detail="no_authorization_change")
        return self.synchronize(email)

    def synchronize(self, email: str) -> SyncResult:
        """Re-apply the current profile projection to the matching identity."""

        key = normalize_email(email)
        log_extra = {"email_hash": email_hash(key)}

        try:
            raw = self._profiles.get_raw(key)
        except FirestoreError as exc:
            logger.error("Profile read failed", extra={**log_extra, "error": str(exc)})
            return SyncResult(SyncOutcome.FAILED, error=str(exc))

        if raw is None:
            logger.info("Profile no longer exists; skipping propagation", extra=log_extra)
            return SyncResult(SyncOutcome.SKIPPED, detail="profile_missing")

        try:
            profile = ProfileDocument.from_firestore(key, raw)
        except MalformedProfileError as exc:
            logger.warning("Malformed profile; skipping propagation", extra={**log_extra, "fields": list(exc.fields)})
            return SyncResult(SyncOutcome.SKIPPED, detail="profile_malformed")

        try:
            identity = self._provider.get_user_by_email(key)
        except IdentityProviderError as exc:
            logger.error("Identity lookup failed", extra={**log_extra, "error": str(exc)})
            return SyncResult(SyncOutcome.FAILED, error=str(exc))

        if identity is None:
            logger.info("No identity for profile; skipping propagation", extra=log_extra)
            return SyncResult(SyncOutcome.SKIPPED, detail="identity_missing")

        actions = plan_propagation(identity, profile)
        if not actions:
            return SyncResult(SyncOutcome.UNCHANGED)

        applied, error = self._runner.run(actions)
        if error is not None:
            return SyncResult(SyncOutcome.INCOMPLETE, applied=applied, error=error)

        logger.info(
            "Profile propagated to identity",
            extra={**log_extra, "uid": identity.uid, "applied": [a.value for a in applied]},
        )
        return SyncResult(SyncOutcome.APPLIED, applied=applied)
