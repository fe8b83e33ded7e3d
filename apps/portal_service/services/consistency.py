"""Identity-created handler: an identity may only live with a valid profile."""

from __future__ import annotations

import logging
from typing import Optional

from adapters.db.firestore import FirestoreError, OrganizationRepository, ProfileRepository
from adapters.providers import IdentityProvider, IdentityProviderError
from domains.accounts.sync import parse_profile, plan_identity_created

from ._logfields import email_hash
from .saga import ActionRunner, SyncOutcome, SyncResult

logger = logging.getLogger(__name__)


class ConsistencyService:
    """Delete identities that were not pre-authorized by a profile document.

    The handler recomputes from current store state on every delivery, so a
    redelivered event for an identity that is already gone is a no-op.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        profiles: ProfileRepository,
        organizations: OrganizationRepository,
    ) -> None:
        self._provider = provider
        self._profiles = profiles
        self._organizations = organizations
        self._runner = ActionRunner(provider, profiles)

    def handle_identity_created(self, uid: str, email: Optional[str] = None) -> SyncResult:
        log_extra = {"uid": uid}

        try:
            identity = self._provider.get_user(uid)
        except IdentityProviderError as exc:
            logger.error("Identity lookup failed", extra={**log_extra, "error": str(exc)})
            return SyncResult(SyncOutcome.FAILED, error=str(exc))

        if identity is None:
            logger.info("Identity already gone; nothing to enforce", extra=log_extra)
            return SyncResult(SyncOutcome.SKIPPED, detail="identity_missing")

        if not identity.email and email:
            identity.email = email
        join_key = identity.join_key
        log_extra["email_hash"] = email_hash(join_key)

        raw_profile = None
        organization_exists = None
        try:
            if join_key is not None:
                raw_profile = self._profiles.get_raw(join_key)
            profile = parse_profile(join_key, raw_profile) if join_key else None
            if profile is not None:
                organization_exists = self._organizations.exists(profile.organization_id)
        except FirestoreError as exc:
            logger.error("Profile store read failed; leaving identity in place", extra={**log_extra, "error": str(exc)})
            return SyncResult(SyncOutcome.FAILED, error=str(exc))

        plan = plan_identity_created(identity, raw_profile, organization_exists)

        if not plan.accepted:
            logger.error(
                "Rejecting identity without a valid profile",
                extra={**log_extra, "violation": plan.violation.value, "detail": plan.detail},
            )

        applied, error = self._runner.run(plan.actions)

        if error is not None:
            return SyncResult(SyncOutcome.INCOMPLETE, violation=plan.violation, applied=applied, error=error)
        if not plan.accepted:
            return SyncResult(SyncOutcome.REJECTED, violation=plan.violation, applied=applied, detail=plan.detail)
        if not applied:
            return SyncResult(SyncOutcome.UNCHANGED)

        logger.info("Identity claims synchronized", extra={**log_extra, "applied": [a.value for a in applied]})
        return SyncResult(SyncOutcome.APPLIED, applied=applied)
