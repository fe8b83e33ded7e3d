"""Outcome types and the action runner shared by the trigger handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from adapters.db.firestore import FirestoreError, ProfileRepository
from adapters.providers import IdentityProvider, IdentityProviderError
from domains.accounts.sync import ActionKind, SyncAction, Violation

from ._logfields import email_hash

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    APPLIED = "applied"          # every planned write succeeded
    UNCHANGED = "unchanged"      # stores already agreed
    REJECTED = "rejected"        # identity removed for violating the profile rules
    SKIPPED = "skipped"          # nothing to act on
    INCOMPLETE = "incomplete"    # a write failed; logged, left for redelivery or a sweep
    FAILED = "failed"            # a read failed; nothing was written


@dataclass
class SyncResult:
    outcome: SyncOutcome
    violation: Optional[Violation] = None
    applied: List[ActionKind] = field(default_factory=list)
    error: Optional[str] = None
    detail: Optional[str] = None

    @property
    def should_retry(self) -> bool:
        return self.outcome is SyncOutcome.FAILED

    def to_dict(self) -> dict:
        payload = {"status": self.outcome.value, "applied": [kind.value for kind in self.applied]}
        if self.violation is not None:
            payload["violation"] = self.violation.value
        if self.error:
            payload["error"] = self.error
        return payload


class ActionRunner:
    """Apply planned actions in order, stopping at the first failed write.

    A failed identity delete therefore never reaches the profile delete that
    follows it, and a failed claims update never reaches the disabled update.
    """

    def __init__(self, provider: IdentityProvider, profiles: ProfileRepository) -> None:
        self._provider = provider
        self._profiles = profiles

    def run(self, actions: Iterable[SyncAction]) -> tuple[List[ActionKind], Optional[str]]:
        applied: List[ActionKind] = []
        for action in actions:
            try:
                self._apply(action)
            except (IdentityProviderError, FirestoreError) as exc:
                logger.error(
                    "Sync action failed",
                    extra={
                        "action": action.kind.value,
                        "uid": action.uid,
                        "email_hash": email_hash(action.email),
                        "error": str(exc),
                    },
                )
                return applied, f"{action.kind.value}: {exc}"
            applied.append(action.kind)
        return applied, None

    def _apply(self, action: SyncAction) -> None:
        if action.kind is ActionKind.DELETE_IDENTITY:
            self._provider.delete_user(action.uid)
        elif action.kind is ActionKind.DELETE_PROFILE:
            self._profiles.delete(action.email)
        elif action.kind is ActionKind.SET_CLAIMS:
            self._provider.set_custom_claims(action.uid, action.claims)
        elif action.kind is ActionKind.SET_DISABLED:
            self._provider.set_disabled(action.uid, bool(action.disabled))
        else:  # pragma: no cover - enum is closed
            raise ValueError(f"Unknown sync action {action.kind}")
