"""Operator sweep that re-applies every profile projection."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from adapters.db.firestore import ProfileRepository

from .propagation import PropagationService
from .saga import SyncOutcome

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    total: int = 0
    outcomes: Dict[str, int] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {"total": self.total, "outcomes": dict(self.outcomes), "failed": list(self.failed)}


class ReconciliationService:
    """Close gaps left by interrupted propagation (claims set, disabled not)."""

    def __init__(self, profiles: ProfileRepository, propagation: PropagationService) -> None:
        self._profiles = profiles
        self._propagation = propagation

    def sweep(self, *, dry_run: bool = False) -> SweepReport:
        counts: Counter = Counter()
        failed: List[str] = []
        total = 0

        for email, _raw in self._profiles.iter_all():
            total += 1
            if dry_run:
                counts["listed"] += 1
                continue
            result = self._propagation.synchronize(email)
            counts[result.outcome.value] += 1
            if result.outcome in (SyncOutcome.FAILED, SyncOutcome.INCOMPLETE):
                failed.append(email)

        report = SweepReport(total=total, outcomes=dict(counts), failed=failed)
        logger.info("Reconciliation sweep finished", extra={"total": total, "outcomes": report.outcomes})
        return report
