"""Service layer for the portal: RPC operations and store-sync triggers."""

from __future__ import annotations

from .consistency import ConsistencyService
from .notifications import BackgroundDispatcher, InlineDispatcher, NotificationService
from .propagation import PropagationService
from .provisioning import ProvisioningService, generate_password
from .reconciliation import ReconciliationService, SweepReport
from .recovery import RecoveryService
from .saga import SyncOutcome, SyncResult
from .verification import VerificationService

__all__ = [
    "BackgroundDispatcher",
    "ConsistencyService",
    "InlineDispatcher",
    "NotificationService",
    "PropagationService",
    "ProvisioningService",
    "ReconciliationService",
    "RecoveryService",
    "SweepReport",
    "SyncOutcome",
    "SyncResult",
    "VerificationService",
    "generate_password",
]
