"""Firestore watcher feeding profile changes to the propagation handler.

An alternative to the ``/triggers/profile-updated`` webhook for deployments
that can hold a long-lived listener on the ``users`` collection.
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import Any, Dict, Mapping, Optional

from adapters.db.firestore import FirestoreServiceFactory, ProfileRepository
from adapters.providers import Auth0IdentityProvider
from app_platform.config.portal import PortalConfig
from logging_lib import configure as configure_structured_logging

from apps.portal_service.services import PropagationService, SyncOutcome

logger = logging.getLogger(__name__)


class ProfileWatcher:
    """Track the last seen version of every profile and emit (before, after) pairs.

    The first snapshot delivered by Firestore lists every document as ADDED;
    those only prime the cache.
    """

    def __init__(self, profiles: ProfileRepository, propagation: PropagationService) -> None:
        self._profiles = profiles
        self._propagation = propagation
        self._last_seen: Dict[str, Mapping[str, Any]] = {}
        self._lock = threading.Lock()
        self._watch: Optional[Any] = None

    def start(self) -> None:
        self._watch = self._profiles.watch(self.on_snapshot)
        logger.info("Profile watcher started", extra={"collection": self._profiles.collection_name})

    def stop(self) -> None:
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None
            logger.info("Profile watcher stopped")

    def on_snapshot(self, _docs: Any, changes: Any, _read_time: Any) -> None:
        for change in changes:
            kind = getattr(change.type, "name", str(change.type))
            doc = change.document
            try:
                self.handle_change(kind, doc.id, doc.to_dict() or {})
            except Exception:
                logger.exception("Profile change handling failed", extra={"change": kind})

    def handle_change(self, kind: str, email: str, data: Mapping[str, Any]) -> Optional[SyncOutcome]:
        with self._lock:
            if kind == "REMOVED":
                self._last_seen.pop(email, None)
                return None
            before = self._last_seen.get(email)
            self._last_seen[email] = dict(data)

        if kind != "MODIFIED":
            return None

        result = self._propagation.handle_profile_updated(email, before or {}, data)
        if result.should_retry:
            logger.warning("Propagation could not read its collaborators; left for the reconciliation sweep")
        return result.outcome


def main() -> None:  # pragma: no cover - process entrypoint
    logging.basicConfig(level=logging.INFO)
    config = PortalConfig.from_env()
    config.validate()
    configure_structured_logging(service="portal-worker", env=config.environment)

    factory = FirestoreServiceFactory(config=config)
    profiles = factory.get_profile_service()
    propagation = PropagationService(Auth0IdentityProvider(config.auth0), profiles)

    watcher = ProfileWatcher(profiles, propagation)
    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    signal.signal(signal.SIGINT, lambda *_: stop.set())

    watcher.start()
    stop.wait()
    watcher.stop()


if __name__ == "__main__":  # pragma: no cover - process entrypoint
    main()
