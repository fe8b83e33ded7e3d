"""Firestore repository for profile documents (``users/{email}``)."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from domains.accounts.models import ProfileDocument, normalize_email

from .base import BaseRepository, OperationResult


class ProfileRepository(BaseRepository):
    """Profile documents keyed by lower-cased email."""

    def __init__(self, client: Any, collection_name: str = "users", **kwargs: Any):
        super().__init__(client, collection_name, **kwargs)

    def get_raw(self, email: str) -> Optional[Dict[str, Any]]:
        """Return the stored mapping, or None when no document exists.

        Read failures raise ``FirestoreError`` so callers can tell "absent"
        apart from "unknown".
        """

        key = normalize_email(email)
        try:
            doc = self._execute_with_retry("get profile", lambda: self._document(key).get())
        except Exception as exc:  # noqa: BLE001 - delegated to handler
            self._handle_firestore_error("get profile", exc)

        if not doc.exists:
            return None
        return doc.to_dict() or {}

    def get(self, email: str) -> Optional[ProfileDocument]:
        """Typed read; raises ``MalformedProfileError`` for ill-typed documents."""

        raw = self.get_raw(email)
        if raw is None:
            return None
        return ProfileDocument.from_firestore(email, raw)

    def create(self, profile: ProfileDocument) -> OperationResult[str]:
        """Write (or overwrite) the full profile document."""

        key = profile.email
        payload = profile.to_firestore()
        self._validate_required_fields(payload, ["organizationID", "firstName", "lastName"])
        try:
            self._execute_with_retry("create profile", lambda: self._document(key).set(payload))
        except Exception as exc:  # noqa: BLE001
            self._handle_firestore_error("create profile", exc)

        return OperationResult[str](success=True, data=key)

    def mark_password_reset_requested(self, email: str) -> OperationResult[bool]:
        """Set ``passwordResetRequested``; raises ``NotFoundError`` when absent."""

        key = normalize_email(email)
        try:
            self._execute_with_retry(
                "mark password reset",
                lambda: self._document(key).update({"passwordResetRequested": True}),
            )
        except Exception as exc:  # noqa: BLE001
            self._handle_firestore_error("mark password reset", exc)

        return OperationResult(success=True, data=True)

    def delete(self, email: str) -> OperationResult[bool]:
        key = normalize_email(email)
        try:
            self._execute_with_retry("delete profile", lambda: self._document(key).delete())
        except Exception as exc:  # noqa: BLE001
            self._handle_firestore_error("delete profile", exc)

        return OperationResult(success=True, data=True)

    def iter_all(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """Yield ``(email, raw)`` for every profile document."""

        try:
            docs = self._execute_with_retry("list profiles", lambda: list(self.collection.stream()))
        except Exception as exc:  # noqa: BLE001
            self._handle_firestore_error("list profiles", exc)

        for doc in docs:
            yield doc.id, doc.to_dict() or {}

    def watch(self, callback: Callable[[Any, Any, Any], None]) -> Any:
        """Subscribe to collection snapshots; returns the watch handle."""

        return self.collection.on_snapshot(callback)


__all__ = ["ProfileRepository"]
