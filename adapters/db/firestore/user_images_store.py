"""Firestore repository for per-user image records."""

from __future__ import annotations

from typing import Any

from domains.accounts.models import normalize_email

from .base import BaseRepository, OperationResult


class UserImagesRepository(BaseRepository):
    def __init__(self, client: Any, collection_name: str = "userImages", **kwargs: Any):
        super().__init__(client, collection_name, **kwargs)

    def create_placeholder(self, email: str) -> OperationResult[str]:
        """Create the empty image record a new account starts with."""

        key = normalize_email(email)
        try:
            self._execute_with_retry(
                "create image placeholder", lambda: self._document(key).set({"imageBlob": None})
            )
        except Exception as exc:  # noqa: BLE001
            self._handle_firestore_error("create image placeholder", exc)

        return OperationResult[str](success=True, data=key)


__all__ = ["UserImagesRepository"]
