"""Firestore repository for organizations (existence checks only)."""

from __future__ import annotations

from typing import Any

from .base import BaseRepository


class OrganizationRepository(BaseRepository):
    def __init__(self, client: Any, collection_name: str = "organizations", **kwargs: Any):
        super().__init__(client, collection_name, **kwargs)

    def exists(self, organization_id: str) -> bool:
        """True when ``organizations/{organization_id}`` exists."""

        if not organization_id or "/" in organization_id:
            return False
        try:
            doc = self._execute_with_retry(
                "get organization", lambda: self._document(organization_id).get()
            )
        except Exception as exc:  # noqa: BLE001
            self._handle_firestore_error("get organization", exc)

        return bool(doc.exists)


__all__ = ["OrganizationRepository"]
