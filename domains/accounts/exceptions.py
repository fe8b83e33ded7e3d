"""Error taxonomy shared by the RPC handlers and guards."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class PortalError(Exception):
    """Base class for errors surfaced to RPC callers."""

    code = "INTERNAL"

    def __init__(self, message: str, *, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details) if details else None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class Unauthenticated(PortalError):
    code = "UNAUTHENTICATED"


class PermissionDenied(PortalError):
    code = "PERMISSION_DENIED"


class InvalidArgument(PortalError):
    code = "INVALID_ARGUMENT"


class AlreadyExists(PortalError):
    code = "ALREADY_EXISTS"


class NotFound(PortalError):
    code = "NOT_FOUND"


class Internal(PortalError):
    code = "INTERNAL"


class MalformedProfileError(ValueError):
    """Raised when a stored profile document does not match the expected shape."""

    def __init__(self, message: str, *, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields
