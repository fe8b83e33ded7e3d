"""Account domain: identity/profile models, guards, and sync planners."""

from .exceptions import (
    AlreadyExists,
    Internal,
    InvalidArgument,
    MalformedProfileError,
    NotFound,
    PermissionDenied,
    PortalError,
    Unauthenticated,
)
from .guards import require_admin, require_authenticated
from .models import (
    CallerClaims,
    IdentityClaims,
    IdentityRecord,
    IdentityRecordView,
    ProfileDocument,
    normalize_email,
)

__all__ = [
    "AlreadyExists",
    "CallerClaims",
    "IdentityClaims",
    "IdentityRecord",
    "IdentityRecordView",
    "Internal",
    "InvalidArgument",
    "MalformedProfileError",
    "NotFound",
    "PermissionDenied",
    "PortalError",
    "ProfileDocument",
    "Unauthenticated",
    "normalize_email",
    "require_admin",
    "require_authenticated",
]
