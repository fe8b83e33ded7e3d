"""Firestore repositories and factories."""

from .base import (  # noqa: F401
    FirestoreError,
    NotFoundError,
    OperationResult,
    PermissionError,
    RetryPolicy,
    ValidationError,
)
from .organization_store import OrganizationRepository  # noqa: F401
from .profile_store import ProfileRepository  # noqa: F401
from .service_factory import FirestoreServiceFactory  # noqa: F401
from .user_images_store import UserImagesRepository  # noqa: F401
