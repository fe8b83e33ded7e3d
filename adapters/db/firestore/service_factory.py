"""Service factory for creating and managing Firestore repositories."""

import logging
from typing import Any, Callable, Dict, Optional

from .client import get_firestore_client
from .organization_store import OrganizationRepository
from .profile_store import ProfileRepository
from .user_images_store import UserImagesRepository

logger = logging.getLogger(__name__)


class FirestoreServiceFactory:
    """
    Manual DI factory for Firestore repositories.
    Boundary-first: only the Firestore client is injectable.
    Lifetimes: default singleton per factory instance.
    """

    def __init__(self, client: Optional[Any] = None, *, config: Optional[Any] = None):
        """Pass a client directly for tests, otherwise a config to build one lazily."""

        self._client = client
        self.config = config
        self._repositories: Dict[str, Any] = {}

    @property
    def client(self) -> Any:
        """Get or create the Firestore client."""

        if self._client is None:
            self._client = get_firestore_client(self.config)
            logger.info("Firestore client initialized")

        return self._client

    def _collection_name(self, attr: str, default: str) -> str:
        return getattr(self.config, attr, None) or default

    def _get_repository(self, key: str, factory: Callable[[Any], Any]) -> Any:
        """Memoize repository instances by key."""

        if key not in self._repositories:
            self._repositories[key] = factory(self.client)

        return self._repositories[key]

    def get_profile_service(self) -> ProfileRepository:
        return self._get_repository(
            'profiles',
            lambda client: ProfileRepository(client, self._collection_name('users_collection', 'users')),
        )

    def get_organization_service(self) -> OrganizationRepository:
        return self._get_repository(
            'organizations',
            lambda client: OrganizationRepository(
                client, self._collection_name('organizations_collection', 'organizations')
            ),
        )

    def get_user_images_service(self) -> UserImagesRepository:
        return self._get_repository(
            'user_images',
            lambda client: UserImagesRepository(
                client, self._collection_name('user_images_collection', 'userImages')
            ),
        )

    def health_check(self) -> Dict[str, Any]:
        """Report whether a client could be constructed, without touching data."""

        try:
            _ = self.client
            return {'status': 'healthy', 'repositories': sorted(self._repositories)}
        except Exception as e:
            logger.error(f"Firestore health check failed: {e}")
            return {'status': 'unhealthy', 'error': str(e)}
