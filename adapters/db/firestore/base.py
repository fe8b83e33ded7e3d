"""Base classes and interfaces for the Firestore data access layer."""

import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, TypeVar

from google.api_core.exceptions import InvalidArgument, NotFound, PermissionDenied

from app_platform.utils.circuit_breaker import CircuitBreaker


logger = logging.getLogger(__name__)

T = TypeVar('T')

# Errors that a retry cannot fix; surfaced immediately and not counted by the breaker
_NON_RETRYABLE = (NotFound, PermissionDenied, InvalidArgument)


@dataclass
class OperationResult(Generic[T]):
    """Result of a database operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class FirestoreError(Exception):
    """Base exception for Firestore operations."""

    def __init__(self, message: str, error_code: str = "FIRESTORE_ERROR", original_error: Optional[Exception] = None):
        super().__init__(message)
        self.error_code = error_code
        self.original_error = original_error


class PermissionError(FirestoreError):
    """Permission denied error."""

    def __init__(self, message: str = "Permission denied", original_error: Optional[Exception] = None):
        super().__init__(message, "PERMISSION_DENIED", original_error)


class NotFoundError(FirestoreError):
    """Resource not found error."""

    def __init__(self, message: str = "Resource not found", original_error: Optional[Exception] = None):
        super().__init__(message, "NOT_FOUND", original_error)


class ValidationError(FirestoreError):
    """Data validation error."""

    def __init__(self, message: str = "Validation failed", original_error: Optional[Exception] = None):
        super().__init__(message, "VALIDATION_ERROR", original_error)


class FirestoreClientBoundary(Protocol):
    """Boundary-first protocol for Firestore-like clients used by repositories."""

    def collection(self, name: str) -> Any: ...


@dataclass
class RetryPolicy:
    """Retry/backoff and time budget settings for repository operations."""

    op_timeout_s: float = 2.0   # soft budget across all attempts
    max_retries: int = 2        # at most 2 retries (3 attempts total)
    backoff_base_s: float = 0.05
    backoff_factor: float = 2.0
    backoff_cap_s: float = 0.5

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        return cls(
            op_timeout_s=float(os.getenv("FS_OP_TIMEOUT_S", "2.0")),
            max_retries=int(os.getenv("FS_MAX_RETRIES", "2")),
            backoff_base_s=float(os.getenv("FS_BACKOFF_BASE_S", "0.05")),
            backoff_factor=float(os.getenv("FS_BACKOFF_FACTOR", "2.0")),
            backoff_cap_s=float(os.getenv("FS_BACKOFF_CAP_S", "0.5")),
        )


class BaseRepository:
    """Base repository over one Firestore collection keyed by document id."""

    def __init__(
        self,
        client: FirestoreClientBoundary,
        collection_name: str,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self._client = client
        self._collection_name = collection_name
        self._collection = client.collection(collection_name)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._policy = retry_policy or RetryPolicy.from_env()
        self._breaker = breaker or CircuitBreaker(
            failure_threshold=int(os.getenv("FS_BREAKER_THRESHOLD", "5")),
            window_seconds=float(os.getenv("FS_BREAKER_WINDOW_S", "30")),
            half_open_after_s=float(os.getenv("FS_BREAKER_RESET_S", "15")),
        )

    @property
    def client(self) -> FirestoreClientBoundary:
        """Firestore client (read-only)."""

        return self._client

    @property
    def collection(self) -> Any:
        """Collection reference (read-only)."""

        return self._collection

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _document(self, doc_id: str) -> Any:
        if not doc_id:
            raise ValidationError(f"Empty document id for collection {self._collection_name}")
        return self._collection.document(doc_id)

    def _handle_firestore_error(self, operation: str, error: Exception) -> None:
        """Convert Firestore errors to repository exceptions and raise them."""

        if isinstance(error, FirestoreError):
            raise error
        if isinstance(error, PermissionDenied):
            self.logger.error(f"Permission denied during {operation}: {error}")
            raise PermissionError(f"Permission denied during {operation}", error)
        elif isinstance(error, NotFound):
            self.logger.info(f"Resource not found during {operation}")
            raise NotFoundError(f"Resource not found during {operation}", error)
        else:
            self.logger.error(f"Unexpected error during {operation}: {error}")
            raise FirestoreError(f"Error during {operation}: {str(error)}", original_error=error)

    def _validate_required_fields(self, data: Dict[str, Any], required_fields: List[str]) -> None:
        """Validate that required fields are present."""

        missing_fields = [field for field in required_fields if field not in data or data[field] is None]
        if missing_fields:
            raise ValidationError(f"Missing required fields: {', '.join(missing_fields)}")

    def _execute_with_retry(self, op_name: str, func: Callable[[], T]) -> T:
        """Execute func with bounded retries and soft time budget under a breaker.

        On budget exhaustion or repeated failures, the last exception is raised
        for the caller to handle via _handle_firestore_error.
        """

        if not self._breaker.allow_call():
            raise FirestoreError(f"Breaker open for operation: {op_name}", error_code="UNAVAILABLE")

        start = time.monotonic()
        attempt = 0
        while True:
            try:
                result = func()
                self._breaker.on_success()

                return result
            except _NON_RETRYABLE:
                self._breaker.on_success()
                raise
            except Exception:
                if (time.monotonic() - start) >= self._policy.op_timeout_s:
                    self._breaker.on_failure()
                    raise

                if attempt >= self._policy.max_retries:
                    self._breaker.on_failure()
                    raise

                # Exponential backoff with full jitter
                sleep_ceiling = min(
                    self._policy.backoff_cap_s,
                    self._policy.backoff_base_s * (self._policy.backoff_factor ** attempt),
                )

                time.sleep(random.uniform(0.0, max(0.0, sleep_ceiling)))
                attempt += 1
