"""Shared base utilities for request/response schemas."""

from __future__ import annotations

import datetime as _dt
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional


class SchemaValidationError(ValueError):
    """Raised when a payload fails schema validation."""

    def __init__(self, message: str, *, errors: Optional[Iterable[str]] = None) -> None:
        detail = "; ".join(errors or [])
        super().__init__(f"{message}: {detail}" if detail else message)
        self.errors = tuple(errors or ())


@dataclass(slots=True)
class BaseSchema:
    """Dataclass base providing convenience helpers."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the schema to a dictionary."""

        return asdict(self)


def require_str(value: Any, field: str) -> str:
    """Require a string field; the value is returned untouched."""

    if not isinstance(value, str):
        raise SchemaValidationError(f"Field '{field}' must be a string")

    return value


def require_non_empty_str(value: Any, field: str) -> str:
    """Require a string with visible content."""

    text = require_str(value, field).strip()
    if not text:
        raise SchemaValidationError(f"Missing required field '{field}'")

    return text


def require_bool(value: Any, field: str) -> bool:
    """Require a strict boolean (integers are rejected)."""

    if not isinstance(value, bool):
        raise SchemaValidationError(f"Field '{field}' must be a boolean")

    return value


def optional_str(value: Any, field: str) -> Optional[str]:
    """Return a trimmed string or None when absent/blank."""

    if value is None:
        return None

    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None

    raise SchemaValidationError(f"Field '{field}' must be a string if provided")


def optional_int(value: Any, field: str) -> Optional[int]:
    """Return an integer or None when absent."""

    if value is None:
        return None

    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaValidationError(f"Field '{field}' must be an integer if provided")

    return value


def optional_iso_date(value: Any, field: str) -> Optional[str]:
    """Validate a ``YYYY-MM-DD`` date and return it unchanged."""

    text = optional_str(value, field)
    if text is None:
        return None

    try:
        _dt.date.fromisoformat(text)
    except ValueError as exc:
        raise SchemaValidationError(f"Field '{field}' must be a YYYY-MM-DD date") from exc

    return text


def _is_email(value: str) -> bool:
    """Check if a value is a plausible email address."""

    if "@" not in value or value.startswith("@") or value.endswith("@"):
        return False

    local, _, domain = value.partition("@")
    if "." not in domain:
        return False

    return all(part.strip() for part in (local, domain))


def ensure_email(value: Any, field: str) -> str:
    """Ensure a value is an email address; returns it trimmed, case preserved."""

    candidate = require_non_empty_str(value, field)

    if not _is_email(candidate):
        raise SchemaValidationError(f"Field '{field}' must be a valid email")

    return candidate


__all__ = [
    "BaseSchema",
    "SchemaValidationError",
    "ensure_email",
    "optional_int",
    "optional_iso_date",
    "optional_str",
    "require_bool",
    "require_non_empty_str",
    "require_str",
]
