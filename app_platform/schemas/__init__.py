"""Shared schema helpers used across portal services."""

from .base import (
    BaseSchema,
    SchemaValidationError,
    ensure_email,
    optional_int,
    optional_iso_date,
    optional_str,
    require_bool,
    require_non_empty_str,
    require_str,
)

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
