"""Configuration utilities for the logging library."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping


def _comma_tuple(value: str | None, *, default: tuple[str, ...]) -> tuple[str, ...]:
    """Convert a comma-separated string to a tuple."""

    if not value:
        return default

    return tuple(filter(None, (part.strip() for part in value.split(","))))


def _int_env(value: str | None, default: int) -> int:
    if value is None:
        return default

    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class LoggingSettings:
    """Immutable runtime configuration."""

    service: str
    env: str
    level: str
    sinks: tuple[str, ...]
    exclude_routes: tuple[str, ...]
    request_id_header: str
    payload_limit_bytes: int
    max_field_length: int
    truncate_suffix: str
    redacted_fields: tuple[str, ...]

    def with_overrides(self, **kwargs: Any) -> "LoggingSettings":
        return replace(self, **kwargs)


_SETTINGS_LOCK = threading.RLock()
_SETTINGS: LoggingSettings | None = None


def load_settings(env: Mapping[str, str] | None = None) -> LoggingSettings:
    source = env if env is not None else os.environ

    return LoggingSettings(
        service=source.get("LOG_SERVICE_NAME", "permission-portal"),
        env=source.get("LOG_ENV", source.get("PORTAL_ENV", "local")),
        level=source.get("LOG_LEVEL", "INFO").upper(),
        sinks=_comma_tuple(source.get("LOG_SINKS"), default=("stdout",)),
        exclude_routes=_comma_tuple(source.get("LOG_EXCLUDE_ROUTES"), default=("/healthz",)),
        request_id_header=source.get("LOG_REQUEST_ID_HEADER", "X-Request-Id"),
        payload_limit_bytes=_int_env(source.get("LOG_PAYLOAD_LIMIT_BYTES"), 16_384),
        max_field_length=_int_env(source.get("LOG_REDACTION_TRUNCATE_LENGTH"), 1024),
        truncate_suffix=source.get("LOG_REDACTION_TRUNCATE_SUFFIX", "..."),
        redacted_fields=_comma_tuple(
            source.get("LOG_REDACTION_DENYLIST"), default=("password", "link", "api_key")
        ),
    )


def configure_settings(
    settings: LoggingSettings | None = None, **overrides: Any
) -> LoggingSettings:
    with _SETTINGS_LOCK:
        resolved = settings or load_settings()
        if overrides:
            resolved = resolved.with_overrides(**overrides)
        global _SETTINGS
        _SETTINGS = resolved
        return _SETTINGS


def get_settings() -> LoggingSettings:
    with _SETTINGS_LOCK:
        if _SETTINGS is None:
            return configure_settings()
        return _SETTINGS
