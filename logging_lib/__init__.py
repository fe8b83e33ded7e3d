"""Public API for the structured logging library."""

from __future__ import annotations

from .config import LoggingSettings, configure_settings, get_settings, load_settings
from .context import capture_context, carry_context, run_with_context
from .logger import (
    clear_context,
    configure_manager,
    get_context,
    get_logger,
    logger_context,
    memory_records,
    pop_context,
    push_context,
    reset_loggers,
)

__all__ = [
    "configure",
    "get_logger",
    "logger_context",
    "LoggingSettings",
    "load_settings",
    "get_settings",
    "memory_records",
    "push_context",
    "pop_context",
    "get_context",
    "clear_context",
    "capture_context",
    "carry_context",
    "reset_loggers",
    "run_with_context",
]


def configure(settings: LoggingSettings | None = None, **overrides) -> LoggingSettings:
    """Configure the logging library and its sinks."""

    resolved = configure_settings(settings, **overrides)
    configure_manager(resolved)

    return resolved
