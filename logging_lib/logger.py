"""Structured logging facade."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from contextvars import ContextVar, Token
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .config import LoggingSettings, get_settings
from .redaction import RedactionRegistry, build_registry
from .schema import build_log_record
from .sinks.memory import InMemorySink
from .sinks.stdout import StdoutSink


_CONTEXT: ContextVar[Mapping[str, Any]] = ContextVar("logging_lib_context", default={})

_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


class StructuredLogger:
    """Structured logger for the logging library."""

    def __init__(self, name: str, manager: "LoggerManager") -> None:
        self._name = name
        self._manager = manager

    def debug(self, message: str, **fields: Any) -> None:
        self._log("DEBUG", message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log("INFO", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log("WARNING", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log("ERROR", message, **fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._log("CRITICAL", message, **fields)

    def _log(self, level: str, message: str, **fields: Any) -> None:
        manager = self._manager
        settings = manager.settings

        if _LEVELS[level] < _LEVELS.get(settings.level, 20):
            return

        runtime_context = dict(_CONTEXT.get())

        explicit_context = fields.pop("context", {}) or {}
        if explicit_context:
            runtime_context.update(explicit_context)

        record = build_log_record(
            level=level,
            message=message,
            settings=settings,
            component=self._name,
            context=runtime_context,
            **fields,
        )
        sanitized = manager.redactor.apply(record)

        manager.emit(sanitized)


class LoggerManager:
    """Owns the configured sinks and hands out named loggers."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._loggers: Dict[str, StructuredLogger] = {}
        self._settings: LoggingSettings | None = None
        self._sinks: List[Any] = []
        self._redactor: Optional[RedactionRegistry] = None

    def configure(self, settings: LoggingSettings) -> None:
        with self._lock:
            self._settings = settings
            self._loggers.clear()

            sinks: List[Any] = []
            for sink_name in settings.sinks:
                name = sink_name.strip().lower()

                if name == "stdout":
                    sinks.append(StdoutSink())

                elif name == "memory":
                    sinks.append(InMemorySink())

            if not sinks:
                sinks.append(StdoutSink())

            self._sinks = sinks
            self._redactor = build_registry(settings.redacted_fields)

    @property
    def settings(self) -> LoggingSettings:
        settings = self._settings

        if settings is None:
            settings = get_settings()
            self.configure(settings)

        return settings

    @property
    def redactor(self) -> RedactionRegistry:
        if self._redactor is None:
            self.configure(self.settings)
        assert self._redactor is not None
        return self._redactor

    @property
    def sinks(self) -> List[Any]:
        return list(self._sinks)

    def emit(self, record: Mapping[str, Any]) -> None:
        for sink in self._sinks:
            try:
                sink.emit(record)
            except Exception as exc:  # pragma: no cover - sink failures never break callers
                sys.stderr.write(f"logging_lib sink {type(sink).__name__} failed: {exc}\n")

    def get_logger(self, name: str) -> StructuredLogger:
        with self._lock:
            logger = self._loggers.get(name)

            if logger is None:
                logger = StructuredLogger(name, self)
                self._loggers[name] = logger

            return logger

    def reset(self) -> None:
        with self._lock:
            self._loggers.clear()
            self._settings = None
            self._sinks = []
            self._redactor = None


_MANAGER = LoggerManager()


def configure_manager(settings: LoggingSettings) -> None:
    _MANAGER.configure(settings)


def get_logger(name: str) -> StructuredLogger:
    """Get a logger with a given name."""

    return _MANAGER.get_logger(name)


@contextmanager
def logger_context(**context: Any):
    """Context manager for temporary context variables."""

    token = push_context(**context)
    try:
        yield
    finally:
        pop_context(token)


def reset_loggers() -> None:
    _MANAGER.reset()


def memory_records() -> List[Mapping[str, Any]]:
    """Records captured by the in-memory sink, if one is configured."""

    for sink in _MANAGER.sinks:
        if isinstance(sink, InMemorySink):
            return list(sink.records)
    return []


def push_context(**context: Any) -> Token:
    current = dict(_CONTEXT.get())
    current.update(context)
    return _CONTEXT.set(current)


def pop_context(token: Token) -> None:
    _CONTEXT.reset(token)


def get_context() -> Mapping[str, Any]:
    return dict(_CONTEXT.get())


def clear_context() -> None:
    _CONTEXT.set({})
