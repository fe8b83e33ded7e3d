"""Hand the caller's logging context to work that runs on another thread.

``contextvars`` do not follow a ``threading.Thread`` target, so notification
jobs snapshot the request scope before they are queued and re-enter it when
they run.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

from .logger import get_context, pop_context, push_context

T = TypeVar("T")


def capture_context(extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return {**get_context(), **(extra or {})}


def run_with_context(context: Mapping[str, Any], func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call ``func`` inside a scope holding ``context``; the scope is dropped afterwards."""

    scope = push_context(**context)
    try:
        return func(*args, **kwargs)
    finally:
        pop_context(scope)


def carry_context(func: Callable[..., T], **extra: Any) -> Callable[..., T]:
    """Bind the current context (plus ``extra``) to ``func`` for a later call."""

    snapshot = capture_context(extra)

    def _carried(*args: Any, **kwargs: Any) -> T:
        return run_with_context(snapshot, func, *args, **kwargs)

    return _carried
