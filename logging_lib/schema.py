"""Shape of the JSON lines the portal writes.

Every record carries ``schema_version``, ``ts``, ``level``, ``service``,
``env``, ``message`` and ``component`` at the top level, call-site fields
beside them, and the bound scope under ``context``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from .config import LoggingSettings

SCHEMA_VERSION = 1

_ENVELOPE = ("schema_version", "ts", "level", "service", "env", "message")


def build_log_record(
    *,
    level: str,
    message: str,
    settings: LoggingSettings,
    component: str,
    context: Mapping[str, Any] | None = None,
    **fields: Any,
) -> Dict[str, Any]:
    stamp = datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    record: Dict[str, Any] = dict(fields)
    record.update(
        schema_version=SCHEMA_VERSION,
        ts=stamp,
        level=level,
        service=settings.service,
        env=settings.env,
        message=message,
        component=component,
        context={"component": component, **(context or {})},
    )

    absent = [name for name in _ENVELOPE if record.get(name) is None]
    if absent:
        raise ValueError(f"log record is missing {', '.join(absent)}")

    _clip_strings(record, settings.max_field_length, settings.truncate_suffix)
    if _size(record) > settings.payload_limit_bytes:
        # Oversized scopes collapse to the component so the line still routes.
        record["context"] = {"component": component}
        record["context_truncated"] = True
    return record


def _clip_strings(record: Dict[str, Any], limit: int, suffix: str) -> None:
    if limit <= 0:
        return

    def clip(value: Any) -> Any:
        if isinstance(value, str) and len(value) > limit:
            return value[:limit] + suffix
        return value

    for key, value in list(record.items()):
        if isinstance(value, Mapping):
            record[key] = {k: clip(v) for k, v in value.items()}
        else:
            record[key] = clip(value)


def _size(record: Mapping[str, Any]) -> int:
    return len(json.dumps(record, ensure_ascii=False, default=str).encode("utf-8"))
