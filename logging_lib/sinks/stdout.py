"""Stdout sink emitting NDJSON for Cloud Run ingestion."""

from __future__ import annotations

import json
import sys
import threading
from typing import Mapping


class StdoutSink:
    """Write structured records to stdout as NDJSON."""

    def __init__(self, stream=None) -> None:
        self._stream = stream or sys.stdout
        self._lock = threading.Lock()

    def emit(self, record: Mapping[str, object]) -> None:
        payload = dict(record)
        payload.setdefault("severity", payload.get("level", "INFO"))

        line = json.dumps(payload, separators=(",", ":"), default=str)

        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()
