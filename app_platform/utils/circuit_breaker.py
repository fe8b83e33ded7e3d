from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional


class BreakerOpenError(RuntimeError):
    """Raised when a call is refused because the breaker is open."""


class CircuitBreaker:
    """Circuit breaker guarding calls to an upstream dependency.

    States: CLOSED -> OPEN -> HALF_OPEN -> CLOSED
    - failure_threshold failures within window_seconds open the breaker
    - after half_open_after_s a single probe call is admitted
    - a successful probe closes the breaker, a failed probe re-opens it
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        window_seconds: float = 30,
        half_open_after_s: float = 15,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._state = "CLOSED"
        self._failures: list[float] = []
        self._opened_at = 0.0
        self._probe_inflight = False
        self._threshold = max(1, int(failure_threshold))
        self._window_s = float(window_seconds)
        self._half_open_after = float(half_open_after_s)
        self._clock = clock or time.monotonic

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def allow_call(self) -> bool:
        now = self._clock()
        with self._lock:
            if self._state == "OPEN":
                if (now - self._opened_at) >= self._half_open_after and not self._probe_inflight:
                    self._state = "HALF_OPEN"
                    self._probe_inflight = True
                    return True
                return False
            if self._state == "HALF_OPEN":
                return not self._probe_inflight
            return True

    def on_success(self) -> None:
        with self._lock:
            self._state = "CLOSED"
            self._probe_inflight = False
            self._failures.clear()

    def on_failure(self) -> None:
        now = self._clock()
        with self._lock:
            if self._state == "HALF_OPEN":
                self._state = "OPEN"
                self._opened_at = now
                self._probe_inflight = False
                return

            cutoff = now - self._window_s
            self._failures = [ts for ts in self._failures if ts >= cutoff]
            self._failures.append(now)
            if len(self._failures) >= self._threshold:
                self._state = "OPEN"
                self._opened_at = now

    def call(self, fn: Callable[[], Any]) -> Any:
        """Run ``fn`` under the breaker, recording its outcome."""

        if not self.allow_call():
            raise BreakerOpenError("breaker_open")
        try:
            result = fn()
        except Exception:
            self.on_failure()
            raise
        self.on_success()
        return result

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "state": self._state,
                "failures": len(self._failures),
                "window_s": self._window_s,
                "half_open_after_s": self._half_open_after,
            }
