from __future__ import annotations

import json
import threading
import time
from typing import Any, Dict, Mapping, Optional
from urllib.request import urlopen

from jose import jwk  # type: ignore[import]
from jose.exceptions import JWKError  # type: ignore[import]

from app_platform.utils.circuit_breaker import BreakerOpenError, CircuitBreaker


class _JwksCache:
    """Cache for JWKS keys with TTL and thread-safety.

    Uses a monotonic clock for TTL correctness.
    """

    def __init__(self, ttl_seconds: int) -> None:
        if ttl_seconds is None or ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be a positive integer, got {ttl_seconds}")

        self._ttl = int(ttl_seconds)
        self._keys: Dict[str, Any] = {}
        self._fetched_at_monotonic: float = 0.0
        self._lock = threading.Lock()

    def is_expired(self) -> bool:
        with self._lock:
            if self._fetched_at_monotonic <= 0:
                return True

            return (time.monotonic() - self._fetched_at_monotonic) >= self._ttl

    def get(self, kid: str) -> Optional[Any]:
        with self._lock:
            return self._keys.get(kid)

    def set_all(self, kid_to_key: Dict[str, Any]) -> None:
        with self._lock:
            self._keys = dict(kid_to_key)
            self._fetched_at_monotonic = time.monotonic()

    def clear(self) -> None:
        with self._lock:
            self._keys.clear()
            self._fetched_at_monotonic = 0.0

    def age_seconds(self) -> float:
        with self._lock:
            if self._fetched_at_monotonic <= 0:
                return float("inf")

            return max(0.0, time.monotonic() - self._fetched_at_monotonic)


class JWKSClient:
    """Encapsulate JWKS fetch, cache and preparation behind a breaker."""

    def __init__(self, *, url: str, timeout_s: int, cache_ttl_s: int, breaker: CircuitBreaker) -> None:
        if not url or not isinstance(url, str):
            raise ValueError(f"url must be a non-empty string, got {url}")

        self._url = url
        self._timeout_s = int(timeout_s)
        self._cache = _JwksCache(int(cache_ttl_s))
        self._breaker = breaker

    def get_key(self, kid: str) -> Optional[Any]:
        """Return the prepared key for the given KID if cached."""

        return self._cache.get(kid)

    def set_all(self, kid_to_key: Dict[str, Any]) -> None:
        self._cache.set_all(kid_to_key)

    def age_seconds(self) -> float:
        return self._cache.age_seconds()

    def is_expired(self) -> bool:
        return self._cache.is_expired()

    def invalidate(self) -> None:
        self._cache.clear()

    def refresh(self) -> Dict[str, Any]:
        """Fetch, prepare and cache the current key set."""

        kid_to_key = self.prepare_keys(self.fetch_raw())
        self.set_all(kid_to_key)
        return kid_to_key

    def fetch_raw(self) -> Dict[str, Any]:
        """Fetch the raw JWKS document from the endpoint."""

        def _net_call() -> Dict[str, Any]:
            with urlopen(self._url, timeout=self._timeout_s) as resp:
                data = json.loads(resp.read().decode("utf-8"))

                if not isinstance(data, dict) or "keys" not in data:
                    raise ValueError("malformed JWKS document")

                return data

        try:
            return self._breaker.call(_net_call)
        except BreakerOpenError as exc:
            raise ValueError("JWKS fetch breaker open") from exc
        except OSError as exc:
            # URLError and socket read timeouts are both OSError.
            raise ValueError(f"failed to fetch JWKS: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError("failed to parse JWKS JSON") from exc

    def prepare_keys(self, jwks: Mapping[str, Any]) -> Dict[str, Any]:
        """Build RS256 signing keys indexed by KID."""

        keys = jwks.get("keys")

        if not isinstance(keys, list):
            raise ValueError("JWKS keys must be a list")

        kid_to_key: Dict[str, Any] = {}
        for key_dict in keys:
            if not isinstance(key_dict, dict):
                continue

            kty = key_dict.get("kty")
            alg = key_dict.get("alg")
            kid = key_dict.get("kid")
            use = key_dict.get("use")

            if kty != "RSA" or (alg and alg != "RS256"):
                continue
            if use and use != "sig":
                continue
            if not kid:
                continue

            try:
                kid_to_key[str(kid)] = jwk.construct(key_dict, algorithm="RS256")
            except JWKError:
                continue

        if not kid_to_key:
            raise ValueError("no usable RSA keys in JWKS")

        return kid_to_key
