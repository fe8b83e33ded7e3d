"""Auth0 Management API identity provider with rate limiting and breaker."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import quote, urljoin, urlparse

import requests

from app_platform.config.portal import Auth0Config
from app_platform.utils.circuit_breaker import CircuitBreaker
from domains.accounts.models import IdentityClaims, IdentityRecord, normalize_email

from .base import IdentityProvider, IdentityProviderError, NewIdentity

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

_STATUS_CODES = {
    400: "invalid-argument",
    404: "not-found",
    409: "already-exists",
    429: "unavailable",
}


@dataclass(slots=True)
class _TokenInfo:
    token: str
    expires_at: float


class _TokenBucket:
    def __init__(self, *, rate: float, capacity: int) -> None:
        self._rate = max(rate, 0.1)
        self._capacity = max(capacity, 1)
        self._tokens = float(capacity)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

    def acquire(self, timeout_s: float = 1.0) -> bool:
        deadline = time.monotonic() + max(timeout_s, 0.0)
        while True:
            with self._lock:
                self._refill_locked()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(min(0.05, max(0.0, deadline - time.monotonic())))

    def _refill_locked(self) -> None:
        now = time.monotonic()
        elapsed = max(0.0, now - self._last_refill)
        if elapsed <= 0.0:
            return
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._last_refill = now


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, Mapping):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


def _to_record(data: Mapping[str, Any]) -> IdentityRecord:
    app_metadata = data.get("app_metadata") if isinstance(data.get("app_metadata"), Mapping) else {}
    return IdentityRecord(
        uid=str(data.get("user_id") or ""),
        email=data.get("email"),
        disabled=data.get("blocked") is True,
        claims=IdentityClaims.from_mapping(app_metadata),
        email_verified=data.get("email_verified") is True,
        created_at=data.get("created_at"),
    )


class Auth0IdentityProvider(IdentityProvider):
    """Identity provider backed by the Auth0 Management API v2.

    Custom claims live in ``app_metadata`` and the disabled flag maps onto
    Auth0's ``blocked`` attribute.
    """

    def __init__(
        self,
        config: Auth0Config,
        session: Optional[requests.Session] = None,
        *,
        breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._breaker = breaker or CircuitBreaker()
        self._token: Optional[_TokenInfo] = None
        self._token_lock = threading.RLock()
        self._bucket = _TokenBucket(rate=config.rps or 5.0, capacity=config.burst or 10)
        self._base_url = self._normalize_base_url(config.base_url)
        self._token_url = self._derive_token_url(self._base_url)
        self._audience = config.mgmt_audience or (
            urljoin(self._base_url, "api/v2/") if self._base_url else None
        )

    @staticmethod
    def _normalize_base_url(base_url: Optional[str]) -> Optional[str]:
        if not base_url:
            return None
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            logger.warning("Invalid Auth0 base URL provided: %s", base_url)
            return None
        return f"{parsed.scheme}://{parsed.netloc}/"

    @staticmethod
    def _derive_token_url(base_url: Optional[str]) -> Optional[str]:
        if not base_url:
            return None
        return urljoin(base_url, "oauth/token")

    @property
    def enabled(self) -> bool:
        return all(
            [
                self._config.mgmt_client_id,
                self._config.mgmt_client_secret,
                self._audience,
                self._base_url,
                self._token_url,
            ]
        )

    # --------------------- identity operations ---------------------
    def create_user(self, new_identity: NewIdentity) -> IdentityRecord:
        payload = {
            "email": normalize_email(new_identity.email),
            "password": new_identity.password,
            "connection": self._config.connection,
            "email_verified": new_identity.email_verified,
            "blocked": new_identity.disabled,
        }
        body = self._request("POST", "api/v2/users", json=payload, replay_safe=False)
        record = _to_record(body or {})
        logger.info("Auth0 user created", extra={"uid": record.uid})
        return record

    def delete_user(self, uid: str) -> None:
        self._request("DELETE", self._user_path(uid), allow_not_found=True)
        logger.info("Auth0 user deleted", extra={"uid": uid})

    def get_user(self, uid: str) -> Optional[IdentityRecord]:
        body = self._request("GET", self._user_path(uid), allow_not_found=True)
        if body is None:
            return None
        return _to_record(body)

    def get_user_by_email(self, email: str) -> Optional[IdentityRecord]:
        body = self._request(
            "GET",
            "api/v2/users-by-email",
            params={"email": normalize_email(email)},
        )
        users = body if isinstance(body, list) else []
        if not users:
            return None
        if len(users) > 1:
            logger.warning("Multiple Auth0 users share an email; using the first", extra={"count": len(users)})
        return _to_record(users[0])

    def set_custom_claims(self, uid: str, claims: IdentityClaims) -> None:
        self._request("PATCH", self._user_path(uid), json={"app_metadata": claims.to_dict()})

    def set_disabled(self, uid: str, disabled: bool) -> None:
        self._request("PATCH", self._user_path(uid), json={"blocked": bool(disabled)})

    def generate_sign_in_link(self, email: str, redirect_url: str) -> str:
        record = self.get_user_by_email(email)
        if record is None:
            raise IdentityProviderError("No identity record for email", code="not-found", status=404)
        payload = {
            "user_id": record.uid,
            "result_url": redirect_url,
            "mark_email_as_verified": True,
        }
        body = self._request("POST", "api/v2/tickets/password-change", json=payload, replay_safe=False)
        ticket = (body or {}).get("ticket")
        if not ticket:
            raise IdentityProviderError("Auth0 ticket response missing ticket")
        return str(ticket)

    @staticmethod
    def _user_path(uid: str) -> str:
        if not uid:
            raise IdentityProviderError("uid required", code="invalid-argument")
        return f"api/v2/users/{quote(uid, safe='')}"

    # --------------------- HTTP helpers ---------------------
    def _ensure_token(self) -> str:
        with self._token_lock:
            if self._token and self._token.expires_at - time.time() > 30:
                return self._token.token
            if not self.enabled:
                raise IdentityProviderError("Auth0 management client not fully configured", code="unavailable")
            logger.debug("Refreshing Auth0 management API token")
            data = {
                "grant_type": "client_credentials",
                "client_id": self._config.mgmt_client_id,
                "client_secret": self._config.mgmt_client_secret,
                "audience": self._audience,
            }
            response = self._session.post(
                self._token_url,
                json=data,
                timeout=self._config.timeout_s,
            )
            if response.status_code >= 400:
                raise IdentityProviderError(
                    f"Auth0 token request failed ({response.status_code})",
                    code="unavailable",
                    status=response.status_code,
                )
            body = response.json()
            access_token = body.get("access_token")
            expires_in = int(body.get("expires_in", 300))
            if not access_token:
                raise IdentityProviderError("Auth0 token response missing access_token", code="unavailable")
            self._token = _TokenInfo(token=access_token, expires_at=time.time() + max(expires_in, 60))
            return access_token

    def _request(
        self, method: str, path: str, *, allow_not_found: bool = False, replay_safe: bool = True, **kwargs: Any
    ) -> Any:
        """Send one Management API call.

        ``replay_safe=False`` marks calls that create something upstream; those
        are not resent after a transport error or 5xx, where the first attempt
        may have committed. 401 and 429 are still retried.
        """

        if not self._base_url:
            raise IdentityProviderError("Auth0 base URL not configured", code="unavailable")
        url = urljoin(self._base_url, path)

        backoff = self._config.backoff_base_ms / 1000.0
        max_backoff = self._config.backoff_max_ms / 1000.0
        attempts = max(1, self._config.retries + 1)

        last_error: Optional[IdentityProviderError] = None

        for attempt in range(1, attempts + 1):
            if not self._bucket.acquire(timeout_s=2.0):
                logger.debug("Auth0 management client throttled; waiting for capacity")
                last_error = IdentityProviderError("Auth0 client-side rate limit", code="unavailable")
                continue

            if not self._breaker.allow_call():
                raise IdentityProviderError("Auth0 management breaker open", code="unavailable")

            try:
                token = self._ensure_token()
            except IdentityProviderError:
                self._breaker.on_failure()
                raise
            except requests.RequestException as exc:
                self._breaker.on_failure()
                raise IdentityProviderError(f"Auth0 token request failed: {exc}", code="unavailable") from exc

            headers = {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }

            try:
                response = self._session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=self._config.timeout_s,
                    **kwargs,
                )
            except requests.RequestException as exc:
                self._breaker.on_failure()
                last_error = IdentityProviderError(f"Auth0 request failed: {exc}", code="unavailable")
                if attempt >= attempts or not replay_safe:
                    break
                time.sleep(min(max_backoff, backoff))
                backoff = min(max_backoff, backoff * 2 or 0.05)
                continue

            status = response.status_code

            if status == 401:
                with self._token_lock:
                    self._token = None
                self._breaker.on_failure()
                last_error = IdentityProviderError("Auth0 management unauthorized", code="unavailable", status=401)
                if attempt >= attempts:
                    break
                continue

            if status in _RETRYABLE_STATUS:
                self._breaker.on_failure()
                last_error = IdentityProviderError(
                    _error_message(response),
                    code=_STATUS_CODES.get(status, "unavailable"),
                    status=status,
                )
                if attempt >= attempts or (not replay_safe and status != 429):
                    break
                time.sleep(min(max_backoff, backoff))
                backoff = min(max_backoff, backoff * 2 or 0.05)
                continue

            # Client errors mean the upstream is healthy
            self._breaker.on_success()

            if status == 404 and allow_not_found:
                return None

            if status >= 400:
                raise IdentityProviderError(
                    _error_message(response),
                    code=_STATUS_CODES.get(status, "internal"),
                    status=status,
                )

            if response.content:
                try:
                    return response.json()
                except ValueError:
                    return response.text
            return None

        raise last_error or IdentityProviderError("Auth0 management request failed", code="unavailable")


__all__ = ["Auth0IdentityProvider"]
