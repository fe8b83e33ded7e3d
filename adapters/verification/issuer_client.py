"""HTTP client for the verification-code issuing server (``POST /api/issue``)."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from app_platform.config.portal import VerificationIssuerConfig

logger = logging.getLogger(__name__)


class IssuerRequestError(RuntimeError):
    """Transport failure or non-2xx answer from the issuing server."""

    def __init__(self, message: str, *, status: Optional[int] = None, upstream_error: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.upstream_error = upstream_error


class VerificationIssuerClient:
    """Issue verification codes with an API key; no retries, bounded timeout."""

    def __init__(self, config: VerificationIssuerConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    def issue_code(self, payload: Mapping[str, Any]) -> Any:
        url = self._config.issue_url
        if not url or not self._config.api_key:
            raise IssuerRequestError("Verification server is not configured")

        try:
            response = self._session.post(
                url,
                json=dict(payload),
                headers={"X-API-Key": self._config.api_key, "Content-Type": "application/json"},
                timeout=self._config.timeout_s,
            )
        except requests.RequestException as exc:
            logger.error("Verification issuer request failed: %s", exc)
            raise IssuerRequestError(f"Verification server unreachable: {exc}") from exc

        if response.status_code >= 400:
            upstream = self._upstream_error(response)
            logger.error(
                "Verification issuer rejected request",
                extra={"status": response.status_code, "upstream_error": upstream},
            )
            raise IssuerRequestError(
                f"Verification server returned {response.status_code}",
                status=response.status_code,
                upstream_error=upstream,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise IssuerRequestError("Verification server returned invalid JSON", status=response.status_code) from exc

        code = body.get("code") if isinstance(body, Mapping) else None
        if code is None or code == "":
            raise IssuerRequestError("Verification server response missing code", status=response.status_code)
        return code

    @staticmethod
    def _upstream_error(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, Mapping):
            return str(body.get("error") or body.get("message") or body)[:200]
        return str(body)[:200]
