"""
Auth0 access-token verification with JWKS fetch, in-memory cache, and strict
checks. Produces the portal's :class:`CallerClaims` from verified tokens.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from jose import jwt  # type: ignore[import]
from jose.exceptions import JWTError  # type: ignore[import]

from app_platform.utils.circuit_breaker import CircuitBreaker
from domains.accounts.models import CallerClaims

from .auth0_jwks import JWKSClient


class Auth0TokenVerifier:
    """Auth0 JWT verification using JWKS.

    - RS256 only
    - Requires matching audience and issuer
    - Uses JWKS endpoint with timeout and TTL caching
    """

    def __init__(
        self,
        *,
        issuer: str,
        audience: str,
        claim_namespace: str = "",
        jwks_url: Optional[str] = None,
        jwks_cache_ttl_s: int = 3600,
        jwks_timeout_s: int = 5,
        clock_skew_s: int = 0,
        jwks_client: Optional[JWKSClient] = None,
    ) -> None:
        if not issuer or not audience:
            raise ValueError("issuer and audience are required")

        normalized_issuer = issuer if issuer.endswith("/") else issuer + "/"
        self._issuer = normalized_issuer
        self._audience = audience
        self._namespace = claim_namespace or ""
        self._jwks_url = jwks_url or f"{normalized_issuer}.well-known/jwks.json"
        self._clock_skew_s = int(clock_skew_s)
        self._jwks = jwks_client or JWKSClient(
            url=self._jwks_url,
            timeout_s=int(jwks_timeout_s),
            cache_ttl_s=int(jwks_cache_ttl_s),
            breaker=CircuitBreaker(failure_threshold=5, window_seconds=30, half_open_after_s=15),
        )

    @property
    def issuer(self) -> str:
        return self._issuer

    @property
    def audience(self) -> str:
        return self._audience

    @property
    def jwks_url(self) -> str:
        return self._jwks_url

    def verify_token(self, token: str) -> Mapping[str, Any]:
        """Verify a token and return the claims; raises ValueError when invalid."""

        if not token or not isinstance(token, str):
            raise ValueError("token must be a non-empty string")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise ValueError(f"invalid token header: {exc}") from exc

        if header.get("alg") != "RS256":
            raise ValueError("unsupported alg; RS256 required")

        kid = header.get("kid")
        if not kid:
            raise ValueError("missing kid in token header")

        key = None if self._jwks.is_expired() else self._jwks.get_key(kid)
        if key is None:
            key = self._jwks.refresh().get(kid)
            if key is None:
                raise ValueError("kid not found in JWKS")

        return self._decode(token, key)

    def _decode(self, token: str, key: Any) -> Dict[str, Any]:
        # iat and exp are checked with the configured leeway; aud and iss must match exactly.
        try:
            claims = jwt.decode(
                token,
                key.to_pem().decode("utf-8"),
                algorithms=["RS256"],
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_iat": True, "verify_exp": True, "leeway": self._clock_skew_s},
            )
        except JWTError as exc:
            raise ValueError(f"invalid token: {exc}") from exc
        return dict(claims)

    def caller_claims(self, claims: Mapping[str, Any]) -> CallerClaims:
        """Map verified token claims onto the portal's caller claims.

        Custom claims are namespaced (``<namespace>isAdmin``); un-namespaced
        keys are accepted as a fallback for tokens minted by rules without one.
        """

        def _claim(name: str) -> Any:
            if self._namespace and f"{self._namespace}{name}" in claims:
                return claims[f"{self._namespace}{name}"]
            return claims.get(name)

        organization_id = _claim("organizationID")
        email = _claim("email")
        return CallerClaims(
            uid=str(claims.get("sub", "")),
            email=email if isinstance(email, str) else None,
            is_admin=_claim("isAdmin") is True,
            organization_id=organization_id if isinstance(organization_id, str) else None,
        )

    def authenticate(self, token: str) -> CallerClaims:
        return self.caller_claims(self.verify_token(token))

    def healthcheck(self) -> Dict[str, Any]:
        return {
            "provider": "Auth0TokenVerifier",
            "issuer": self._issuer,
            "audience": self._audience,
            "jwks_age_s": round(self._jwks.age_seconds(), 3),
        }
