"""HMAC-SHA256 signature checks for trigger webhooks."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Mapping, Optional

SIGNATURE_HEADER = "X-Portal-Signature"


class SignatureError(Exception):
    """Raised when a trigger request is missing a valid signature."""


class SignatureNotConfigured(Exception):
    """Raised when no trigger secret is configured."""


def sign(secret: str, body: bytes) -> str:
    """Hex signature for ``body``; used by trigger sources and tests."""

    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def validate_signature(secret: Optional[str], headers: Mapping[str, str], body: bytes) -> None:
    if not secret:
        raise SignatureNotConfigured("Trigger secret not configured")

    presented = headers.get(SIGNATURE_HEADER) or headers.get(SIGNATURE_HEADER.lower())
    if not presented:
        raise SignatureError("Missing trigger signature")

    # Accept "sha256=..." as well as raw base64 or hex digests
    presented = presented.strip()
    if presented.startswith("sha256="):
        presented = presented[len("sha256="):]

    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected_b64 = base64.b64encode(digest).decode("ascii")
    expected_hex = digest.hex()

    if not _constant_time_compare(presented, expected_b64) and not _constant_time_compare(presented.lower(), expected_hex):
        raise SignatureError("Invalid trigger signature")


def _constant_time_compare(presented: str, expected: str) -> bool:
    try:
        presented_bytes = presented.encode("ascii")
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(presented_bytes, expected.encode("ascii"))
