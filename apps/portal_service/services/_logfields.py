"""Helpers for log fields that must not carry personal data."""

from __future__ import annotations

import hashlib
from typing import Optional


def email_hash(email: Optional[str]) -> Optional[str]:
    """Stable short fingerprint of an email for correlating log lines."""

    if not email:
        return None
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()[:12]
