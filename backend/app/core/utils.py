"""
Core utilities for the Sakura sync backend.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any


def normalize_email(email: Any) -> str:
    """Trim and lowercase an email address."""
    return str(email).strip().lower()


def account_id_from_email(email: Any) -> str:
    """Derive the stable account id for an email address.

    The same address always maps to the same id regardless of casing or
    surrounding whitespace, so the id doubles as the storage key.

    Returns:
        SHA-256 hex digest of the normalized email
    """
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return utc_now().isoformat()


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when it cannot be parsed.

    A trailing ``Z`` is accepted and naive values are taken as UTC.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
