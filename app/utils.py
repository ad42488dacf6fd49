"""Utility helpers for the MoodyFlicks service."""

from __future__ import annotations

import json
import re
from typing import Any


PROFILE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def encode_value(value: Any) -> str:
    """Serialize ``value`` the way it is written to durable storage."""

    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def canonical_json(value: Any) -> str:
    """Return an order-independent encoding used for deep equality checks."""

    return json.dumps(
        value, ensure_ascii=False, allow_nan=False, sort_keys=True, separators=(",", ":")
    )


def decode_value(raw: str) -> Any:
    """Parse a stored payload, raising ``ValueError`` when it is not JSON."""

    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Stored value is not valid JSON") from exc


def normalize_profile_id(value: str) -> str:
    """Validate a client supplied profile identifier."""

    candidate = (value or "").strip()
    if not PROFILE_ID_RE.match(candidate):
        raise ValueError(
            "Profile ids must be 1-64 characters of letters, digits, '-' or '_'"
        )
    return candidate
