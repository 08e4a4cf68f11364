"""Secret scrubbing for payloads that leave the library.

Raw provider responses and error context are kept for diagnostics, but must
never carry credentials the library itself sent or holds.
"""

from __future__ import annotations

import hashlib
from typing import Any

SENSITIVE_KEYS = frozenset(
    {
        "client_secret",
        "private_key",
        "client_assertion",
        "code_verifier",
        "password",
    }
)


def redact(data: Any) -> Any:
    """Return a copy of ``data`` with sensitive keys removed at every depth."""
    if isinstance(data, dict):
        return {
            key: redact(value)
            for key, value in data.items()
            if not (isinstance(key, str) and key.lower() in SENSITIVE_KEYS)
        }
    if isinstance(data, list):
        return [redact(item) for item in data]
    return data


def fingerprint(value: str) -> str:
    """Short, non-reversible tag for correlating a secret value in logs."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]
