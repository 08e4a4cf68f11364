"""Security utilities for authorization attempts.

Provides cryptographically secure state generation and comparison plus
redirect URI checks.
"""

from __future__ import annotations

import secrets
from urllib.parse import urlparse

STATE_BYTES = 32


def generate_state() -> str:
    """Generate a cryptographically secure state parameter.

    The state parameter provides CSRF protection by ensuring the callback
    matches the original authorization request.

    Returns:
        URL-safe random string carrying 256 bits of entropy (43 characters)
    """
    return secrets.token_urlsafe(STATE_BYTES)


def states_match(expected: str | None, actual: str | None) -> bool:
    """Constant-time comparison that treats missing values as a mismatch."""
    if not expected or not actual:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), actual.encode("utf-8"))


def validate_web_redirect_uri(uri: str) -> bool:
    """Validate a browser redirect URI.

    Returns:
        True for absolute HTTPS URLs, or HTTP on a loopback host
    """
    parsed = urlparse(uri)
    if not parsed.netloc:
        return False
    if parsed.scheme == "https":
        return True
    return parsed.scheme == "http" and parsed.hostname in ("localhost", "127.0.0.1")
