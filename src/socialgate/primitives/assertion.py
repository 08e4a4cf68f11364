"""Signed client assertions for providers that reject static secrets.

Sign in with Apple authenticates the client with a short-lived ES256 JWT in
place of ``client_secret``. The assertion is only needed at the token
endpoint; authorization URLs never carry it.
"""

from __future__ import annotations

import logging
import os
import time

import jwt

logger = logging.getLogger(__name__)

APPLE_AUDIENCE = "https://appleid.apple.com"
DEFAULT_LIFETIME = 300


def load_private_key(value: str) -> str:
    """Accept either PEM text or a path to a PEM file."""
    if "-----BEGIN" in value:
        return value
    if os.path.isfile(value):
        with open(value, encoding="utf-8") as fh:
            return fh.read()
    return value


def build_client_assertion(
    *,
    team_id: str,
    key_id: str,
    client_id: str,
    private_key: str,
    audience: str = APPLE_AUDIENCE,
    lifetime: int = DEFAULT_LIFETIME,
    now: float | None = None,
) -> str:
    """Sign an ES256 client assertion.

    Claims follow Apple's client secret format: ``iss`` is the team id,
    ``sub`` the client (services) id, ``aud`` the Apple issuer.

    Raises:
        jwt.PyJWTError, ValueError: If the key cannot be used for ES256
    """
    issued_at = int(now if now is not None else time.time())
    claims = {
        "iss": team_id,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "aud": audience,
        "sub": client_id,
    }
    token = jwt.encode(
        claims,
        load_private_key(private_key),
        algorithm="ES256",
        headers={"kid": key_id},
    )
    logger.debug(f"Signed client assertion for {client_id} (kid={key_id})")
    return token
