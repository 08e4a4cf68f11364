"""Security-related models for authorization attempts.

Contains PKCE parameters and the per-attempt record held by the challenge
store between authorization and code exchange.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (Proof Key for Code Exchange) parameters (RFC 7636).

    Immutable parameters generated for each authorization attempt to prevent
    authorization code interception attacks.
    """

    code_verifier: str = field(repr=False)
    code_challenge: str = field()
    code_challenge_method: str = field(default="S256")

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if not (43 <= len(self.code_challenge) <= 128):
            raise ValueError("code_challenge must be 43-128 characters")
        if self.code_challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")


@dataclass(frozen=True)
class AuthorizationAttempt:
    """One in-flight login attempt.

    Owned by the challenge store from creation until it is consumed at code
    exchange (or expires). The redirect URI is recorded so the exchange can
    send back exactly what the provider saw at authorization time.
    """

    state: str = field(repr=False)
    provider: str
    platform: str
    redirect_uri: str
    code_verifier: str | None = field(default=None, repr=False)
    created_at: float = field(default_factory=time.time)

    @property
    def uses_pkce(self) -> bool:
        return self.code_verifier is not None
