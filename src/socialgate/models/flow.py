"""Authorization flow models.

Contains models for authorization requests, the redirect handed back to the
caller, and callback handling.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from socialgate.models.errors import AuthorizationDeniedError


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the authorization code flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    scope: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    extra_params: dict[str, str] = field(default_factory=dict)

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "state": self.state,
        }

        if self.scope:
            params["scope"] = self.scope
        if self.code_challenge:
            params["code_challenge"] = self.code_challenge
            params["code_challenge_method"] = self.code_challenge_method or "S256"

        for key, value in self.extra_params.items():
            params.setdefault(key, value)

        # ":" and "/" are legal in a query component (RFC 3986 Section 3.4)
        query = urlencode(params, safe=":/")
        separator = "&" if "?" in self.authorization_endpoint else "?"
        return f"{self.authorization_endpoint}{separator}{query}"


@dataclass(frozen=True)
class AuthorizationRedirect:
    """Where to send the user, plus what the caller needs to finish the flow.

    ``attempt_key`` must be presented again at exchange time (it equals the
    state when the caller did not supply its own key).
    """

    url: str
    state: str
    attempt_key: str
    provider: str
    platform: str
    redirect_uri: str
    requires_post_message: bool = False

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class AuthorizationResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> AuthorizationResponse:
        """Build from callback query or form parameters (single values)."""

        def get_single_param(key: str) -> str | None:
            value = params.get(key)
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            return str(value) if value not in (None, "") else None

        return cls(
            code=get_single_param("code"),
            state=get_single_param("state"),
            error=get_single_param("error"),
            error_description=get_single_param("error_description"),
            error_uri=get_single_param("error_uri"),
        )

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None

    def raise_for_error(self, provider: str | None = None) -> None:
        """Raise ``AuthorizationDeniedError`` if the provider reported an error."""
        if not self.is_error():
            return
        raise AuthorizationDeniedError(
            f"Authorization failed: {self.error} "
            f"({self.error_description or ''}) "
            f"{'See: ' + self.error_uri if self.error_uri else ''}".strip(),
            provider=provider,
            error=self.error,
        )
