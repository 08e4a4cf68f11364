"""Token request and response models.

Contains the token endpoint request shape and the provider-agnostic token
response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3).

    Immutable request parameters. The client secret is only placed in the
    body when the provider authenticates clients that way; Basic credentials
    and signed assertions are applied by the provider variant.
    """

    # Required fields first
    token_endpoint: str
    code: str = field(repr=False)
    redirect_uri: str
    client_id: str

    # Optional fields with defaults last
    grant_type: str = "authorization_code"
    code_verifier: str | None = field(default=None, repr=False)  # RFC 7636 PKCE
    client_secret: str | None = field(default=None, repr=False)

    def to_form_data(self) -> dict[str, str]:
        """Convert to a flat mapping for form or JSON encoding.

        Returns:
            Dictionary suitable for httpx ``data`` or ``json`` parameter
        """
        data = {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
        }

        # Add optional parameters
        if self.code_verifier:
            data["code_verifier"] = self.code_verifier
        if self.client_secret:
            data["client_secret"] = self.client_secret

        return data


class TokenResponse(BaseModel):
    """Token endpoint response (RFC 6749 Section 5).

    Represents both successful responses (Section 5.1) and error responses
    (Section 5.2). Providers disagree on optional fields, so only
    ``access_token`` is required for a successful exchange.
    """

    model_config = ConfigDict(frozen=True)

    # Success response fields (RFC 6749 Section 5.1)
    access_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None  # Seconds until expiry
    refresh_token: str | None = None
    id_token: str | None = None  # OpenID Connect
    scope: str | None = None

    # Error response fields (RFC 6749 Section 5.2)
    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)

    @field_validator("scope", mode="before")
    @classmethod
    def join_scope_list(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return " ".join(str(s) for s in v)
        return v

    @field_validator("token_type", mode="before")
    @classmethod
    def default_token_type(cls, v: Any) -> Any:
        return v or "Bearer"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TokenResponse:
        """Build from a decoded token endpoint body, keeping the raw payload."""
        known = {name: payload[name] for name in cls.model_fields if name in payload}
        known.pop("raw", None)
        return cls(**known, raw=dict(payload))

    def is_success(self) -> bool:
        """Check if token response carries a usable access token."""
        return self.error is None and bool(self.access_token)

    def is_error(self) -> bool:
        """Check if token response indicates an error."""
        return self.error is not None

    def token_bundle(self) -> dict[str, Any]:
        """The subset of the response that is safe to hand onward."""
        bundle: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.refresh_token:
            bundle["refresh_token"] = self.refresh_token
        if self.id_token:
            bundle["id_token"] = self.id_token
        if self.expires_in is not None:
            bundle["expires_in"] = self.expires_in
        if self.scope:
            bundle["scope"] = self.scope
        return bundle
