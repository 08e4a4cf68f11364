"""Provider and platform configuration models.

Loaded once per process and immutable afterwards. Hosts build them from their
own config source with ``SocialGateSettings.from_mapping`` or from the
environment with ``socialgate.settings.load_settings_from_env``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CALLBACK_PATH = "/social/{provider}/callback"


class ProviderConfig(BaseModel):
    """Credentials and overrides for one identity provider."""

    model_config = ConfigDict(frozen=True)

    key: str
    kind: str | None = None  # variant tag; resolved by the registry when None
    client_id: str | None = None
    client_secret: str | None = Field(default=None, repr=False)
    redirect_uri: str | None = None
    scopes: str | None = None
    api_version: str | None = None

    # Endpoint overrides (required for the generic variant)
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None

    # Signed client assertion material (Sign in with Apple)
    team_id: str | None = None
    key_id: str | None = None
    private_key: str | None = Field(default=None, repr=False)

    # Token endpoint overrides: "client_secret_post" | "client_secret_basic",
    # "form" | "json"
    token_auth_method: str | None = None
    token_encoding: str | None = None

    public_client: bool | None = None
    use_pkce: bool | None = None
    validate_state: bool = True
    extra_authorize_params: dict[str, str] = Field(default_factory=dict)

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Provider key must not be empty")
        return v.strip()

    def value(self, name: str) -> Any:
        """Return a setting by name, treating blank strings as absent."""
        v = getattr(self, name, None)
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PlatformConfig(BaseModel):
    """Redirect target description for one client platform."""

    model_config = ConfigDict(frozen=True)

    key: str
    callback_path: str = DEFAULT_CALLBACK_PATH
    deep_link_scheme: str | None = None
    requires_postmessage: bool = False
    append_platform_param: bool = False

    @field_validator("deep_link_scheme")
    @classmethod
    def validate_scheme(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if v.endswith("://"):
            v = v[: -len("://")]
        if not v:
            return None
        if not (v[0].isalpha() and all(c.isalnum() or c in "+-." for c in v)):
            raise ValueError(f"Invalid deep link scheme: {v!r}")
        return v


def _default_platforms() -> dict[str, PlatformConfig]:
    return {
        "web": PlatformConfig(key="web"),
        "ios": PlatformConfig(key="ios", deep_link_scheme="myapp"),
        "android": PlatformConfig(key="android", deep_link_scheme="myapp"),
    }


class SocialGateSettings(BaseModel):
    """Complete library configuration."""

    model_config = ConfigDict(frozen=True)

    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    platforms: dict[str, PlatformConfig] = Field(default_factory=_default_platforms)
    default_platform: str = "web"
    state_ttl: float = Field(default=600.0, gt=0)
    http_timeout: float = Field(default=10.0, gt=0)
    include_raw: bool = True
    user_agent: str = "socialgate"

    @model_validator(mode="before")
    @classmethod
    def inject_keys(cls, data: Any) -> Any:
        """Allow mapping-style config where the dict key doubles as ``key``."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for section in ("providers", "platforms"):
            entries = data.get(section)
            if isinstance(entries, dict):
                data[section] = {
                    name: (
                        {"key": name, **entry}
                        if isinstance(entry, dict) and "key" not in entry
                        else entry
                    )
                    for name, entry in entries.items()
                }
        return data

    @model_validator(mode="after")
    def validate_entry_keys(self) -> SocialGateSettings:
        for section, entries in (
            ("providers", self.providers),
            ("platforms", self.platforms),
        ):
            for name, entry in entries.items():
                if entry.key != name:
                    raise ValueError(
                        f"{section} entry '{name}' declares a different key: "
                        f"'{entry.key}'"
                    )
        return self

    @model_validator(mode="after")
    def validate_default_platform(self) -> SocialGateSettings:
        if self.default_platform not in self.platforms:
            raise ValueError(
                f"Default platform '{self.default_platform}' is not configured"
            )
        return self

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SocialGateSettings:
        """Build settings from a plain nested mapping (JSON, YAML, dict)."""
        return cls.model_validate(data)
