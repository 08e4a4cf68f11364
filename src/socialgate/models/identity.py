"""Identity models: the provider field bag and the canonical user record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class RawIdentity:
    """Provider-specific identity fields as returned by the userinfo call(s).

    ``data`` is the primary profile object (already unwrapped from any
    envelope such as ``{"data": {...}}``). ``secondary`` holds results of
    follow-up calls keyed by name; a failed follow-up is simply absent.
    """

    provider: str
    data: dict[str, Any]
    source: str
    secondary: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class UserInfo(BaseModel):
    """Canonical user fields shared by every provider.

    Provider-specific extras (username, locale, ...) are kept as extra fields
    and flattened into the output record next to the canonical ones.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    email: str | None = None
    name: str
    avatar: str | None = None
    email_verified: bool = False

    @field_validator("id", "name", mode="before")
    @classmethod
    def stringify_scalars(cls, v: Any) -> Any:
        # GitHub and Discord return numeric or snowflake ids
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("Subject id must not be empty")
        return v

    @property
    def extras(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class NormalizedIdentity(BaseModel):
    """Provider-agnostic result of a completed login."""

    model_config = ConfigDict(frozen=True)

    provider: str
    oauth: dict[str, Any]
    userinfo: UserInfo
    raw: dict[str, Any] | None = Field(default=None, repr=False)

    @property
    def subject(self) -> str:
        return self.userinfo.id

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable canonical output record."""
        record: dict[str, Any] = {
            "provider": self.provider,
            "oauth": dict(self.oauth),
            "userinfo": self.userinfo.model_dump(),
        }
        if self.raw is not None:
            record["raw"] = self.raw
        return record
