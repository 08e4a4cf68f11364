"""Environment-based settings loading.

Reads ``.env`` (via python-dotenv) and process environment variables into
``SocialGateSettings``:

    SOCIALGATE_PROVIDERS=google,github
    SOCIALGATE_GOOGLE_CLIENT_ID=...
    SOCIALGATE_GOOGLE_CLIENT_SECRET=...
    SOCIALGATE_GOOGLE_REDIRECT_URI=https://app.example/social/google/callback
    SOCIALGATE_PLATFORM_IOS_DEEP_LINK_SCHEME=myapp
    SOCIALGATE_STATE_TTL=600
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv

from socialgate.models.config import PlatformConfig, ProviderConfig, SocialGateSettings

GLOBAL_FIELDS = (
    "default_platform",
    "state_ttl",
    "http_timeout",
    "include_raw",
    "user_agent",
)
_SKIPPED_PROVIDER_FIELDS = {"key", "extra_authorize_params"}


def _fields(model: type, skip: set[str]) -> list[str]:
    return [name for name in model.model_fields if name not in skip]


def _collect(
    environ: Mapping[str, str], prefix: str, names: list[str]
) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name in names:
        raw = environ.get(f"{prefix}{name.upper()}")
        if raw is not None and raw.strip() != "":
            values[name] = raw.strip()
    return values


def settings_from_environ(
    environ: Mapping[str, str], prefix: str = "SOCIALGATE_"
) -> SocialGateSettings:
    """Build settings from an environment mapping.

    Providers are taken from ``{prefix}PROVIDERS`` (comma separated).
    Platforms are the defaults plus any ``{prefix}PLATFORMS`` entries;
    each may be adjusted through ``{prefix}PLATFORM_<KEY>_<FIELD>``.
    """
    data: dict[str, Any] = _collect(environ, prefix, list(GLOBAL_FIELDS))

    provider_names = [
        p.strip().lower()
        for p in environ.get(f"{prefix}PROVIDERS", "").split(",")
        if p.strip()
    ]
    provider_fields = _fields(ProviderConfig, _SKIPPED_PROVIDER_FIELDS)
    data["providers"] = {
        name: _collect(environ, f"{prefix}{name.upper()}_", provider_fields)
        for name in provider_names
    }

    platform_names = ["web", "ios", "android"]
    for p in environ.get(f"{prefix}PLATFORMS", "").split(","):
        if p.strip() and p.strip().lower() not in platform_names:
            platform_names.append(p.strip().lower())
    defaults = SocialGateSettings.model_fields["platforms"].get_default(
        call_default_factory=True
    )
    platform_fields = _fields(PlatformConfig, {"key"})
    platforms: dict[str, Any] = {}
    for name in platform_names:
        base = defaults[name].model_dump() if name in defaults else {"key": name}
        base.update(
            _collect(environ, f"{prefix}PLATFORM_{name.upper()}_", platform_fields)
        )
        platforms[name] = base
    data["platforms"] = platforms

    return SocialGateSettings.from_mapping(data)


def load_settings_from_env(
    env_file: str | None = None, prefix: str = "SOCIALGATE_"
) -> SocialGateSettings:
    """Load ``.env`` (without overriding the process environment) then read settings."""
    load_dotenv(env_file)
    return settings_from_environ(os.environ, prefix)
