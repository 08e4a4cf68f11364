"""Per-provider mapping of raw identity fields to canonical user fields.

Each mapper returns a plain dict with the canonical keys ``id``, ``email``,
``name``, ``avatar`` and ``email_verified`` plus any provider extras. Missing
fields map to None; the normalizer applies the final fallbacks.
"""

from __future__ import annotations

from typing import Any

from socialgate.models.identity import RawIdentity

DISCORD_CDN = "https://cdn.discordapp.com"


def _first(*values: Any) -> Any:
    for v in values:
        if v not in (None, ""):
            return v
    return None


def _full_name(given: Any, family: Any) -> str | None:
    parts = [p for p in (given, family) if isinstance(p, str) and p.strip()]
    return " ".join(parts) or None


def _as_bool(value: Any) -> bool:
    # Apple sends "true"/"false" strings in some id_token claims
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _extras(data: dict[str, Any], **fields: str) -> dict[str, Any]:
    """Copy ``data[source]`` to ``target`` for each non-empty source field."""
    return {
        target: data[source]
        for target, source in fields.items()
        if data.get(source) not in (None, "")
    }


def map_google(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    return {
        "id": _first(data.get("sub"), data.get("id")),
        "email": data.get("email"),
        "name": _first(
            data.get("name"),
            _full_name(data.get("given_name"), data.get("family_name")),
        ),
        "avatar": data.get("picture"),
        "email_verified": _as_bool(data.get("email_verified")),
        **_extras(
            data,
            first_name="given_name",
            last_name="family_name",
            locale="locale",
            hosted_domain="hd",
        ),
    }


def map_facebook(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    picture = data.get("picture")
    avatar = None
    if isinstance(picture, dict):
        avatar = (picture.get("data") or {}).get("url")
    elif isinstance(picture, str):
        avatar = picture
    return {
        "id": data.get("id"),
        "email": data.get("email"),
        "name": _first(
            data.get("name"),
            _full_name(data.get("first_name"), data.get("last_name")),
        ),
        "avatar": avatar,
        # Graph only returns confirmed addresses
        "email_verified": bool(data.get("email")),
        **_extras(data, first_name="first_name", last_name="last_name"),
    }


def map_apple(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    email = data.get("email")
    return {
        "id": data.get("sub"),
        "email": email,
        # Apple never returns a name in the id_token
        "name": email.split("@", 1)[0] if isinstance(email, str) else None,
        "avatar": None,
        "email_verified": _as_bool(data.get("email_verified")),
        **_extras(data, is_private_email="is_private_email"),
    }


def map_github(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    email = _first(data.get("email"), raw.secondary.get("email"))
    return {
        "id": data.get("id"),
        "email": email,
        "name": _first(data.get("name"), data.get("login")),
        "avatar": data.get("avatar_url"),
        # Public and primary emails are verified before GitHub exposes them
        "email_verified": bool(email),
        **_extras(data, username="login", profile_url="html_url", company="company"),
    }


def map_linkedin(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    return {
        "id": data.get("sub"),
        "email": data.get("email"),
        "name": _first(
            data.get("name"),
            _full_name(data.get("given_name"), data.get("family_name")),
        ),
        "avatar": data.get("picture"),
        "email_verified": _as_bool(data.get("email_verified")),
        **_extras(
            data, first_name="given_name", last_name="family_name", locale="locale"
        ),
    }


def map_twitter(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    return {
        "id": data.get("id"),
        # users/me only returns an email to apps approved for it
        "email": data.get("email"),
        "name": _first(data.get("name"), data.get("username")),
        "avatar": data.get("profile_image_url"),
        "email_verified": False,
        **_extras(data, username="username", verified="verified"),
    }


def map_discord(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    user_id = data.get("id")
    avatar_hash = data.get("avatar")
    avatar = None
    if user_id and avatar_hash:
        avatar = f"{DISCORD_CDN}/avatars/{user_id}/{avatar_hash}.png"
    return {
        "id": user_id,
        "email": data.get("email"),
        "name": _first(data.get("global_name"), data.get("username")),
        "avatar": avatar,
        "email_verified": bool(data.get("verified")) and bool(data.get("email")),
        **_extras(
            data,
            username="username",
            discriminator="discriminator",
            locale="locale",
        ),
    }


def map_microsoft(raw: RawIdentity) -> dict[str, Any]:
    data = raw.data
    email = _first(data.get("mail"), data.get("userPrincipalName"))
    return {
        "id": data.get("id"),
        "email": email,
        "name": _first(
            data.get("displayName"),
            _full_name(data.get("givenName"), data.get("surname")),
        ),
        "avatar": None,
        # Only ``mail`` is a managed mailbox; a UPN need not receive mail
        "email_verified": bool(data.get("mail")),
        **_extras(
            data,
            first_name="givenName",
            last_name="surname",
            user_principal_name="userPrincipalName",
        ),
    }


def map_generic(raw: RawIdentity) -> dict[str, Any]:
    """Standard OpenID Connect claims with common OAuth2 fallbacks."""
    data = raw.data
    verified = data.get("email_verified")
    return {
        "id": _first(data.get("sub"), data.get("id"), data.get("user_id")),
        "email": data.get("email"),
        "name": _first(
            data.get("name"),
            _full_name(data.get("given_name"), data.get("family_name")),
            data.get("preferred_username"),
            data.get("username"),
            data.get("login"),
        ),
        "avatar": _first(data.get("picture"), data.get("avatar_url")),
        "email_verified": _as_bool(verified) if verified is not None else False,
        **_extras(data, username="preferred_username", locale="locale"),
    }
