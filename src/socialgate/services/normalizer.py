"""Normalization of provider identities into one canonical record."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from socialgate.models.errors import UserInfoFetchFailedError
from socialgate.models.identity import NormalizedIdentity, RawIdentity, UserInfo
from socialgate.models.tokens import TokenResponse
from socialgate.primitives.redaction import redact
from socialgate.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class IdentityNormalizer:
    """Maps raw provider fields onto ``NormalizedIdentity``.

    Mapping is deterministic: the same inputs always produce the same record.
    The subject id falls back to the email and the display name falls back to
    the email local part, then to ``"<Provider> User"``.
    """

    def __init__(self, registry: ProviderRegistry, include_raw: bool = True):
        self._registry = registry
        self.include_raw = include_raw

    def normalize(
        self, provider: str, token: TokenResponse, raw: RawIdentity
    ) -> NormalizedIdentity:
        """Build the canonical identity.

        Raises:
            UserInfoFetchFailedError: If neither a subject id nor an email can
                be established
        """
        variant = self._registry.resolve(provider)
        fields = variant.map_identity(raw)

        email = fields.get("email") or raw.get("email") or None
        subject = fields.get("id")
        if subject in (None, ""):
            subject = email
        if subject in (None, ""):
            raise UserInfoFetchFailedError(
                f"{variant.spec.display_name} identity has neither an id nor an email.",
                provider=variant.key,
            )
        fields["id"] = subject
        fields["email"] = email
        fields["email_verified"] = bool(email) and bool(fields.get("email_verified"))
        if not fields.get("name"):
            fields["name"] = (
                email.split("@", 1)[0] if email else f"{variant.spec.display_name} User"
            )

        try:
            userinfo = UserInfo(**fields)
        except ValidationError as e:
            raise UserInfoFetchFailedError(
                f"Unusable {variant.spec.display_name} identity fields.",
                provider=variant.key,
            ) from e

        retained = None
        if self.include_raw:
            retained = redact({"data": raw.data, **raw.secondary})

        logger.info(f"Identity normalized | provider={variant.key}")
        return NormalizedIdentity(
            provider=variant.key,
            oauth=token.token_bundle(),
            userinfo=userinfo,
            raw=retained,
        )
