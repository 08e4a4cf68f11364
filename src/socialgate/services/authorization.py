"""Authorization request construction.

Starts a login attempt: resolves the provider and platform, issues state (and
PKCE) through the challenge store, and assembles the provider URL.
"""

from __future__ import annotations

import logging

from socialgate.models.flow import AuthorizationRedirect
from socialgate.services.challenges import ChallengeStore
from socialgate.services.platforms import PlatformResolver
from socialgate.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class AuthorizationRequestBuilder:
    """Builds provider authorization URLs for new login attempts."""

    def __init__(
        self,
        registry: ProviderRegistry,
        platforms: PlatformResolver,
        challenges: ChallengeStore,
    ):
        self._registry = registry
        self._platforms = platforms
        self._challenges = challenges

    async def build(
        self,
        provider: str,
        platform: str | None = None,
        attempt_key: str | None = None,
    ) -> AuthorizationRedirect:
        """Start an attempt and return where to send the user.

        Every call issues a fresh state; under an explicit ``attempt_key`` it
        replaces any earlier attempt.

        Args:
            provider: Configured provider key
            platform: Platform key; the configured default when None
            attempt_key: Caller-held key for the attempt (session id or
                similar). When None the state itself becomes the key.

        Raises:
            UnsupportedProviderError: Unknown provider
            UnsupportedPlatformError: Unknown platform or no redirect target
            ProviderNotConfiguredError: A required provider setting is empty
        """
        variant = self._registry.resolve(provider)
        platform = platform or self._platforms.default_platform()
        # Fail on the platform before touching provider settings
        self._platforms.platform_config(platform)
        variant.assert_configured()

        redirect_uri = self._platforms.redirect_for(variant.key, platform)

        attempt, pkce = await self._challenges.create(
            attempt_key,
            provider=variant.key,
            platform=platform,
            redirect_uri=redirect_uri,
            pkce=variant.uses_pkce,
        )

        url = variant.build_authorization_url(
            redirect_uri,
            attempt.state,
            code_challenge=pkce.code_challenge if pkce else None,
        )

        logger.info(
            f"Authorization redirect | provider={variant.key} platform={platform} "
            f"pkce={pkce is not None} redirect_uri={redirect_uri}"
        )

        return AuthorizationRedirect(
            url=url,
            state=attempt.state,
            attempt_key=attempt_key or attempt.state,
            provider=variant.key,
            platform=platform,
            redirect_uri=redirect_uri,
            requires_post_message=self._platforms.requires_post_message(platform),
        )
