"""Authorization code exchange service.

Validates and consumes the attempt's state (and PKCE verifier) before handing
the code to the provider variant's token endpoint call (RFC 6749 Section
4.1.3, RFC 7636).
"""

from __future__ import annotations

import logging

from socialgate.models.errors import (
    InvalidOrExpiredStateError,
    MissingCodeVerifierError,
    TokenExchangeFailedError,
)
from socialgate.models.security import AuthorizationAttempt
from socialgate.models.tokens import TokenResponse
from socialgate.primitives.redaction import fingerprint
from socialgate.providers.base import ProviderVariant
from socialgate.services.challenges import ChallengeStore
from socialgate.services.platforms import PlatformResolver
from socialgate.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Exchanges authorization codes for tokens.

    Each exchange consumes its attempt exactly once and performs exactly one
    token request. Nothing is retried: authorization codes are single-use.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        platforms: PlatformResolver,
        challenges: ChallengeStore,
    ):
        self._registry = registry
        self._platforms = platforms
        self._challenges = challenges

    async def exchange(
        self,
        provider: str,
        code: str,
        platform: str | None = None,
        state: str | None = None,
        attempt_key: str | None = None,
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Args:
            provider: Configured provider key
            code: Authorization code from the callback
            platform: Platform the attempt was started for
            state: State returned by the provider on the callback
            attempt_key: Key given to ``AuthorizationRequestBuilder.build``;
                defaults to the state

        Returns:
            TokenResponse: Successful response carrying an access token

        Raises:
            InvalidOrExpiredStateError: Missing, unknown, replayed or
                mismatched state, or a state issued for another provider or
                platform
            MissingCodeVerifierError: PKCE is required but the attempt holds
                no verifier
            OAuthTransportError: Token endpoint unreachable
            TokenExchangeFailedError: Provider rejected the code or returned
                no access token
        """
        variant = self._registry.resolve(provider)
        platform = platform or self._platforms.default_platform()
        self._platforms.platform_config(platform)
        variant.assert_configured()

        if not code:
            raise TokenExchangeFailedError(
                "Authorization code is required", provider=variant.key
            )

        code_verifier: str | None = None
        if variant.validates_state:
            attempt = await self._challenges.consume(attempt_key, state)
            self._check_binding(attempt, variant, platform)
            redirect_uri = attempt.redirect_uri
            code_verifier = attempt.code_verifier
            if variant.uses_pkce and not code_verifier:
                raise MissingCodeVerifierError(
                    "PKCE code verifier not found for this attempt. "
                    "The login attempt must be restarted.",
                    provider=variant.key,
                )
        else:
            # No stored attempt to read from; recompute the same redirect
            redirect_uri = self._platforms.redirect_for(variant.key, platform)

        logger.debug(
            f"Exchanging code for {variant.key} on {platform} "
            f"(code_hash={fingerprint(code)})"
        )
        return await variant.exchange_code(code, redirect_uri, code_verifier)

    @staticmethod
    def _check_binding(
        attempt: AuthorizationAttempt, variant: ProviderVariant, platform: str
    ) -> None:
        if attempt.provider != variant.key or attempt.platform != platform:
            logger.warning(
                f"State issued for {attempt.provider}/{attempt.platform} "
                f"presented to {variant.key}/{platform}"
            )
            raise InvalidOrExpiredStateError(
                "OAuth state was issued for a different provider or platform.",
                provider=variant.key,
                platform=platform,
            )
