"""Social login client orchestration.

Wires platform resolution, challenge storage, the provider registry and the
exchange/identity services around one shared HTTP client, providing the two
calls a host needs: where to send the user, and who came back.
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlparse

import httpx

from socialgate.models.config import SocialGateSettings
from socialgate.models.flow import AuthorizationRedirect, AuthorizationResponse
from socialgate.models.identity import NormalizedIdentity
from socialgate.primitives.deeplink import DeepLinkCodec
from socialgate.services.authorization import AuthorizationRequestBuilder
from socialgate.services.challenges import ChallengeStore, EphemeralStore
from socialgate.services.errors import ErrorClassifier
from socialgate.services.identity import IdentityFetcher
from socialgate.services.normalizer import IdentityNormalizer
from socialgate.services.platforms import WEB, PlatformResolver
from socialgate.services.registry import ProviderRegistry
from socialgate.services.tokens import TokenExchanger

logger = logging.getLogger(__name__)


class SocialAuthClient:
    """Multi-provider social login client.

    Usage:
        async with SocialAuthClient(settings) as client:
            redirect = await client.redirect_url("google", "web")
            ...
            identity = await client.verify_code(
                "google", code, "web", state=state
            )

    An injected ``http_client`` is used as-is and not closed by ``close()``.
    """

    def __init__(
        self,
        settings: SocialGateSettings,
        store: EphemeralStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        codec: DeepLinkCodec | None = None,
    ):
        self.settings = settings
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout),
            headers={"User-Agent": settings.user_agent},
        )
        self.codec = codec or DeepLinkCodec()

        # Initialize service components
        self.platforms = PlatformResolver(settings, self.codec)
        self.challenges = ChallengeStore(store, ttl=settings.state_ttl)
        self.registry = ProviderRegistry(settings, self._http_client)
        self.authorization = AuthorizationRequestBuilder(
            self.registry, self.platforms, self.challenges
        )
        self.exchanger = TokenExchanger(self.registry, self.platforms, self.challenges)
        self.identity = IdentityFetcher(self.registry)
        self.normalizer = IdentityNormalizer(
            self.registry, include_raw=settings.include_raw
        )
        self.errors = ErrorClassifier()

    async def redirect_url(
        self,
        provider: str,
        platform: str | None = None,
        attempt_key: str | None = None,
    ) -> AuthorizationRedirect:
        """Start a login attempt and return the provider redirect."""
        return await self.authorization.build(provider, platform, attempt_key)

    async def verify_code(
        self,
        provider: str,
        code: str,
        platform: str | None = None,
        state: str | None = None,
        attempt_key: str | None = None,
    ) -> NormalizedIdentity:
        """Complete a login attempt.

        Performs the complete callback flow:
        1. Consume state and PKCE verifier
        2. Exchange code for tokens
        3. Fetch identity
        4. Normalize identity

        Raises:
            SocialAuthError: Any typed failure from the stages above
        """
        platform = platform or self.platforms.default_platform()
        logger.info(f"Verifying authorization code for {provider} on {platform}")

        token = await self.exchanger.exchange(
            provider, code, platform, state=state, attempt_key=attempt_key
        )
        raw = await self.identity.fetch(provider, token)
        identity = self.normalizer.normalize(provider, token, raw)

        logger.info(f"Login completed for {provider} on {platform}")
        return identity

    async def complete(
        self,
        provider: str,
        response: AuthorizationResponse,
        platform: str | None = None,
        attempt_key: str | None = None,
    ) -> NormalizedIdentity:
        """Complete a login attempt from a parsed callback.

        Raises:
            AuthorizationDeniedError: The provider returned ``error=``
            SocialAuthError: Any failure from ``verify_code``
        """
        response.raise_for_error(provider)
        return await self.verify_code(
            provider,
            response.code or "",
            platform,
            state=response.state,
            attempt_key=attempt_key,
        )

    def parse_callback(self, url: str, platform: str | None = None) -> AuthorizationResponse:
        """Parse code, state and error from a callback URL.

        Web callbacks are regular URLs; other platforms deliver deep links
        with their configured scheme.
        """
        platform = platform or self.platforms.default_platform()
        config = self.platforms.platform_config(platform)

        if platform != WEB and config.deep_link_scheme:
            _, params = self.codec.parse(url, config.deep_link_scheme)
            return AuthorizationResponse.from_params(params)

        query_params = parse_qs(urlparse(url).query)
        return AuthorizationResponse.from_params(query_params)

    def available_providers(self) -> list[str]:
        return self.registry.available()

    def redirect_urls(self, provider: str) -> dict[str, str | None]:
        """Redirect URI per configured platform, for provider console setup."""
        self.registry.resolve(provider)
        return self.platforms.all_redirect_urls(provider)

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> SocialAuthClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
