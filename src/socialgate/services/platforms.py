"""Platform-aware redirect resolution.

Maps a platform key to the redirect target a provider should send the user
back to: the configured HTTPS callback for the web, or an application deep
link for mobile platforms.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from socialgate.models.config import PlatformConfig, SocialGateSettings
from socialgate.models.errors import (
    ProviderNotConfiguredError,
    SocialAuthError,
    UnsupportedPlatformError,
)
from socialgate.primitives.deeplink import DeepLinkCodec
from socialgate.services.security import validate_web_redirect_uri

logger = logging.getLogger(__name__)

WEB = "web"


class PlatformResolver:
    """Resolves redirect URIs and platform capabilities from configuration."""

    def __init__(
        self, settings: SocialGateSettings, codec: DeepLinkCodec | None = None
    ):
        self._settings = settings
        self._codec = codec or DeepLinkCodec()

    def default_platform(self) -> str:
        return self._settings.default_platform

    def is_supported(self, platform: str | None) -> bool:
        return bool(platform) and platform in self._settings.platforms

    def supported_platforms(self) -> set[str]:
        return set(self._settings.platforms)

    def platform_config(self, platform: str) -> PlatformConfig:
        """Return a platform's configuration.

        Raises:
            UnsupportedPlatformError: If the platform is not configured
        """
        config = self._settings.platforms.get(platform)
        if config is None:
            allowed = ", ".join(sorted(self._settings.platforms))
            raise UnsupportedPlatformError(
                f"Platform '{platform}' is not supported. Allowed: {allowed}",
                platform=platform,
            )
        return config

    def requires_post_message(self, platform: str) -> bool:
        return self.platform_config(platform).requires_postmessage

    def callback_path(self, provider_key: str, platform: str) -> str:
        template = self.platform_config(platform).callback_path
        return template.replace("{provider}", provider_key)

    def redirect_for(self, provider_key: str, platform: str) -> str:
        """Resolve the redirect URI a provider must send the user back to.

        Web returns the provider's configured callback URI unchanged; any
        other platform gets ``{scheme}://{callback_path}``. When the platform
        asks for it, ``platform=<key>`` is appended so one callback route can
        tell platforms apart.

        Raises:
            UnsupportedPlatformError: If the platform is unknown, or is a
                non-web platform without a deep link scheme
            ProviderNotConfiguredError: If the web callback URI is missing
        """
        config = self.platform_config(platform)

        if platform == WEB:
            redirect = self._web_callback(provider_key)
        else:
            if not config.deep_link_scheme:
                raise UnsupportedPlatformError(
                    f"Deep link scheme not configured for platform: {platform}",
                    platform=platform,
                )
            redirect = self._codec.build(
                config.deep_link_scheme, self.callback_path(provider_key, platform)
            )

        if config.append_platform_param:
            separator = "&" if "?" in redirect else "?"
            redirect = f"{redirect}{separator}{urlencode({'platform': platform})}"

        return redirect

    def all_redirect_urls(self, provider_key: str) -> dict[str, str | None]:
        """Redirect URI per configured platform; ``None`` where unavailable."""
        urls: dict[str, str | None] = {}
        for platform in self._settings.platforms:
            try:
                urls[platform] = self.redirect_for(provider_key, platform)
            except SocialAuthError as e:
                logger.debug(f"No redirect for {provider_key} on {platform}: {e}")
                urls[platform] = None
        return urls

    def validate_redirect_url(self, url: str, platform: str) -> bool:
        """Check that ``url`` is a plausible redirect target for the platform."""
        if platform == WEB:
            return validate_web_redirect_uri(url)
        config = self._settings.platforms.get(platform)
        if config is None:
            return False
        return self._codec.is_valid(url, config.deep_link_scheme)

    def detect_platform(
        self, user_agent: str | None, requested: str | None = None
    ) -> str:
        """Pick a platform from an explicit request value or the User-Agent."""
        if requested and self.is_supported(requested):
            return requested

        agent = (user_agent or "").lower()
        if any(device in agent for device in ("iphone", "ipad", "ipod")):
            detected = "ios"
        elif "android" in agent:
            detected = "android"
        else:
            detected = self.default_platform()

        return detected if self.is_supported(detected) else self.default_platform()

    def _web_callback(self, provider_key: str) -> str:
        provider = self._settings.providers.get(provider_key)
        redirect = provider.value("redirect_uri") if provider else None
        if not redirect:
            raise ProviderNotConfiguredError(
                f"Provider '{provider_key}' is not configured for key: redirect_uri",
                missing="redirect_uri",
                provider=provider_key,
            )
        return redirect
