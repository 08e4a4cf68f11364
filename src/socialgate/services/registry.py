"""Provider registry.

Resolves a provider key to its configured ``ProviderVariant``. Variants are
built once and cached; configuration is immutable after load.
"""

from __future__ import annotations

import logging
import threading

import httpx

from socialgate.models.config import ProviderConfig, SocialGateSettings
from socialgate.models.errors import UnsupportedProviderError
from socialgate.providers.base import ProviderKind, ProviderVariant
from socialgate.providers.catalog import spec_for

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Maps configured provider keys to provider variants."""

    def __init__(self, settings: SocialGateSettings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http_client = http_client
        self._variants: dict[str, ProviderVariant] = {}
        self._lock = threading.Lock()

    def available(self) -> list[str]:
        """Configured provider keys, in configuration order."""
        return list(self._settings.providers)

    def is_configured(self, key: str | None) -> bool:
        return bool(key) and key in self._settings.providers

    def resolve(self, key: str | None) -> ProviderVariant:
        """Return the variant for a provider key.

        Resolution only checks that the provider exists; required settings
        are checked by ``ProviderVariant.assert_configured`` when a flow
        actually starts.

        Raises:
            UnsupportedProviderError: If the key is empty, not configured, or
                names an unknown variant kind
        """
        if not key:
            raise UnsupportedProviderError("Provider is required")

        variant = self._variants.get(key)
        if variant is not None:
            return variant

        config = self._settings.providers.get(key)
        if config is None:
            available = ", ".join(self.available()) or "none"
            raise UnsupportedProviderError(
                f"Provider '{key}' is not supported. Available: {available}",
                provider=key,
            )

        spec = spec_for(self._kind_of(config))
        with self._lock:
            variant = self._variants.setdefault(
                key, ProviderVariant(spec, config, self._http_client)
            )
        logger.debug(f"Resolved provider {key} as {spec.kind.value}")
        return variant

    @staticmethod
    def _kind_of(config: ProviderConfig) -> str:
        if config.value("kind"):
            return config.kind.strip().lower()
        # Keys naming a built-in provider select it implicitly
        try:
            return ProviderKind(config.key.lower()).value
        except ValueError:
            return ProviderKind.GENERIC.value
