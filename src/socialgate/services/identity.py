"""Identity retrieval after a successful token exchange."""

from __future__ import annotations

import logging

from socialgate.models.identity import RawIdentity
from socialgate.models.tokens import TokenResponse
from socialgate.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class IdentityFetcher:
    """Fetches the raw identity fields for an access token."""

    def __init__(self, registry: ProviderRegistry):
        self._registry = registry

    async def fetch(self, provider: str, token: TokenResponse) -> RawIdentity:
        """Call the provider's identity endpoint(s).

        Raises:
            OAuthTransportError: Identity endpoint unreachable
            UserInfoFetchFailedError: Primary call failed, or it returned
                neither a subject id nor an email
        """
        variant = self._registry.resolve(provider)
        raw = await variant.fetch_identity(token)
        logger.debug(
            f"Fetched identity for {variant.key} from {raw.source} "
            f"(secondary={sorted(raw.secondary)})"
        )
        return raw
