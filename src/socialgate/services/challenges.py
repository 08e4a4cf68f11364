"""Single-use storage of CSRF state and PKCE verifiers.

The challenge store issues the state (and, when required, the PKCE pair) for
an authorization attempt and hands the stored values back exactly once at
code exchange. Storage is an injected ``EphemeralStore`` so hosts can back it
with their own cache; an in-memory TTL implementation is provided.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict
from typing import Any, Callable, Protocol

from cachetools import TLRUCache  # type: ignore[import-untyped]

from socialgate.models.errors import InvalidOrExpiredStateError
from socialgate.models.security import AuthorizationAttempt, PKCEParameters
from socialgate.primitives.pkce import PKCEManager
from socialgate.services.security import generate_state, states_match

logger = logging.getLogger(__name__)

DEFAULT_TTL = 600.0
DEFAULT_NAMESPACE = "socialgate:attempt"


class EphemeralStore(Protocol):
    """Key-value store with per-entry expiry and atomic get-and-delete.

    Implementations must guarantee that an entry returned by ``pop`` is never
    returned again, and that expired entries are never returned at all.
    """

    async def put(self, key: str, value: dict[str, Any], ttl: float) -> None: ...

    async def pop(self, key: str) -> dict[str, Any] | None: ...


class InMemoryEphemeralStore:
    """Process-local ``EphemeralStore`` on a time-aware LRU cache.

    The lock only guards dictionary operations; nothing awaits while holding
    it. When ``maxsize`` is reached the least recently used attempt is
    evicted, which the caller observes as an expired state.
    """

    def __init__(
        self,
        maxsize: int = 100_000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._cache: TLRUCache = TLRUCache(
            maxsize=maxsize, ttu=self._expires_at, timer=timer
        )
        self._lock = threading.Lock()

    @staticmethod
    def _expires_at(_key: str, value: tuple[dict[str, Any], float], now: float) -> float:
        return now + value[1]

    async def put(self, key: str, value: dict[str, Any], ttl: float) -> None:
        with self._lock:
            self._cache[key] = (dict(value), ttl)

    async def pop(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._cache.pop(key, None)
        return entry[0] if entry is not None else None

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)


class ChallengeStore:
    """Issues and consumes per-attempt state and PKCE verifiers.

    Attempts live under ``{namespace}:{attempt_key}``. Callers without their
    own attempt key (no session) get the state itself as the key, since the
    state round-trips through the provider anyway.
    """

    def __init__(
        self,
        store: EphemeralStore | None = None,
        ttl: float = DEFAULT_TTL,
        namespace: str = DEFAULT_NAMESPACE,
        pkce_manager: PKCEManager | None = None,
    ):
        self._store = store if store is not None else InMemoryEphemeralStore()
        self.ttl = ttl
        self.namespace = namespace
        self._pkce_manager = pkce_manager or PKCEManager()

    def _key(self, attempt_key: str) -> str:
        return f"{self.namespace}:{attempt_key}"

    async def create(
        self,
        attempt_key: str | None,
        *,
        provider: str,
        platform: str,
        redirect_uri: str,
        pkce: bool = False,
    ) -> tuple[AuthorizationAttempt, PKCEParameters | None]:
        """Issue a new state (and PKCE pair) and persist it with the TTL.

        Creating again under the same attempt key replaces the earlier
        attempt, so only the most recent state is accepted.

        Returns:
            Tuple of (attempt, pkce_parameters)
            - attempt: stored record; ``attempt.state`` goes in the URL
            - pkce_parameters: challenge for the URL, or None without PKCE
        """
        state = generate_state()
        pkce_params = self._pkce_manager.generate_parameters() if pkce else None

        attempt = AuthorizationAttempt(
            state=state,
            provider=provider,
            platform=platform,
            redirect_uri=redirect_uri,
            code_verifier=pkce_params.code_verifier if pkce_params else None,
        )
        key = attempt_key or state
        await self._store.put(self._key(key), asdict(attempt), self.ttl)

        logger.debug(
            f"Created attempt for {provider} on {platform} (pkce={pkce_params is not None})"
        )
        return attempt, pkce_params

    async def consume(
        self, attempt_key: str | None, supplied_state: str | None
    ) -> AuthorizationAttempt:
        """Validate the supplied state and remove the attempt.

        The entry is removed atomically before comparison, so a replayed or
        forged state can never be retried against the same attempt.

        Raises:
            InvalidOrExpiredStateError: If no attempt exists (never created,
                expired, or already consumed) or the state does not match
        """
        key = attempt_key or supplied_state
        if not key or not supplied_state:
            raise InvalidOrExpiredStateError(
                "Missing OAuth state. The login attempt must be restarted."
            )

        stored = await self._store.pop(self._key(key))
        if stored is None:
            raise InvalidOrExpiredStateError(
                "Invalid or expired OAuth state. Session may have expired."
            )

        attempt = AuthorizationAttempt(**stored)
        if not states_match(attempt.state, supplied_state):
            raise InvalidOrExpiredStateError(
                "State parameter mismatch - possible CSRF attack",
                provider=attempt.provider,
            )

        logger.debug(f"Consumed attempt for {attempt.provider} on {attempt.platform}")
        return attempt
