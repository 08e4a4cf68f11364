"""Failure classification.

Maps any exception raised during a login flow onto the closed set of
``ErrorKind`` values, logs it with redacted context, and produces the
client-safe payload a host returns to the user agent.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from socialgate.models.errors import (
    ErrorKind,
    InternalError,
    OAuthTransportError,
    SocialAuthError,
)

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "Unexpected error occurred during social login."

HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNSUPPORTED_PLATFORM: 400,
    ErrorKind.UNSUPPORTED_PROVIDER: 404,
    ErrorKind.PROVIDER_NOT_CONFIGURED: 500,
    ErrorKind.INVALID_OR_EXPIRED_STATE: 400,
    ErrorKind.MISSING_CODE_VERIFIER: 400,
    ErrorKind.OAUTH_TRANSPORT_ERROR: 502,
    ErrorKind.TOKEN_EXCHANGE_FAILED: 401,
    ErrorKind.USERINFO_FETCH_FAILED: 502,
    ErrorKind.AUTHORIZATION_DENIED: 401,
    ErrorKind.INTERNAL_ERROR: 500,
}


class ErrorClassifier:
    """Turns arbitrary exceptions into typed, loggable social login errors."""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def classify(self, exc: BaseException) -> SocialAuthError:
        """Return the typed error for ``exc``.

        Typed errors pass through unchanged. httpx transport faults that
        escaped a provider call become ``OAuthTransportError``; anything else
        becomes ``InternalError`` with a generic message.
        """
        if isinstance(exc, SocialAuthError):
            return exc

        if isinstance(exc, httpx.RequestError):
            classified: SocialAuthError = OAuthTransportError(
                "Failed contacting the identity provider.",
                exception=type(exc).__name__,
            )
        else:
            classified = InternalError(INTERNAL_MESSAGE, exception=type(exc).__name__)

        classified.__cause__ = exc
        return classified

    def to_payload(self, exc: BaseException) -> dict[str, Any]:
        """Log ``exc`` and return its client-safe representation.

        Typed errors log at warning with their redacted context; unexpected
        exceptions log at error with the traceback.
        """
        classified = self.classify(exc)

        if classified is exc:
            logger.warning(
                f"[socialgate] {type(exc).__name__}: {classified.message} "
                f"kind={classified.kind.value} context={classified.context}",
                exc_info=exc if self.debug else None,
            )
        else:
            logger.error(
                f"[socialgate] Unhandled exception {type(exc).__name__} "
                f"classified as {classified.kind.value}",
                exc_info=exc,
            )

        return classified.to_dict()

    @staticmethod
    def http_status(exc: BaseException) -> int:
        """Suggested HTTP status for a response describing ``exc``."""
        if isinstance(exc, SocialAuthError):
            return HTTP_STATUS[exc.kind]
        if isinstance(exc, httpx.RequestError):
            return HTTP_STATUS[ErrorKind.OAUTH_TRANSPORT_ERROR]
        return HTTP_STATUS[ErrorKind.INTERNAL_ERROR]
