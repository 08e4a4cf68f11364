"""Exception hierarchy for social login failures.

Every failure surfaced by the library is a ``SocialAuthError`` carrying a
machine-readable ``kind`` so callers can tell "fix your config" from "retry the
flow" from "the user must restart login" without matching on strings.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from socialgate.primitives.redaction import redact


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    UNSUPPORTED_PLATFORM = "unsupported_platform"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    PROVIDER_NOT_CONFIGURED = "provider_not_configured"
    INVALID_OR_EXPIRED_STATE = "invalid_or_expired_state"
    MISSING_CODE_VERIFIER = "missing_code_verifier"
    OAUTH_TRANSPORT_ERROR = "oauth_transport_error"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    USERINFO_FETCH_FAILED = "userinfo_fetch_failed"
    AUTHORIZATION_DENIED = "authorization_denied"
    INTERNAL_ERROR = "internal_error"

    @property
    def retryable(self) -> bool:
        """Whether restarting the whole flow may succeed without changes."""
        return self is ErrorKind.OAUTH_TRANSPORT_ERROR

    @property
    def restart_required(self) -> bool:
        """Whether the attempt is dead and the user must authorize again."""
        return self in (
            ErrorKind.INVALID_OR_EXPIRED_STATE,
            ErrorKind.MISSING_CODE_VERIFIER,
            ErrorKind.AUTHORIZATION_DENIED,
        )

    @property
    def configuration_error(self) -> bool:
        return self in (
            ErrorKind.UNSUPPORTED_PLATFORM,
            ErrorKind.UNSUPPORTED_PROVIDER,
            ErrorKind.PROVIDER_NOT_CONFIGURED,
        )


class SocialAuthError(Exception):
    """Base exception for all social login errors.

    Carries a human message plus structured context. Context is redacted on
    construction so it is always safe to log.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = redact(context)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @property
    def restart_required(self) -> bool:
        return self.kind.restart_required

    @property
    def provider(self) -> str | None:
        return self.context.get("provider")

    def to_dict(self) -> dict[str, Any]:
        """Client-safe representation without context."""
        return {
            "error": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }


class UnsupportedPlatformError(SocialAuthError):
    """Raised when a platform key is not configured or lacks a redirect target."""

    kind = ErrorKind.UNSUPPORTED_PLATFORM


class UnsupportedProviderError(SocialAuthError):
    """Raised when a provider key is unknown or missing from configuration."""

    kind = ErrorKind.UNSUPPORTED_PROVIDER


class ProviderNotConfiguredError(SocialAuthError):
    """Raised when a provider is enabled but a required setting is empty."""

    kind = ErrorKind.PROVIDER_NOT_CONFIGURED

    def __init__(self, message: str, *, missing: str, **context: Any) -> None:
        super().__init__(message, missing=missing, **context)
        self.missing = missing


class InvalidOrExpiredStateError(SocialAuthError):
    """Raised when the callback state is unknown, expired, replayed or forged.

    Indicates either an expired attempt or a possible CSRF attack. The attempt
    must restart from authorization.
    """

    kind = ErrorKind.INVALID_OR_EXPIRED_STATE


class MissingCodeVerifierError(SocialAuthError):
    """Raised when PKCE is required but no verifier was stored for the attempt."""

    kind = ErrorKind.MISSING_CODE_VERIFIER


class OAuthTransportError(SocialAuthError):
    """Raised when the provider could not be reached (network, TLS, timeout)."""

    kind = ErrorKind.OAUTH_TRANSPORT_ERROR


class TokenExchangeFailedError(SocialAuthError):
    """Raised when the provider rejects the code or returns no usable token."""

    kind = ErrorKind.TOKEN_EXCHANGE_FAILED


class UserInfoFetchFailedError(SocialAuthError):
    """Raised when the identity endpoint fails or returns no id and no email."""

    kind = ErrorKind.USERINFO_FETCH_FAILED


class AuthorizationDeniedError(SocialAuthError):
    """Raised when the provider redirected back with an ``error`` parameter."""

    kind = ErrorKind.AUTHORIZATION_DENIED


class InternalError(SocialAuthError):
    """Fallback for unexpected failures mapped by the error classifier."""

    kind = ErrorKind.INTERNAL_ERROR
