"""Generic provider variant engine.

Every identity provider is described by one ``ProviderSpec`` row (endpoints,
scopes, PKCE and client authentication requirements, identity call shape and
field mapping). ``ProviderVariant`` binds a spec to its ``ProviderConfig`` and
an HTTP client and implements the uniform contract:

- ``build_authorization_url``
- ``exchange_code``
- ``fetch_identity``

Provider differences live in data, not subclasses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import httpx
import jwt
from pydantic import ValidationError

from socialgate.models.config import ProviderConfig
from socialgate.models.errors import (
    OAuthTransportError,
    ProviderNotConfiguredError,
    TokenExchangeFailedError,
    UserInfoFetchFailedError,
)
from socialgate.models.flow import AuthorizationRequest
from socialgate.models.identity import RawIdentity
from socialgate.models.tokens import TokenRequest, TokenResponse
from socialgate.primitives.assertion import build_client_assertion
from socialgate.primitives.redaction import fingerprint, redact

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Closed set of provider variants."""

    GOOGLE = "google"
    FACEBOOK = "facebook"
    APPLE = "apple"
    GITHUB = "github"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    DISCORD = "discord"
    MICROSOFT = "microsoft"
    GENERIC = "generic"


class ClientAuthMethod(str, Enum):
    """How the client authenticates at the token endpoint."""

    CLIENT_SECRET_POST = "client_secret_post"
    CLIENT_SECRET_BASIC = "client_secret_basic"
    PRIVATE_KEY_JWT = "private_key_jwt"
    NONE = "none"


class TokenEncoding(str, Enum):
    FORM = "form"
    JSON = "json"


class IdentitySource(str, Enum):
    """Where the identity comes from after the token exchange."""

    USERINFO = "userinfo"
    ID_TOKEN = "id_token"


Mapper = Callable[[RawIdentity], dict[str, Any]]


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of one provider variant.

    Endpoint templates may reference ``{version}`` (``api_version`` or
    ``default_version``).
    """

    kind: ProviderKind
    display_name: str
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str | None
    default_scopes: str
    mapper: Mapper
    auth_method: ClientAuthMethod = ClientAuthMethod.CLIENT_SECRET_POST
    token_encoding: TokenEncoding = TokenEncoding.FORM
    pkce: bool = False
    required_config: tuple[str, ...] = ("client_id", "client_secret", "redirect_uri")
    authorize_params: dict[str, str] = field(default_factory=dict)
    token_headers: dict[str, str] = field(default_factory=dict)
    userinfo_headers: dict[str, str] = field(default_factory=dict)
    userinfo_params: dict[str, str] = field(default_factory=dict)
    identity_source: IdentitySource = IdentitySource.USERINFO
    envelope: str | None = None
    subject_keys: tuple[str, ...] = ("sub", "id")
    secondary_email_endpoint: str | None = None
    default_version: str | None = None


class ProviderVariant:
    """A provider spec bound to configuration and an HTTP client.

    One instance per provider per process, created by the registry. Holds
    no per-attempt state; every method is safe to call concurrently.
    """

    def __init__(
        self,
        spec: ProviderSpec,
        config: ProviderConfig,
        http_client: httpx.AsyncClient,
    ):
        self.spec = spec
        self.config = config
        self._http_client = http_client

    @property
    def key(self) -> str:
        return self.config.key

    @property
    def kind(self) -> ProviderKind:
        return self.spec.kind

    @property
    def uses_pkce(self) -> bool:
        if self.config.use_pkce is not None:
            return self.config.use_pkce
        return self.spec.pkce

    @property
    def validates_state(self) -> bool:
        # The PKCE verifier is only reachable through the stored attempt
        return self.config.validate_state or self.uses_pkce

    @property
    def scope(self) -> str:
        return self.config.value("scopes") or self.spec.default_scopes

    @property
    def token_encoding(self) -> TokenEncoding:
        override = self.config.value("token_encoding")
        if override:
            return self._config_enum(TokenEncoding, "token_encoding", override)
        return self.spec.token_encoding

    @property
    def client_auth_method(self) -> ClientAuthMethod:
        if self.config.public_client is True:
            return ClientAuthMethod.NONE
        override = self.config.value("token_auth_method")
        if override:
            method = self._config_enum(ClientAuthMethod, "token_auth_method", override)
            # Signed assertions are only built in Apple's client secret format
            if method is not ClientAuthMethod.PRIVATE_KEY_JWT or self.kind is ProviderKind.APPLE:
                return method
            raise ProviderNotConfiguredError(
                f"{self.spec.display_name} provider cannot use private_key_jwt",
                missing="token_auth_method",
                provider=self.key,
            )
        if (
            self.spec.auth_method is ClientAuthMethod.CLIENT_SECRET_BASIC
            and self.config.public_client is None
            and not self.config.value("client_secret")
        ):
            # No secret and no explicit flag: treat as a public PKCE client
            return ClientAuthMethod.NONE
        return self.spec.auth_method

    @property
    def authorization_endpoint(self) -> str:
        return self._endpoint("authorization_endpoint")

    @property
    def token_endpoint(self) -> str:
        return self._endpoint("token_endpoint")

    @property
    def userinfo_endpoint(self) -> str | None:
        return self._endpoint("userinfo_endpoint") or None

    def _config_enum(self, enum_cls: type[Enum], name: str, value: str) -> Any:
        try:
            return enum_cls(value.strip().lower())
        except ValueError as e:
            raise ProviderNotConfiguredError(
                f"{self.spec.display_name} provider has an invalid {name}: {value}",
                missing=name,
                provider=self.key,
            ) from e

    def _endpoint(self, name: str) -> str:
        override = self.config.value(name)
        if override:
            return override
        template = getattr(self.spec, name) or ""
        version = self.config.value("api_version") or self.spec.default_version or ""
        return template.replace("{version}", version)

    def required_keys(self) -> tuple[str, ...]:
        keys = list(self.spec.required_config)
        if self.client_auth_method is ClientAuthMethod.NONE:
            keys = [k for k in keys if k != "client_secret"]
        return tuple(keys)

    def assert_configured(self) -> None:
        """Fail fast on the first required setting that is empty.

        Raises:
            ProviderNotConfiguredError: Naming the missing key
        """
        for name in self.required_keys():
            if not self.config.value(name):
                raise ProviderNotConfiguredError(
                    f"{self.spec.display_name} provider is not configured "
                    f"for key: {name}",
                    missing=name,
                    provider=self.key,
                )

    # Authorization

    def build_authorization_url(
        self,
        redirect_uri: str,
        state: str,
        code_challenge: str | None = None,
    ) -> str:
        """Assemble the provider's authorization URL.

        Never includes the client secret; only the token exchange needs it.
        """
        extra = dict(self.spec.authorize_params)
        extra.update(self.config.extra_authorize_params)

        request = AuthorizationRequest(
            authorization_endpoint=self.authorization_endpoint,
            client_id=self.config.client_id or "",
            redirect_uri=redirect_uri,
            state=state,
            scope=self.scope,
            code_challenge=code_challenge,
            code_challenge_method="S256" if code_challenge else None,
            extra_params=extra,
        )
        return request.build_authorization_url()

    # Token exchange

    async def exchange_code(
        self,
        code: str,
        redirect_uri: str,
        code_verifier: str | None = None,
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Performs exactly one request; a transport failure is never retried
        because the code is single-use.

        Raises:
            OAuthTransportError: If the token endpoint cannot be reached
            TokenExchangeFailedError: If the provider rejects the request or
                returns no usable access token
        """
        method = self.client_auth_method
        token_request = TokenRequest(
            token_endpoint=self.token_endpoint,
            code=code,
            redirect_uri=redirect_uri,
            client_id=self.config.client_id or "",
            code_verifier=code_verifier,
            client_secret=self._body_secret(method),
        )

        headers = {"Accept": "application/json", **self.spec.token_headers}
        kwargs: dict[str, Any] = {"headers": headers}
        if self.token_encoding is TokenEncoding.JSON:
            kwargs["json"] = token_request.to_form_data()
        else:
            headers.setdefault("Content-Type", "application/x-www-form-urlencoded")
            kwargs["data"] = token_request.to_form_data()
        if method is ClientAuthMethod.CLIENT_SECRET_BASIC:
            kwargs["auth"] = httpx.BasicAuth(
                self.config.client_id or "", self.config.client_secret or ""
            )

        logger.info(
            f"Token exchange attempt | provider={self.key} "
            f"code_hash={fingerprint(code)} auth={method.value} "
            f"pkce={code_verifier is not None} redirect_uri={redirect_uri}"
        )

        try:
            response = await self._http_client.post(self.token_endpoint, **kwargs)
        except httpx.RequestError as e:
            raise OAuthTransportError(
                f"Failed contacting {self.spec.display_name} token endpoint.",
                provider=self.key,
                endpoint="token",
            ) from e

        return self._parse_token_response(response)

    def _body_secret(self, method: ClientAuthMethod) -> str | None:
        if method is ClientAuthMethod.CLIENT_SECRET_POST:
            return self.config.client_secret
        if method is ClientAuthMethod.PRIVATE_KEY_JWT:
            return self._client_assertion()
        return None

    def _client_assertion(self) -> str:
        try:
            return build_client_assertion(
                team_id=self.config.team_id or "",
                key_id=self.config.key_id or "",
                client_id=self.config.client_id or "",
                private_key=self.config.private_key or "",
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise TokenExchangeFailedError(
                f"Failed to sign {self.spec.display_name} client secret (ES256).",
                provider=self.key,
                step="client_secret_sign",
            ) from e

    def _parse_token_response(self, response: httpx.Response) -> TokenResponse:
        """Turn the token endpoint response into a successful TokenResponse.

        Handles both error statuses (RFC 6749 Section 5.2) and the providers
        that report errors inside a 200 body.
        """
        payload = _json_object(response)

        if response.status_code >= 400:
            body = payload or {}
            logger.warning(
                f"Token exchange failed | provider={self.key} "
                f"status={response.status_code} error={body.get('error')}"
            )
            raise TokenExchangeFailedError(
                f"{self.spec.display_name} rejected the authorization code "
                f"({response.status_code}): {body.get('error', 'unknown_error')}",
                provider=self.key,
                status=response.status_code,
                token_response=body,
            )

        if payload is None:
            raise TokenExchangeFailedError(
                f"Invalid {self.spec.display_name} token response format.",
                provider=self.key,
                status=response.status_code,
            )

        try:
            token = TokenResponse.from_payload(payload)
        except ValidationError as e:
            raise TokenExchangeFailedError(
                f"Invalid {self.spec.display_name} token response format: "
                f"{e.error_count()} invalid field(s)",
                provider=self.key,
                token_response=_token_diagnostics(payload),
            ) from e

        if not token.is_success():
            logger.warning(
                f"Token exchange returned no access token | provider={self.key} "
                f"error={token.error}"
            )
            raise TokenExchangeFailedError(
                "Failed to exchange authorization code for access token.",
                provider=self.key,
                token_response=_token_diagnostics(payload),
            )

        logger.info(f"Token exchange SUCCESS | provider={self.key}")
        return token

    # Identity

    async def fetch_identity(self, token: TokenResponse) -> RawIdentity:
        """Fetch the provider's identity fields for an access token.

        Raises:
            OAuthTransportError: If the identity endpoint cannot be reached
            UserInfoFetchFailedError: If the primary identity source fails
                or yields neither a subject id nor an email
        """
        if self._use_id_token():
            data = self._id_token_claims(token)
            source = "id_token"
        else:
            data = await self._fetch_userinfo(token)
            source = self.userinfo_endpoint or "userinfo"

        if not self._has_identity(data):
            raise UserInfoFetchFailedError(
                f"Failed to retrieve {self.spec.display_name} user information.",
                provider=self.key,
                userinfo_response=data,
            )

        secondary: dict[str, Any] = {}
        if self.spec.secondary_email_endpoint and not data.get("email"):
            email = await self._fetch_secondary_email(token)
            if email:
                secondary["email"] = email

        return RawIdentity(
            provider=self.key, data=data, source=source, secondary=secondary
        )

    def map_identity(self, raw: RawIdentity) -> dict[str, Any]:
        """Map raw fields to canonical user fields with this provider's mapper."""
        return self.spec.mapper(raw)

    def _use_id_token(self) -> bool:
        if self.spec.identity_source is IdentitySource.ID_TOKEN:
            return True
        return self.userinfo_endpoint is None

    def _has_identity(self, data: dict[str, Any]) -> bool:
        if any(data.get(k) not in (None, "") for k in self.spec.subject_keys):
            return True
        return bool(data.get("email"))

    async def _fetch_userinfo(self, token: TokenResponse) -> dict[str, Any]:
        url = self.userinfo_endpoint or ""
        headers = {
            "Authorization": f"Bearer {token.access_token}",
            "Accept": "application/json",
            **self.spec.userinfo_headers,
        }
        kwargs: dict[str, Any] = {"headers": headers}
        if self.spec.userinfo_params:
            kwargs["params"] = dict(self.spec.userinfo_params)

        try:
            response = await self._http_client.get(url, **kwargs)
        except httpx.RequestError as e:
            raise OAuthTransportError(
                f"Failed contacting {self.spec.display_name} userinfo endpoint.",
                provider=self.key,
                endpoint="userinfo",
            ) from e

        payload = _json_object(response)
        if response.status_code >= 400 or payload is None:
            logger.warning(
                f"User info fetch failed | provider={self.key} "
                f"status={response.status_code}"
            )
            raise UserInfoFetchFailedError(
                f"Failed to retrieve {self.spec.display_name} user information "
                f"({response.status_code}).",
                provider=self.key,
                status=response.status_code,
                userinfo_response=payload,
            )

        if self.spec.envelope:
            inner = payload.get(self.spec.envelope)
            if not isinstance(inner, dict):
                raise UserInfoFetchFailedError(
                    f"Failed to retrieve {self.spec.display_name} user information.",
                    provider=self.key,
                    userinfo_response=payload,
                )
            return inner

        return payload

    def _id_token_claims(self, token: TokenResponse) -> dict[str, Any]:
        """Read identity claims from the ID token.

        The token arrived directly from the provider's token endpoint over
        TLS, which OpenID Connect Core 3.1.3.7 accepts in place of signature
        validation. The audience must still name this client.
        """
        if not token.id_token:
            raise UserInfoFetchFailedError(
                f"{self.spec.display_name} token response contained no id_token.",
                provider=self.key,
            )
        try:
            claims = jwt.decode(
                token.id_token,
                options={"verify_signature": False},
                algorithms=["RS256", "ES256"],
            )
        except jwt.PyJWTError as e:
            raise UserInfoFetchFailedError(
                f"Malformed {self.spec.display_name} id_token.",
                provider=self.key,
            ) from e

        audience = claims.get("aud")
        audiences = audience if isinstance(audience, list) else [audience]
        if self.config.client_id not in audiences:
            raise UserInfoFetchFailedError(
                f"{self.spec.display_name} id_token was issued to another client.",
                provider=self.key,
            )
        return claims

    async def _fetch_secondary_email(self, token: TokenResponse) -> str | None:
        """Best-effort lookup of the primary verified email.

        Any failure leaves the email absent; the primary profile already
        established the identity.
        """
        headers = {
            "Authorization": f"Bearer {token.access_token}",
            **self.spec.userinfo_headers,
        }
        try:
            response = await self._http_client.get(
                self.spec.secondary_email_endpoint, headers=headers
            )
            emails = response.json() if response.status_code < 400 else None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Secondary email lookup failed | provider={self.key}: {e}")
            return None

        if not isinstance(emails, list):
            logger.warning(
                f"Secondary email lookup unusable | provider={self.key} "
                f"status={response.status_code}"
            )
            return None

        for entry in emails:
            if isinstance(entry, dict) and entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        return None


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body, or None for anything else."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _token_diagnostics(payload: dict[str, Any]) -> dict[str, Any]:
    """Token response fields that are safe to keep in error context."""
    safe = redact(payload)
    for secret in ("access_token", "refresh_token", "id_token"):
        if secret in safe:
            safe[secret] = "***"
    return safe
