"""End-to-end tests for SocialAuthClient over a mocked HTTP transport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from socialgate.client import SocialAuthClient
from socialgate.models.config import SocialGateSettings
from socialgate.models.errors import (
    AuthorizationDeniedError,
    InvalidOrExpiredStateError,
    TokenExchangeFailedError,
)
from socialgate.models.identity import NormalizedIdentity, UserInfo


class ProviderStub:
    """Records requests and answers token and userinfo calls."""

    def __init__(self, token_payload=None, userinfo_payload=None):
        self.token_payload = (
            token_payload if token_payload is not None else {"access_token": "at-1"}
        )
        self.userinfo_payload = (
            userinfo_payload if userinfo_payload is not None else {"id": "123"}
        )
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json=self.token_payload)
        if request.url.path.endswith("/userinfo"):
            return httpx.Response(200, json=self.userinfo_payload)
        return httpx.Response(404, json={"error": "not_found"})

    def token_form(self) -> dict[str, list[str]]:
        request = next(r for r in self.requests if r.url.path.endswith("/token"))
        return parse_qs(request.content.decode("ascii"))


def _client(settings: SocialGateSettings, stub: ProviderStub) -> SocialAuthClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return SocialAuthClient(settings, http_client=http_client)


class TestSocialAuthClientFlow:
    async def test_web_login_round_trip(self, settings):
        # Arrange
        stub = ProviderStub(
            token_payload={"access_token": "at-1", "expires_in": 3600},
            userinfo_payload={"id": "123"},
        )
        client = _client(settings, stub)

        # Act
        redirect = await client.redirect_url("providerA", "web")
        callback = client.parse_callback(
            f"https://app.test/callback?code=code-1&state={redirect.state}", "web"
        )
        identity = await client.verify_code(
            "providerA", callback.code, "web", state=callback.state
        )

        # Assert
        assert identity.userinfo.id == "123"
        assert identity.userinfo.email_verified is False
        assert identity.to_dict()["oauth"] == {
            "access_token": "at-1",
            "token_type": "Bearer",
            "expires_in": 3600,
        }

        form = stub.token_form()
        assert form["code"] == ["code-1"]
        assert form["redirect_uri"] == ["https://app.test/callback"]
        userinfo_request = stub.requests[-1]
        assert userinfo_request.headers["Authorization"] == "Bearer at-1"

    async def test_ios_login_via_deep_link(self, settings):
        # Arrange
        stub = ProviderStub(userinfo_payload={"sub": "s-9", "email": "a@x.test"})
        client = _client(settings, stub)

        # Act
        redirect = await client.redirect_url("providerA", "ios")
        callback = client.parse_callback(
            f"myapp://social/providerA/callback?code=c&state={redirect.state}", "ios"
        )
        identity = await client.complete("providerA", callback, "ios")

        # Assert
        assert identity.userinfo.id == "s-9"
        assert stub.token_form()["redirect_uri"] == ["myapp://social/providerA/callback"]

    async def test_unknown_state_never_reaches_provider(self, settings):
        stub = ProviderStub()
        client = _client(settings, stub)

        with pytest.raises(InvalidOrExpiredStateError):
            await client.verify_code("providerA", "code-1", "web", state="forged")
        assert stub.requests == []

    async def test_empty_token_payload(self, settings):
        stub = ProviderStub(token_payload={})
        client = _client(settings, stub)
        redirect = await client.redirect_url("providerA", "web")

        with pytest.raises(TokenExchangeFailedError):
            await client.verify_code("providerA", "c", "web", state=redirect.state)

    async def test_denied_callback(self, settings):
        # Arrange
        client = _client(settings, ProviderStub())
        callback = client.parse_callback(
            "https://app.test/callback?error=access_denied&state=s", "web"
        )

        # Act / Assert
        with pytest.raises(AuthorizationDeniedError):
            await client.complete("providerA", callback, "web")


class TestSocialAuthClientLifecycle:
    async def test_owned_http_client_closed(self, settings):
        # Arrange
        async with SocialAuthClient(settings) as client:
            http_client = client._http_client

        # Assert
        assert http_client.is_closed

    async def test_injected_http_client_left_open(self, settings):
        # Arrange
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(ProviderStub()))

        # Act
        async with SocialAuthClient(settings, http_client=http_client):
            pass

        # Assert
        assert not http_client.is_closed
        await http_client.aclose()

    async def test_user_agent_header(self, settings):
        client = SocialAuthClient(settings)

        assert client._http_client.headers["User-Agent"] == "socialgate"
        await client.close()


class TestSocialAuthClientHelpers:
    def test_redirect_urls_per_platform(self, settings):
        client = SocialAuthClient(settings)

        assert client.redirect_urls("providerA") == {
            "web": "https://app.test/callback",
            "ios": "myapp://social/providerA/callback",
            "android": "myapp://social/providerA/callback",
        }

    def test_available_providers(self, settings):
        assert SocialAuthClient(settings).available_providers() == ["providerA"]

    def test_parse_callback_without_code(self, settings):
        client = SocialAuthClient(settings)

        response = client.parse_callback("https://app.test/callback?state=s", "web")

        assert response.code is None
        assert response.state == "s"
        assert not response.is_success()

    def test_record_is_json_serializable(self, settings):
        identity = NormalizedIdentity(
            provider="providerA",
            oauth={"access_token": "at", "token_type": "Bearer"},
            userinfo=UserInfo(id="1", name="n", username="u"),
            raw={"data": {"id": "1"}},
        )

        assert json.loads(json.dumps(identity.to_dict()))["userinfo"]["username"] == "u"
