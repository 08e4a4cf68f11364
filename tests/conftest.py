from typing import Any

import pytest

from socialgate.models.config import SocialGateSettings

PROVIDER_A: dict[str, Any] = {
    "client_id": "X",
    "client_secret": "provider-a-secret",
    "redirect_uri": "https://app.test/callback",
    "authorization_endpoint": "https://idp.test/authorize",
    "token_endpoint": "https://idp.test/token",
    "userinfo_endpoint": "https://idp.test/userinfo",
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> SocialGateSettings:
    return SocialGateSettings.from_mapping({"providers": {"providerA": PROVIDER_A}})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
