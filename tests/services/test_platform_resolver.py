import pytest

from socialgate.models.config import SocialGateSettings
from socialgate.models.errors import ProviderNotConfiguredError, UnsupportedPlatformError
from socialgate.services.platforms import PlatformResolver


class TestRedirectFor:
    def setup_method(self):
        self.settings = SocialGateSettings.from_mapping(
            {
                "providers": {
                    "providerA": {"redirect_uri": "https://app.test/callback"},
                    "google": {"redirect_uri": "https://app.test/social/google/cb"},
                },
                "platforms": {
                    "web": {},
                    "ios": {"deep_link_scheme": "myapp"},
                    "android": {
                        "deep_link_scheme": "droid",
                        "callback_path": "/oauth/{provider}",
                    },
                    "desktop": {},
                },
            }
        )
        self.resolver = PlatformResolver(self.settings)

    @pytest.mark.parametrize("provider", ["providerA", "google"])
    def test_web_returns_configured_uri_unchanged(self, provider):
        redirect = self.resolver.redirect_for(provider, "web")

        assert redirect == self.settings.providers[provider].redirect_uri

    @pytest.mark.parametrize("provider", ["providerA", "google"])
    @pytest.mark.parametrize("platform", ["ios", "android"])
    def test_mobile_redirect_starts_with_scheme(self, provider, platform):
        scheme = self.settings.platforms[platform].deep_link_scheme

        redirect = self.resolver.redirect_for(provider, platform)

        assert redirect.startswith(f"{scheme}://")

    def test_ios_substitutes_provider_in_default_path(self):
        assert (
            self.resolver.redirect_for("providerA", "ios")
            == "myapp://social/providerA/callback"
        )

    def test_custom_callback_path(self):
        assert self.resolver.redirect_for("google", "android") == "droid://oauth/google"

    def test_unknown_platform_rejected(self):
        with pytest.raises(UnsupportedPlatformError, match="Allowed"):
            self.resolver.redirect_for("providerA", "windows")

    def test_platform_without_scheme_rejected(self):
        with pytest.raises(UnsupportedPlatformError, match="Deep link scheme"):
            self.resolver.redirect_for("providerA", "desktop")

    def test_web_without_redirect_uri(self):
        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            self.resolver.redirect_for("github", "web")
        assert exc_info.value.missing == "redirect_uri"

    def test_all_redirect_urls_maps_unavailable_to_none(self):
        urls = self.resolver.all_redirect_urls("providerA")

        assert urls == {
            "web": "https://app.test/callback",
            "ios": "myapp://social/providerA/callback",
            "android": "droid://oauth/providerA",
            "desktop": None,
        }


class TestPlatformParam:
    def test_platform_param_appended(self):
        # Arrange
        settings = SocialGateSettings.from_mapping(
            {
                "providers": {"p": {"redirect_uri": "https://app.test/cb?x=1"}},
                "platforms": {
                    "web": {"append_platform_param": True},
                    "ios": {"deep_link_scheme": "myapp", "append_platform_param": True},
                },
            }
        )
        resolver = PlatformResolver(settings)

        # Act / Assert
        assert resolver.redirect_for("p", "web") == "https://app.test/cb?x=1&platform=web"
        assert (
            resolver.redirect_for("p", "ios")
            == "myapp://social/p/callback?platform=ios"
        )


class TestPlatformQueries:
    def setup_method(self):
        self.settings = SocialGateSettings.from_mapping(
            {
                "platforms": {
                    "web": {"requires_postmessage": True},
                    "ios": {"deep_link_scheme": "myapp"},
                    "android": {"deep_link_scheme": "myapp"},
                }
            }
        )
        self.resolver = PlatformResolver(self.settings)

    def test_supported_platforms(self):
        assert self.resolver.supported_platforms() == {"web", "ios", "android"}
        assert self.resolver.is_supported("ios")
        assert not self.resolver.is_supported("tv")
        assert not self.resolver.is_supported(None)

    def test_requires_post_message(self):
        assert self.resolver.requires_post_message("web")
        assert not self.resolver.requires_post_message("ios")

    def test_validate_redirect_url(self):
        assert self.resolver.validate_redirect_url("https://app.test/cb", "web")
        assert self.resolver.validate_redirect_url("http://localhost:8000/cb", "web")
        assert not self.resolver.validate_redirect_url("http://app.test/cb", "web")
        assert not self.resolver.validate_redirect_url("/cb", "web")
        assert self.resolver.validate_redirect_url("myapp://cb", "ios")
        assert not self.resolver.validate_redirect_url("other://cb", "ios")
        assert not self.resolver.validate_redirect_url("myapp://cb", "tv")

    @pytest.mark.parametrize(
        "user_agent, requested, expected",
        [
            ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)", None, "ios"),
            ("Mozilla/5.0 (Linux; Android 14)", None, "android"),
            ("Mozilla/5.0 (Windows NT 10.0)", None, "web"),
            (None, None, "web"),
            ("Mozilla/5.0 (iPhone)", "web", "web"),
            ("Mozilla/5.0 (iPhone)", "tv", "ios"),
        ],
    )
    def test_detect_platform(self, user_agent, requested, expected):
        assert self.resolver.detect_platform(user_agent, requested) == expected
