import pytest
from pydantic import ValidationError

from socialgate.settings import load_settings_from_env, settings_from_environ


class TestSettingsFromEnviron:
    def test_providers_and_fields(self):
        # Arrange
        environ = {
            "SOCIALGATE_PROVIDERS": "google, GitHub",
            "SOCIALGATE_GOOGLE_CLIENT_ID": "gid",
            "SOCIALGATE_GOOGLE_CLIENT_SECRET": "gsecret",
            "SOCIALGATE_GOOGLE_REDIRECT_URI": "https://app.test/social/google/callback",
            "SOCIALGATE_GITHUB_CLIENT_ID": "ghid",
            "SOCIALGATE_GITHUB_VALIDATE_STATE": "false",
            "SOCIALGATE_STATE_TTL": "300",
            "SOCIALGATE_UNRELATED": "ignored",
        }

        # Act
        settings = settings_from_environ(environ)

        # Assert
        assert list(settings.providers) == ["google", "github"]
        assert settings.providers["google"].client_secret == "gsecret"
        assert settings.providers["github"].validate_state is False
        assert settings.state_ttl == 300

    def test_platform_overrides_and_additions(self):
        # Arrange
        environ = {
            "SOCIALGATE_PLATFORMS": "desktop",
            "SOCIALGATE_PLATFORM_IOS_DEEP_LINK_SCHEME": "acme",
            "SOCIALGATE_PLATFORM_WEB_REQUIRES_POSTMESSAGE": "true",
            "SOCIALGATE_PLATFORM_DESKTOP_DEEP_LINK_SCHEME": "acme-desktop",
        }

        # Act
        settings = settings_from_environ(environ)

        # Assert
        assert settings.platforms["ios"].deep_link_scheme == "acme"
        assert settings.platforms["android"].deep_link_scheme == "myapp"
        assert settings.platforms["web"].requires_postmessage is True
        assert settings.platforms["desktop"].deep_link_scheme == "acme-desktop"

    def test_blank_values_ignored(self):
        settings = settings_from_environ(
            {"SOCIALGATE_PROVIDERS": "google", "SOCIALGATE_GOOGLE_CLIENT_ID": "  "}
        )

        assert settings.providers["google"].client_id is None

    def test_custom_prefix(self):
        settings = settings_from_environ(
            {"APP_PROVIDERS": "discord", "APP_DISCORD_CLIENT_ID": "d"}, prefix="APP_"
        )

        assert settings.providers["discord"].client_id == "d"

    def test_invalid_value_rejected(self):
        with pytest.raises(ValidationError):
            settings_from_environ({"SOCIALGATE_HTTP_TIMEOUT": "soon"})


class TestLoadSettingsFromEnv:
    def test_reads_dotenv_file(self, tmp_path, monkeypatch):
        # Arrange
        for name in ("SOCIALGATE_PROVIDERS", "SOCIALGATE_LINKEDIN_CLIENT_ID"):
            # Registered with monkeypatch so values loaded from the file are undone
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        env_file = tmp_path / ".env"
        env_file.write_text(
            "SOCIALGATE_PROVIDERS=linkedin\nSOCIALGATE_LINKEDIN_CLIENT_ID=li-client\n",
            encoding="utf-8",
        )

        # Act
        settings = load_settings_from_env(str(env_file))

        # Assert
        assert settings.providers["linkedin"].client_id == "li-client"

    def test_process_environment_wins_over_dotenv(self, tmp_path, monkeypatch):
        # Arrange
        monkeypatch.setenv("SOCIALGATE_PROVIDERS", "discord")
        monkeypatch.setenv("SOCIALGATE_DISCORD_CLIENT_ID", "from-env")
        env_file = tmp_path / ".env"
        env_file.write_text("SOCIALGATE_DISCORD_CLIENT_ID=from-file\n", encoding="utf-8")

        # Act
        settings = load_settings_from_env(str(env_file))

        # Assert
        assert settings.providers["discord"].client_id == "from-env"
