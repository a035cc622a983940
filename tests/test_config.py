"""Tests for settings loading and validation."""

import pytest

from huifu_gateway.config import (
    PRODUCTION_BASE_URL,
    TEST_BASE_URL,
    ProviderSettings,
    Settings,
    get_settings,
)

ENV_VARS = (
    "HOST",
    "PORT",
    "DEBUG",
    "LOG_LEVEL",
    "CORS_ALLOW_ORIGINS",
    "HUIFU_BASE_URL",
    "HUIFU_TEST_BASE_URL",
    "HUIFU_PUBLIC_KEY",
    "HUIFU_TIMEOUT_SECONDS",
    "HUIFU_FORCE_SIMULATED",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Unset gateway variables and run from a directory without a .env file."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestSettingsFromEnv:
    """Test environment loading."""

    def test_defaults(self, clean_env):
        """Unset variables fall back to defaults."""
        settings = Settings.from_env()

        assert settings.port == 8080
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.cors_allow_origins == ("*",)
        assert settings.provider.base_url == PRODUCTION_BASE_URL
        assert settings.provider.test_base_url == TEST_BASE_URL
        assert settings.provider.public_key is None
        assert settings.provider.timeout_seconds == 30.0
        assert settings.provider.force_simulated is False

    def test_overrides(self, clean_env):
        """Environment variables override defaults."""
        clean_env.setenv("PORT", "9000")
        clean_env.setenv("DEBUG", "true")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
        clean_env.setenv("HUIFU_PUBLIC_KEY", "MIIBIjANBg")
        clean_env.setenv("HUIFU_TIMEOUT_SECONDS", "12.5")
        clean_env.setenv("HUIFU_FORCE_SIMULATED", "1")

        settings = Settings.from_env()

        assert settings.PORT == 9000
        assert settings.DEBUG is True
        assert settings.log_level == "DEBUG"
        assert settings.cors_allow_origins == ("https://a.example", "https://b.example")
        assert settings.provider.public_key == "MIIBIjANBg"
        assert settings.provider.timeout_seconds == 12.5
        assert settings.provider.force_simulated is True

    def test_empty_public_key_is_none(self, clean_env):
        """An empty HUIFU_PUBLIC_KEY counts as unset."""
        clean_env.setenv("HUIFU_PUBLIC_KEY", "")

        assert Settings.from_env().provider.public_key is None

    def test_get_settings_cached(self, clean_env):
        """get_settings returns one instance until the cache is cleared."""
        assert get_settings() is get_settings()


class TestProviderSettings:
    """Test provider settings validation."""

    def test_base_url_for(self):
        """Environment selects the endpoint."""
        settings = ProviderSettings()

        assert settings.base_url_for(production=True) == PRODUCTION_BASE_URL
        assert settings.base_url_for(production=False) == TEST_BASE_URL

    @pytest.mark.parametrize("timeout", [0, -1, 301])
    def test_invalid_timeout(self, timeout):
        """Timeouts must be in (0, 300]."""
        with pytest.raises(ValueError):
            ProviderSettings(timeout_seconds=timeout)

    def test_invalid_url(self):
        """Base URLs must be http(s)."""
        with pytest.raises(ValueError):
            ProviderSettings(base_url="ftp://huifu")
