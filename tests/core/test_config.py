"""Tests for application configuration."""

import os
from unittest.mock import patch

import pytest

from migop.core.config import (
    Settings,
    clear_settings_cache,
    get_settings,
    load_settings_from_env,
)


class TestSettings:
    """Tests for Settings dataclass."""

    def test_default_settings(self):
        """Default settings are valid."""
        settings = Settings()
        assert settings.app_name == "MIGOP Editor"
        assert settings.environment == "development"
        assert settings.gateway_url is None

    def test_default_call_policy(self):
        """Remote call timeouts default to 30/60/30/60 seconds and no retries."""
        settings = Settings()
        assert settings.export_timeout_seconds == 30.0
        assert settings.replace_timeout_seconds == 60.0
        assert settings.counter_timeout_seconds == 30.0
        assert settings.history_timeout_seconds == 60.0
        assert settings.gateway_max_attempts == 1

    def test_is_production(self):
        assert Settings(environment="development").is_production is False
        prod = Settings(environment="production", gateway_url="https://script.example/exec")
        assert prod.is_production is True

    def test_production_requires_gateway_url(self):
        """Production environment requires a gateway."""
        with pytest.raises(ValueError, match="GATEWAY_URL is required"):
            Settings(environment="production")

    def test_uses_remote_gateway(self):
        assert Settings().uses_remote_gateway is False
        assert Settings(gateway_url="https://script.example/exec").uses_remote_gateway is True

    @pytest.mark.parametrize("field", [
        "export_timeout_seconds",
        "replace_timeout_seconds",
        "counter_timeout_seconds",
        "history_timeout_seconds",
        "chunk_max_millis",
    ])
    def test_rejects_non_positive_durations(self, field):
        with pytest.raises(ValueError, match=f"{field.upper()} must be positive"):
            Settings(**{field: 0})

    def test_rejects_zero_chunk_items(self):
        with pytest.raises(ValueError, match="CHUNK_MAX_ITEMS"):
            Settings(chunk_max_items=0)

    def test_rejects_zero_progress_interval(self):
        with pytest.raises(ValueError, match="PROGRESS_EVERY"):
            Settings(progress_every=0)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="GATEWAY_MAX_ATTEMPTS"):
            Settings(gateway_max_attempts=0)


class TestLoadSettingsFromEnv:
    """Tests for loading settings from environment."""

    def test_loads_defaults_without_env(self):
        """Loads default values when env vars not set."""
        with patch.dict(os.environ, {}, clear=True), patch("migop.core.config.load_dotenv"):
            settings = load_settings_from_env()
            assert settings.app_name == "MIGOP Editor"
            assert settings.chunk_max_items == 25

    def test_loads_gateway_from_env(self):
        env = {
            "GATEWAY_URL": "https://script.example/exec",
            "GATEWAY_TOKEN": "secret",
            "GATEWAY_DOCUMENT_ID": "doc-42",
        }
        with patch.dict(os.environ, env, clear=True), patch("migop.core.config.load_dotenv"):
            settings = load_settings_from_env()
            assert settings.gateway_url == "https://script.example/exec"
            assert settings.gateway_token == "secret"
            assert settings.gateway_document_id == "doc-42"

    def test_loads_numbers_from_env(self):
        env = {
            "EXPORT_TIMEOUT_SECONDS": "12.5",
            "GATEWAY_MAX_ATTEMPTS": "3",
            "CHUNK_MAX_ITEMS": "10",
            "PORT": "9001",
        }
        with patch.dict(os.environ, env, clear=True), patch("migop.core.config.load_dotenv"):
            settings = load_settings_from_env()
            assert settings.export_timeout_seconds == 12.5
            assert settings.gateway_max_attempts == 3
            assert settings.chunk_max_items == 10
            assert settings.port == 9001

    def test_loads_bool_from_env(self):
        with patch.dict(os.environ, {"DEBUG": "yes"}, clear=True), patch("migop.core.config.load_dotenv"):
            assert load_settings_from_env().debug is True

    def test_invalid_env_value_rejected(self):
        with patch.dict(os.environ, {"REPLACE_TIMEOUT_SECONDS": "-1"}, clear=True), \
                patch("migop.core.config.load_dotenv"):
            with pytest.raises(ValueError, match="REPLACE_TIMEOUT_SECONDS"):
                load_settings_from_env()


class TestGetSettings:
    """Tests for cached settings."""

    def test_cached(self):
        with patch.dict(os.environ, {}, clear=True), patch("migop.core.config.load_dotenv"):
            clear_settings_cache()
            try:
                assert get_settings() is get_settings()
            finally:
                clear_settings_cache()

    def test_clear_cache_reloads(self):
        with patch("migop.core.config.load_dotenv"):
            with patch.dict(os.environ, {"APP_NAME": "First"}, clear=True):
                clear_settings_cache()
                first = get_settings()
            with patch.dict(os.environ, {"APP_NAME": "Second"}, clear=True):
                clear_settings_cache()
                second = get_settings()
            clear_settings_cache()
        assert first.app_name == "First"
        assert second.app_name == "Second"
