"""
Unit tests for configuration management.
"""

import os
from unittest.mock import patch

import pytest

from photoshare.config import Config, Settings, get_settings, load_env_file, reset_settings
from photoshare.errors import StorageNotConfiguredError


class TestConfig:
    """Test cases for Config class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.config = Config()

    def test_get_string_value(self, monkeypatch):
        monkeypatch.setenv("TEST_KEY", "test_value")

        assert self.config.get("TEST_KEY") == "test_value"

    def test_get_with_default(self):
        assert self.config.get("NON_EXISTENT_KEY", "default_value") == "default_value"

    def test_blank_value_uses_default(self, monkeypatch):
        """An empty variable counts as unset."""
        monkeypatch.setenv("TEST_KEY", "   ")

        assert self.config.get("TEST_KEY", "default_value") == "default_value"

    def test_get_int_and_float(self, monkeypatch):
        monkeypatch.setenv("TEST_INT", "42")
        monkeypatch.setenv("TEST_FLOAT", "2.5")

        assert self.config.get("TEST_INT", cast_type=int) == 42
        assert self.config.get("TEST_FLOAT", cast_type=float) == 2.5

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("ON", True), ("false", False), ("no", False)])
    def test_get_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TEST_BOOL", raw)

        assert self.config.get("TEST_BOOL", cast_type=bool) is expected

    def test_invalid_cast_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("TEST_INT", "not_a_number")

        assert self.config.get("TEST_INT", 7, int) == 7

    def test_get_required(self, monkeypatch):
        with pytest.raises(ValueError, match="Required configuration 'MISSING' not found"):
            self.config.get_required("MISSING")

        monkeypatch.setenv("PRESENT", "yes")
        assert self.config.get_required("PRESENT") == "yes"

    def test_caching(self, monkeypatch):
        monkeypatch.setenv("TEST_KEY", "first")
        assert self.config.get("TEST_KEY") == "first"

        monkeypatch.setenv("TEST_KEY", "second")
        assert self.config.get("TEST_KEY") == "first"

        self.config.clear_cache()
        assert self.config.get("TEST_KEY") == "second"


class TestSettings:
    """Test cases for Settings."""

    def test_defaults(self):
        settings = Settings.from_config(Config())

        assert settings.admin_password == "1234"
        assert settings.port == 8080
        assert settings.signed_url_expires_seconds == 7 * 24 * 60 * 60
        assert settings.listing_mode == "metadata_record"
        assert settings.id_strategy == "random"
        assert settings.frontend_origins == ()
        assert settings.allows_any_origin is True
        assert settings.storage_configured is False

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")
        monkeypatch.setenv("GCS_BUCKET", "family-photos")
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "family")
        monkeypatch.setenv("FRONTEND_ORIGINS", "https://a.example, https://b.example ,")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("LISTING_MODE", " Object_Headers ")

        settings = Settings.from_env()

        assert settings.admin_password == "s3cret"
        assert settings.bucket_name == "family-photos"
        assert settings.frontend_origins == ("https://a.example", "https://b.example")
        assert settings.allows_any_origin is False
        assert settings.port == 9000
        assert settings.listing_mode == "object_headers"
        assert settings.storage_configured is True

    def test_require_storage_names_missing_settings(self):
        with pytest.raises(StorageNotConfiguredError) as exc_info:
            Settings(bucket_name="family-photos").require_storage()

        assert exc_info.value.missing == ["GOOGLE_CLOUD_PROJECT"]
        assert str(exc_info.value) == "Storage is not configured. Set GOOGLE_CLOUD_PROJECT env vars."
        assert exc_info.value.status_code == 500

    def test_placeholder_password_warning(self):
        """Only non-development deployments warn about the placeholder secret."""
        with patch("photoshare.config.logger") as mock_logger:
            Settings(environment="development").warn_if_insecure()
            mock_logger.warning.assert_not_called()

            Settings(environment="production").warn_if_insecure()
            mock_logger.warning.assert_called_once_with("placeholder_admin_password", environment="production")


class TestSettingsCache:
    """Test cases for the process-wide settings."""

    def test_get_settings_is_cached(self, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "first")
        first = get_settings()

        monkeypatch.setenv("ADMIN_PASSWORD", "second")
        assert get_settings() is first

        reset_settings()
        assert get_settings().admin_password == "second"


class TestLoadEnvFile:
    """Test cases for dotenv loading."""

    def test_missing_file(self, tmp_path):
        assert load_env_file(str(tmp_path / "missing.env")) is False

    def test_loads_without_overriding(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("GCS_BUCKET=from-file\nADMIN_PASSWORD=from-file\n")
        monkeypatch.setenv("ADMIN_PASSWORD", "from-env")

        try:
            assert load_env_file(str(env_file)) is True

            settings = Settings.from_env()
            assert settings.bucket_name == "from-file"
            assert settings.admin_password == "from-env"
        finally:
            os.environ.pop("GCS_BUCKET", None)


class TestSettingsValidation:
    """Unknown strategy names fail at startup, not per request."""

    def test_defaults_are_valid(self):
        Settings().validate()
        Settings(id_strategy="name_timestamp", listing_mode="object_headers").validate()

    def test_unknown_listing_mode(self):
        with pytest.raises(ValueError, match="Unknown LISTING_MODE 'database'"):
            Settings(listing_mode="database").validate()

    def test_unknown_id_strategy_from_env(self, monkeypatch):
        monkeypatch.setenv("ID_STRATEGY", "uuid")

        with pytest.raises(ValueError, match="Unknown ID_STRATEGY 'uuid'"):
            Settings.from_env()
