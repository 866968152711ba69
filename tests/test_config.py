"""
Unit tests for yelp_camp/config.py - Settings loading and validation.

Tests cover:
- Development defaults for the secret and database URL
- Production refusing to start without SECRET or DB_URL
- Environment variable parsing and caching
- Pipeline stage skipping
"""

from datetime import timedelta
from pathlib import Path

import pytest

from yelp_camp.config import (
    DEFAULT_DB_URL,
    DEV_SECRET,
    PACKAGE_ROOT,
    PIPELINE_STAGES,
    ConfigurationError,
    clear_settings_cache,
    get_settings,
    get_settings_override,
)

_ENV_NAMES = (
    "APP_ENV",
    "NODE_ENV",
    "SECRET",
    "DB_URL",
    "PORT",
    "PIPELINE_SKIP",
    "SESSION_ROLLING",
    "DEBUG",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate every test from the caller's environment and .env file."""
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestDevelopmentDefaults:
    """Test cases for non-production fallbacks."""

    def test_secret_falls_back_to_dev_value(self):
        """Test that a missing SECRET uses the development secret."""
        settings = get_settings_override({"app_env": "development"})
        assert settings.secret == DEV_SECRET

    def test_db_url_falls_back_to_local_sqlite(self):
        """Test that a missing DB_URL uses the local SQLite file."""
        settings = get_settings_override({"app_env": "test"})
        assert settings.db_url == DEFAULT_DB_URL

    def test_default_port_and_session_lifetime(self):
        """Test the documented defaults."""
        settings = get_settings_override({"app_env": "development"})
        assert settings.port == 3000
        assert settings.session_lifetime == timedelta(days=7)
        assert settings.session_touch_after == 24 * 60 * 60
        assert settings.session_rolling is False
        assert settings.session_cookie_secure is False
        assert settings.session_save_uninitialized is False

    def test_is_production_false_outside_production(self):
        """Test is_production for development settings."""
        assert get_settings_override({"app_env": "development"}).is_production is False


class TestProductionRequirements:
    """Test cases for settings in production."""

    def test_missing_secret_raises(self):
        """Test that production refuses to start without a secret."""
        with pytest.raises(ConfigurationError, match="SECRET"):
            get_settings_override({"app_env": "production", "db_url": "sqlite://"})

    def test_missing_db_url_raises(self):
        """Test that production refuses to start without a database URL."""
        with pytest.raises(ConfigurationError, match="DB_URL"):
            get_settings_override({"app_env": "production", "secret": "s3cret"})

    def test_both_present_is_accepted(self):
        """Test that production with both values configured works."""
        settings = get_settings_override(
            {"app_env": "production", "secret": "s3cret", "db_url": "sqlite://"}
        )
        assert settings.is_production is True
        assert settings.secret == "s3cret"

    def test_production_ignores_dotenv(self, tmp_path):
        """Test that a .env file cannot satisfy production requirements."""
        (tmp_path / ".env").write_text("SECRET=from-file\nDB_URL=sqlite://\n")
        with pytest.raises(ConfigurationError):
            get_settings_override({"app_env": "production"})

    def test_production_from_environment(self, monkeypatch):
        """Test that real environment variables satisfy production."""
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("SECRET", "env-secret")
        monkeypatch.setenv("DB_URL", "sqlite://")
        settings = get_settings()
        assert settings.secret == "env-secret"
        assert settings.db_url == "sqlite://"

    def test_node_env_selects_production(self, monkeypatch, tmp_path):
        """Test that NODE_ENV=production is honoured when APP_ENV is unset."""
        (tmp_path / ".env").write_text("SECRET=from-file\nDB_URL=sqlite://\n")
        monkeypatch.setenv("NODE_ENV", "production")
        with pytest.raises(ConfigurationError, match="SECRET"):
            get_settings()

    def test_app_env_wins_over_node_env(self, monkeypatch):
        """Test that APP_ENV takes precedence when both are set."""
        monkeypatch.setenv("APP_ENV", "development")
        monkeypatch.setenv("NODE_ENV", "production")
        assert get_settings().is_production is False


class TestEnvironmentLoading:
    """Test cases for reading values from the environment."""

    def test_port_from_environment(self, monkeypatch):
        """Test that PORT is read and coerced to int."""
        monkeypatch.setenv("PORT", "8080")
        assert get_settings().port == 8080

    def test_invalid_port_raises(self, monkeypatch):
        """Test that an out-of-range port is a configuration error."""
        monkeypatch.setenv("PORT", "70000")
        with pytest.raises(ConfigurationError):
            get_settings()

    def test_dotenv_used_outside_production(self, tmp_path):
        """Test that .env values are read in development."""
        (tmp_path / ".env").write_text("SECRET=from-file\n")
        assert get_settings().secret == "from-file"

    def test_get_settings_is_cached(self):
        """Test that repeated calls return the same instance."""
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch):
        """Test that clearing the cache re-reads the environment."""
        first = get_settings()
        monkeypatch.setenv("PORT", "4000")
        clear_settings_cache()
        second = get_settings()
        assert second is not first
        assert second.port == 4000

    def test_override_is_not_cached(self):
        """Test that overrides build a fresh instance each time."""
        first = get_settings_override({"port": 5000})
        second = get_settings_override({"port": 5000})
        assert first is not second
        assert get_settings().port == 3000


class TestPipelineSkip:
    """Test cases for PIPELINE_SKIP parsing."""

    def test_empty_by_default(self):
        """Test that no stage is skipped by default."""
        assert get_settings_override({"app_env": "test"}).skipped_stages == frozenset()

    def test_comma_separated_names(self):
        """Test that names are split and stripped."""
        settings = get_settings_override({"pipeline_skip": " static, flash ,"})
        assert settings.skipped_stages == frozenset({"static", "flash"})

    def test_unknown_stage_raises(self):
        """Test that a typo in PIPELINE_SKIP is rejected."""
        with pytest.raises(ConfigurationError, match="teleport"):
            get_settings_override({"pipeline_skip": "static,teleport"})

    def test_every_stage_can_be_skipped(self):
        """Test that all known stage names are accepted."""
        settings = get_settings_override({"pipeline_skip": ",".join(PIPELINE_STAGES)})
        assert settings.skipped_stages == frozenset(PIPELINE_STAGES)


class TestPublicPath:  # pylint: disable=too-few-public-methods
    """Test cases for the public directory setting."""

    def test_defaults_to_package_public_dir(self):
        """Test the bundled public directory is used by default."""
        settings = get_settings_override({"app_env": "test"})
        assert settings.public_path == PACKAGE_ROOT / "public"

    def test_custom_directory_is_resolved(self, tmp_path):
        """Test that a configured directory becomes absolute."""
        settings = get_settings_override({"public_dir": str(tmp_path)})
        assert settings.public_path == Path(tmp_path).resolve()
