"""Unit tests for Config class configuration properties.

Each property is tested for:
- Default values when no environment variables set
- Environment variable overrides
- Invalid value handling (fallback to defaults with warning)
"""

import logging

import pytest

from src.utils.config import Config, get_config, reset_config
from src.utils.constants import DATABASE_FILENAME


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Reset config singleton and clear overrides around each test."""
    for name in (
        "DASHBOARD_TABS_ENV",
        "DASHBOARD_TABS_DATABASE_URL",
        "DASHBOARD_TABS_HOST",
        "DASHBOARD_TABS_PORT",
        "DASHBOARD_TABS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestDatabaseConfig:
    """Tests for database location settings."""

    def test_development_uses_project_data_dir(self):
        config = Config("development")
        assert config.database_path.parent.name == "data"
        assert config.database_path.name == DATABASE_FILENAME
        assert config.is_development
        assert not config.is_production

    def test_production_uses_documents_dir(self):
        config = Config("production")
        assert config.database_path.parent.name == "DashboardTabs"
        assert config.is_production

    def test_database_url_from_path(self):
        config = Config("development")
        assert config.database_url.startswith("sqlite:///")
        assert config.database_url.endswith(DATABASE_FILENAME)

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_TABS_DATABASE_URL", "sqlite:///:memory:")
        assert Config().database_url == "sqlite:///:memory:"

    def test_no_directories_created_on_init(self, monkeypatch, tmp_path):
        monkeypatch.setattr(Config, "_get_user_documents_dir", lambda self: tmp_path / "docs")
        config = Config()
        assert not (tmp_path / "docs").exists()
        config.ensure_directories()
        assert (tmp_path / "docs").is_dir()


class TestApiConfig:
    """Tests for API server settings."""

    def test_defaults(self):
        config = Config()
        assert config.api_host == "127.0.0.1"
        assert config.api_port == 8050
        assert config.log_level == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_TABS_HOST", "0.0.0.0")
        monkeypatch.setenv("DASHBOARD_TABS_PORT", "9000")
        monkeypatch.setenv("DASHBOARD_TABS_LOG_LEVEL", "debug")
        config = Config()
        assert config.api_host == "0.0.0.0"
        assert config.api_port == 9000
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("raw", ["invalid", "0", "-5"])
    def test_invalid_port_uses_default(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("DASHBOARD_TABS_PORT", raw)
        with caplog.at_level(logging.WARNING):
            config = Config()
            assert config.api_port == 8050
        assert "Invalid DASHBOARD_TABS_PORT" in caplog.text


class TestConfigSingleton:
    """Tests for get_config() and reset_config()."""

    def test_environment_from_env_var(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_TABS_ENV", "development")
        assert get_config().environment == "development"

    def test_singleton_keeps_first_environment(self, caplog):
        first = get_config("development")
        with caplog.at_level(logging.WARNING):
            second = get_config("production")
        assert second is first
        assert second.environment == "development"
        assert "singleton" in caplog.text

    def test_reset_config_rereads_environment(self, monkeypatch):
        get_config()
        monkeypatch.setenv("DASHBOARD_TABS_DATABASE_URL", "sqlite:///custom.db")
        reset_config()
        assert get_config().database_url == "sqlite:///custom.db"
