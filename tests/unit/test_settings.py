"""
Unit tests for settings and config loading.
"""

import pytest

from notizia.config.config_loader import is_encrypted, load_yaml_file
from notizia.config.settings import (
    ReportingSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run each test in an empty directory with no NOTIZIA_* variables."""
    for key in (
        "NOTIZIA_STORAGE_BACKEND",
        "NOTIZIA_SQLITE_DB_PATH",
        "NOTIZIA_SAVED_QUERIES_PATH",
        "NOTIZIA_ANONYMIZE_EXPORTS",
        "NOTIZIA_INCLUDE_CROSSTABS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestSettingsDefaults:
    """Tests for default values and validation."""

    def test_defaults(self):
        """Defaults use the SQLite backend under data/."""
        settings = Settings()
        assert settings.storage_backend == "sqlite"
        assert settings.sqlite_db_path == "data/notizia.db"
        assert settings.reporting.anonymize_exports is False
        assert settings.validate() == []

    def test_invalid_backend(self):
        """Unknown backend is reported by validate()."""
        errors = Settings(storage_backend="postgres").validate()
        assert len(errors) == 1
        assert "storage.backend" in errors[0]

    def test_sqlite_requires_path(self):
        """SQLite without a path is invalid."""
        errors = Settings(sqlite_db_path="").validate()
        assert any("sqlite_db_path" in e for e in errors)

    def test_empty_saved_queries_path(self):
        """Reporting settings are validated too."""
        errors = Settings(reporting=ReportingSettings(saved_queries_path="")).validate()
        assert any("saved_queries_path" in e for e in errors)


class TestSettingsFromDict:
    """Tests for Settings.from_dict."""

    def test_nested_sections(self):
        """storage and reporting sections are read."""
        settings = Settings.from_dict(
            {
                "storage": {"backend": "memory"},
                "reporting": {"anonymize_exports": True, "saved_queries_path": "q.json"},
            }
        )
        assert settings.storage_backend == "memory"
        assert settings.reporting.anonymize_exports is True
        assert settings.reporting.saved_queries_path == "q.json"

    def test_missing_sections_use_defaults(self):
        """An empty mapping gives default settings."""
        assert Settings.from_dict({}) == Settings()

    def test_null_sections_use_defaults(self):
        """YAML 'storage:' with no body is treated as empty."""
        assert Settings.from_dict({"storage": None, "reporting": None}) == Settings()


class TestSettingsFromEnv:
    """Tests for Settings.from_env."""

    def test_env_variables(self, monkeypatch):
        """NOTIZIA_* variables override defaults."""
        monkeypatch.setenv("NOTIZIA_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("NOTIZIA_SQLITE_DB_PATH", "/tmp/x.db")
        monkeypatch.setenv("NOTIZIA_ANONYMIZE_EXPORTS", "TRUE")
        settings = Settings.from_env()
        assert settings.storage_backend == "memory"
        assert settings.sqlite_db_path == "/tmp/x.db"
        assert settings.reporting.anonymize_exports is True

    def test_invalid_bool_is_false(self, monkeypatch):
        """Anything other than 'true' is False."""
        monkeypatch.setenv("NOTIZIA_ANONYMIZE_EXPORTS", "yes please")
        assert Settings.from_env().reporting.anonymize_exports is False


class TestGetSettings:
    """Tests for get_settings and the config file loader."""

    def test_without_config_file_reads_env(self, monkeypatch):
        """No config file present falls back to environment variables."""
        monkeypatch.setenv("NOTIZIA_STORAGE_BACKEND", "memory")
        assert get_settings().storage_backend == "memory"

    def test_reads_yaml_file(self, tmp_path):
        """A plain YAML file is loaded."""
        path = tmp_path / "custom.yaml"
        path.write_text("storage:\n  backend: memory\n", encoding="utf-8")
        assert get_settings(str(path)).storage_backend == "memory"

    def test_default_config_yaml_in_cwd(self, tmp_path):
        """config.yaml in the working directory is picked up."""
        (tmp_path / "config.yaml").write_text(
            "storage:\n  sqlite_db_path: other.db\n", encoding="utf-8"
        )
        assert get_settings().sqlite_db_path == "other.db"

    def test_invalid_yaml_falls_back_to_env(self, tmp_path, monkeypatch):
        """A broken config file is logged and env vars are used."""
        path = tmp_path / "broken.yaml"
        path.write_text("storage: [unclosed\n", encoding="utf-8")
        monkeypatch.setenv("NOTIZIA_STORAGE_BACKEND", "memory")
        assert get_settings(str(path)).storage_backend == "memory"

    def test_settings_are_cached(self):
        """Repeated calls return the same instance until cleared."""
        first = get_settings()
        assert get_settings() is first
        clear_settings_cache()
        assert get_settings() is not first

    def test_is_encrypted(self, tmp_path):
        """Only .enc.yaml / .enc.yml files are treated as SOPS files."""
        assert is_encrypted(tmp_path / "config.enc.yaml")
        assert is_encrypted(tmp_path / "config.enc.yml")
        assert not is_encrypted(tmp_path / "config.yaml")

    def test_load_yaml_file_empty(self, tmp_path):
        """An empty YAML file loads as an empty mapping."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml_file(path) == {}
