"""
Application settings and configuration management.

Supports loading from:
1. Plain YAML config file (config.yaml)
2. SOPS-encrypted YAML files (config.enc.yaml)
3. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "sqlite")

DEFAULT_DB_PATH = "data/notizia.db"
DEFAULT_SAVED_QUERIES_PATH = "data/saved_queries.json"


def _safe_bool(key: str, default: bool) -> bool:
    """Safely parse bool from env var."""
    return os.environ.get(key, str(default).lower()).lower() == "true"


# =============================================================================
# Reporting Settings
# =============================================================================


@dataclass
class ReportingSettings:
    """Configuration for report runs and exports."""

    saved_queries_path: str = DEFAULT_SAVED_QUERIES_PATH
    anonymize_exports: bool = False
    include_crosstabs: bool = True

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if not self.saved_queries_path:
            errors.append("reporting.saved_queries_path must not be empty")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "saved_queries_path": self.saved_queries_path,
            "anonymize_exports": self.anonymize_exports,
            "include_crosstabs": self.include_crosstabs,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "ReportingSettings":
        """Create from configuration dictionary."""
        return cls(
            saved_queries_path=config.get(
                "saved_queries_path", DEFAULT_SAVED_QUERIES_PATH
            ),
            anonymize_exports=config.get("anonymize_exports", False),
            include_crosstabs=config.get("include_crosstabs", True),
        )

    @classmethod
    def from_env(cls) -> "ReportingSettings":
        """Create from environment variables."""
        return cls(
            saved_queries_path=os.environ.get(
                "NOTIZIA_SAVED_QUERIES_PATH", DEFAULT_SAVED_QUERIES_PATH
            ),
            anonymize_exports=_safe_bool("NOTIZIA_ANONYMIZE_EXPORTS", False),
            include_crosstabs=_safe_bool("NOTIZIA_INCLUDE_CROSSTABS", True),
        )


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """Application settings."""

    # Storage Backend Settings
    storage_backend: str = "sqlite"
    sqlite_db_path: str = DEFAULT_DB_PATH

    reporting: ReportingSettings = field(default_factory=ReportingSettings)

    def validate(self) -> list[str]:
        """Validate settings. Returns list of errors."""
        errors = []

        if self.storage_backend not in SUPPORTED_BACKENDS:
            errors.append(
                f"storage.backend must be one of {', '.join(SUPPORTED_BACKENDS)}, "
                f"got '{self.storage_backend}'"
            )

        if self.storage_backend == "sqlite" and not self.sqlite_db_path:
            errors.append("storage.sqlite_db_path is required for sqlite backend")

        errors.extend(self.reporting.validate())

        return errors

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from YAML)."""
        storage = config.get("storage", {}) or {}
        reporting = config.get("reporting", {}) or {}

        return cls(
            storage_backend=storage.get("backend", "sqlite"),
            sqlite_db_path=storage.get("sqlite_db_path", DEFAULT_DB_PATH),
            reporting=ReportingSettings.from_dict(reporting),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            storage_backend=os.environ.get("NOTIZIA_STORAGE_BACKEND", "sqlite"),
            sqlite_db_path=os.environ.get("NOTIZIA_SQLITE_DB_PATH", DEFAULT_DB_PATH),
            reporting=ReportingSettings.from_env(),
        )


# Default config file paths, checked in order
DEFAULT_CONFIG_PATHS = (Path("config.enc.yaml"), Path("config.yaml"))


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from a config file if available, otherwise from env vars.

    Args:
        config_path: Optional path to a YAML (or SOPS-encrypted YAML) config file

    Returns:
        Settings instance
    """
    candidates = (Path(config_path),) if config_path else DEFAULT_CONFIG_PATHS

    for path in candidates:
        if not path.exists():
            continue
        try:
            from .config_loader import read_config_file

            config = read_config_file(path)
            return Settings.from_dict(config)
        except (RuntimeError, OSError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Falling back to environment variables")
            break

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
