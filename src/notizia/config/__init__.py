"""Configuration module."""

from .config_loader import (
    check_sops_installed,
    decrypt_sops_file,
    load_yaml_file,
    read_config_file,
)
from .constants import (
    AGE_CLASS_LABELS,
    AGE_CLASSES,
    CLOSED_STATUS_SYNONYMS,
    GENDER_LABELS,
    GENDERS,
    METHOD_LABELS,
    METHODS,
    PROBLEM_CATEGORIES,
    PROBLEM_LABELS,
    UNKNOWN_AGE_LABEL,
)
from .settings import ReportingSettings, Settings, clear_settings_cache, get_settings

__all__ = [
    # Vocabularies
    "GENDERS",
    "GENDER_LABELS",
    "METHODS",
    "METHOD_LABELS",
    "PROBLEM_CATEGORIES",
    "PROBLEM_LABELS",
    # Age classes
    "AGE_CLASSES",
    "AGE_CLASS_LABELS",
    "UNKNOWN_AGE_LABEL",
    # Case status
    "CLOSED_STATUS_SYNONYMS",
    # Settings
    "Settings",
    "ReportingSettings",
    "get_settings",
    "clear_settings_cache",
    # Config loading
    "read_config_file",
    "load_yaml_file",
    "decrypt_sops_file",
    "check_sops_installed",
]
