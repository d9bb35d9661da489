"""
Configuration file loader.

Reads plain YAML config files and SOPS-encrypted YAML files
(any file whose name ends in ``.enc.yaml``).
"""

import subprocess
from pathlib import Path
from typing import Any

import yaml


def is_encrypted(file_path: Path) -> bool:
    """Return True if the file name marks it as SOPS-encrypted."""
    return file_path.name.endswith((".enc.yaml", ".enc.yml"))


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """
    Read a plain YAML config file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not valid YAML or not a mapping
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    try:
        config = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    return _ensure_mapping(config, file_path)


def decrypt_sops_file(file_path: Path) -> dict[str, Any]:
    """
    Decrypt a SOPS-encrypted file and return parsed YAML.

    Args:
        file_path: Path to the encrypted file

    Returns:
        Decrypted configuration as dictionary

    Raises:
        FileNotFoundError: If file doesn't exist
        RuntimeError: If SOPS decryption fails
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Encrypted config file not found: {file_path}")

    try:
        result = subprocess.run(
            ["sops", "-d", str(file_path)],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"SOPS decryption failed: {e.stderr}") from e
    except FileNotFoundError:
        raise RuntimeError(
            "SOPS not installed. Install with: brew install sops (macOS) "
            "or download from https://github.com/getsops/sops/releases"
        )

    try:
        config = yaml.safe_load(result.stdout)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    return _ensure_mapping(config, file_path)


def read_config_file(file_path: Path) -> dict[str, Any]:
    """Read a config file, decrypting it first when it is SOPS-encrypted."""
    if is_encrypted(file_path):
        return decrypt_sops_file(file_path)
    return load_yaml_file(file_path)


def check_sops_installed() -> bool:
    """Check if SOPS is installed and accessible."""
    try:
        subprocess.run(
            ["sops", "--version"],
            capture_output=True,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def _ensure_mapping(config: Any, file_path: Path) -> dict[str, Any]:
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {file_path} must contain a mapping")
    return config
