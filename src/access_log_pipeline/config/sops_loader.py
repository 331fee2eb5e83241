"""
YAML configuration loader with SOPS support.

Plain YAML files are read directly; files named *.enc.yaml are decrypted
through the sops binary first so the telemetry write key can live in the
repository encrypted.
"""

import subprocess
from pathlib import Path
from typing import Any

import yaml


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
        ValueError: If the decrypted content is not a YAML mapping
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

    return _parse_mapping(result.stdout, file_path)


def load_config_file(file_path: Path) -> dict[str, Any]:
    """
    Load a YAML config file, decrypting it with SOPS when needed.

    Args:
        file_path: Path to config.yaml or config.enc.yaml

    Returns:
        Configuration dictionary (empty for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        RuntimeError: If SOPS decryption fails
        ValueError: If the file is not valid YAML or not a mapping
    """
    if file_path.name.endswith((".enc.yaml", ".enc.yml")):
        return decrypt_sops_file(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    return _parse_mapping(file_path.read_text(encoding="utf-8"), file_path)


def _parse_mapping(text: str, file_path: Path) -> dict[str, Any]:
    """Parse YAML text that must hold a top-level mapping."""
    try:
        config = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(
            f"Config file {file_path} must contain a mapping, "
            f"got {type(config).__name__}"
        )
    return config
