"""
Application settings and configuration management.

Supports loading from:
1. YAML files, optionally SOPS-encrypted (config.enc.yaml)
2. Environment variables (fallback)

Settings are immutable. Build them once at process start with
load_settings() and pass the instance to every component that needs it.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .constants import (
    DEFAULT_API_HOST,
    DEFAULT_CLEAR_FREQUENCY_SEC,
    DEFAULT_DATASET,
    DEFAULT_LINE_TIMEOUT_SECONDS,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_SEND_FREQUENCY_MS,
    MAX_PROCESSED_OBJECTS,
)

logger = logging.getLogger(__name__)


def _safe_int(key: str, default: int) -> int:
    """Safely parse int from env var, using default on error."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _safe_float(key: str, default: float) -> float:
    """Safely parse float from env var, using default on error."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


# =============================================================================
# Sampling Settings
# =============================================================================


@dataclass(frozen=True)
class SamplingSettings:
    """
    Configuration for the adaptive sample-rate estimator.

    goal_sample_rate is the average rate the estimator converges toward
    across all keys; clear_frequency_sec is the length of the rolling
    window over which per-key counts are collected.
    """

    goal_sample_rate: int = DEFAULT_SAMPLE_RATE
    clear_frequency_sec: int = DEFAULT_CLEAR_FREQUENCY_SEC

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.goal_sample_rate < 1:
            errors.append(
                f"sampling.goal_sample_rate must be >= 1, got {self.goal_sample_rate}"
            )
        if self.clear_frequency_sec < 1:
            errors.append(
                f"sampling.clear_frequency_sec must be >= 1, "
                f"got {self.clear_frequency_sec}"
            )

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "goal_sample_rate": self.goal_sample_rate,
            "clear_frequency_sec": self.clear_frequency_sec,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "SamplingSettings":
        """Create from configuration dictionary."""
        return cls(
            goal_sample_rate=int(config.get("goal_sample_rate", DEFAULT_SAMPLE_RATE)),
            clear_frequency_sec=int(
                config.get("clear_frequency_sec", DEFAULT_CLEAR_FREQUENCY_SEC)
            ),
        )

    @classmethod
    def from_env(cls) -> "SamplingSettings":
        """Create from environment variables."""
        return cls(
            goal_sample_rate=_safe_int("SAMPLE_RATE", DEFAULT_SAMPLE_RATE),
            clear_frequency_sec=_safe_int(
                "SAMPLER_CLEAR_FREQUENCY_SEC", DEFAULT_CLEAR_FREQUENCY_SEC
            ),
        )


# =============================================================================
# Honeycomb Settings
# =============================================================================


@dataclass(frozen=True)
class HoneycombSettings:
    """Configuration for the telemetry backend the events are sent to."""

    write_key: str = ""
    dataset: str = DEFAULT_DATASET
    api_host: str = DEFAULT_API_HOST
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    send_frequency_ms: int = DEFAULT_SEND_FREQUENCY_MS

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if not self.write_key:
            errors.append(
                "honeycomb.write_key is required (available at "
                "https://ui.honeycomb.io/account)"
            )
        if not self.api_host.startswith(("http://", "https://")):
            errors.append(f"honeycomb.api_host must be an http(s) URL, got {self.api_host!r}")
        if self.max_batch_size < 1:
            errors.append(
                f"honeycomb.max_batch_size must be >= 1, got {self.max_batch_size}"
            )
        if self.send_frequency_ms < 1:
            errors.append(
                f"honeycomb.send_frequency_ms must be >= 1, got {self.send_frequency_ms}"
            )

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (write key redacted)."""
        return {
            "write_key": "***" if self.write_key else "",
            "dataset": self.dataset,
            "api_host": self.api_host,
            "max_batch_size": self.max_batch_size,
            "send_frequency_ms": self.send_frequency_ms,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "HoneycombSettings":
        """Create from configuration dictionary."""
        return cls(
            write_key=config.get("write_key", ""),
            dataset=config.get("dataset", DEFAULT_DATASET),
            api_host=config.get("api_host", DEFAULT_API_HOST),
            max_batch_size=int(config.get("max_batch_size", DEFAULT_MAX_BATCH_SIZE)),
            send_frequency_ms=int(
                config.get("send_frequency_ms", DEFAULT_SEND_FREQUENCY_MS)
            ),
        )

    @classmethod
    def from_env(cls) -> "HoneycombSettings":
        """Create from environment variables."""
        return cls(
            write_key=os.environ.get("HONEYCOMB_WRITE_KEY", ""),
            dataset=os.environ.get("HONEYCOMB_DATASET", DEFAULT_DATASET),
            api_host=os.environ.get("HONEYCOMB_API_HOST", DEFAULT_API_HOST),
            max_batch_size=_safe_int("MAX_BATCH_SIZE", DEFAULT_MAX_BATCH_SIZE),
            send_frequency_ms=_safe_int("SEND_FREQUENCY_MS", DEFAULT_SEND_FREQUENCY_MS),
        )


# =============================================================================
# Main Settings
# =============================================================================


@dataclass(frozen=True)
class Settings:
    """Application settings for the ingestion pipeline."""

    # Dedup state
    state_dir: str = "."
    max_processed_objects: int = MAX_PROCESSED_OBJECTS

    # Line conversion
    line_timeout_seconds: float = DEFAULT_LINE_TIMEOUT_SECONDS
    num_parsers: int = field(default_factory=lambda: os.cpu_count() or 1)

    sampling: SamplingSettings = field(default_factory=SamplingSettings)
    honeycomb: HoneycombSettings = field(default_factory=HoneycombSettings)

    def validate(self) -> list[str]:
        """Validate required settings are present. Returns list of errors."""
        errors = []

        if not Path(self.state_dir).is_dir():
            errors.append(f"Specified state directory does not exist: {self.state_dir}")
        if self.max_processed_objects < 1:
            errors.append(
                f"max_processed_objects must be >= 1, got {self.max_processed_objects}"
            )
        if self.line_timeout_seconds <= 0:
            errors.append(
                f"line_timeout_seconds must be > 0, got {self.line_timeout_seconds}"
            )
        if self.num_parsers < 1:
            errors.append(f"num_parsers must be >= 1, got {self.num_parsers}")

        # Validate nested settings
        errors.extend(self.sampling.validate())
        errors.extend(self.honeycomb.validate())

        return errors

    def dataset_for(self, service: str) -> str:
        """Resolve the dataset name for a service ('aws-$SERVICE-access' default)."""
        return self.honeycomb.dataset.replace("$SERVICE", service)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "state_dir": self.state_dir,
            "max_processed_objects": self.max_processed_objects,
            "line_timeout_seconds": self.line_timeout_seconds,
            "num_parsers": self.num_parsers,
            "sampling": self.sampling.to_dict(),
            "honeycomb": self.honeycomb.to_dict(),
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from YAML)."""
        state = config.get("state", {}) or {}
        pipeline = config.get("pipeline", {}) or {}

        return cls(
            state_dir=str(state.get("dir", ".")),
            max_processed_objects=int(
                state.get("max_processed_objects", MAX_PROCESSED_OBJECTS)
            ),
            line_timeout_seconds=float(
                pipeline.get("line_timeout_seconds", DEFAULT_LINE_TIMEOUT_SECONDS)
            ),
            num_parsers=int(pipeline.get("num_parsers", os.cpu_count() or 1)),
            sampling=SamplingSettings.from_dict(config.get("sampling", {}) or {}),
            honeycomb=HoneycombSettings.from_dict(config.get("honeycomb", {}) or {}),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            state_dir=os.environ.get("STATE_DIR", "."),
            max_processed_objects=_safe_int(
                "MAX_PROCESSED_OBJECTS", MAX_PROCESSED_OBJECTS
            ),
            line_timeout_seconds=_safe_float(
                "LINE_TIMEOUT_SECONDS", DEFAULT_LINE_TIMEOUT_SECONDS
            ),
            num_parsers=_safe_int("NUM_PARSERS", os.cpu_count() or 1),
            sampling=SamplingSettings.from_env(),
            honeycomb=HoneycombSettings.from_env(),
        )


# Default config file path
DEFAULT_CONFIG_PATH = Path("config.enc.yaml")


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load settings once at process start.

    Loads from the YAML config file if available (SOPS-encrypted when the
    name ends in .enc.yaml), otherwise from environment variables.

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        Settings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            from .sops_loader import load_config_file

            config = load_config_file(path)
            return Settings.from_dict(config)
        except (RuntimeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    return Settings.from_env()
