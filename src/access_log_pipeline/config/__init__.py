"""Configuration module."""

from .constants import (
    AWS_CLOUDFRONT_WEB_FORMAT,
    AWS_ELB_FORMAT,
    FORMAT_SERVICES,
    MAX_PROCESSED_OBJECTS,
)
from .settings import HoneycombSettings, SamplingSettings, Settings, load_settings
from .sops_loader import decrypt_sops_file, load_config_file

__all__ = [
    # Formats
    "AWS_ELB_FORMAT",
    "AWS_CLOUDFRONT_WEB_FORMAT",
    "FORMAT_SERVICES",
    "MAX_PROCESSED_OBJECTS",
    # Settings
    "Settings",
    "SamplingSettings",
    "HoneycombSettings",
    "load_settings",
    # Config loading
    "load_config_file",
    "decrypt_sops_file",
]
