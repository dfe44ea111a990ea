"""
Core module for Labwatch.

Contains configuration and exception types shared across all modules.
"""

from labwatch.core.config import AppConfig, get_config, reload_config
from labwatch.core.exceptions import (
    DeviceNotFoundError,
    InvalidStatusError,
    LabwatchError,
)

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "LabwatchError",
    "DeviceNotFoundError",
    "InvalidStatusError",
]
