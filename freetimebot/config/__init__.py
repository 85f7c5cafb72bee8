"""Configuration management for freetimebot."""

from .settings import (
    DisplaySettings,
    FreeTimeBotSettings,
    LoggingSettings,
    get_settings,
    reset_settings,
    validate_tracking_config,
)

__all__ = [
    "DisplaySettings",
    "FreeTimeBotSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
    "validate_tracking_config",
]
