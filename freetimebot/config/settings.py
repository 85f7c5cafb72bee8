"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from datetime import tzinfo
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml
from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..freetime.models import TrackingConfig
from ..ics.models import CalendarSource
from ..utils.helpers import get_local_timezone

ENV_PREFIX = "FREETIMEBOT_"


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    # Console Logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="INFO",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )

    # File Logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(
        default="DEBUG",
        description="File log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    file_directory: Optional[str] = Field(
        default=None, description="Custom log directory (defaults to data_dir/logs)"
    )
    file_prefix: str = Field(default="freetimebot", description="Log file prefix")
    max_log_files: int = Field(default=5, description="Maximum number of log files to keep")
    include_function_names: bool = Field(
        default=True, description="Include function names and line numbers in file logs"
    )

    # Third-party Libraries
    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class DisplaySettings(BaseModel):
    """What the presenter shows after a refresh."""

    show_status_line: bool = Field(default=True, description="Print the one-line status")
    show_warning_modal: bool = Field(
        default=True, description="Show the details view for critical warnings"
    )
    show_warning_notice: bool = Field(default=True, description="Show warning notices")


def validate_tracking_config(config: TrackingConfig) -> TrackingConfig:
    """Reject tracking values a user cannot sensibly mean.

    Raises:
        ValueError: If an hour is outside 0-23, a threshold is negative or
            the lookahead is shorter than one day
    """
    for name in ("tracking_start_hour", "tracking_end_hour"):
        hour = getattr(config, name)
        if not 0 <= hour <= 23:
            raise ValueError(f"{name} must be between 0 and 23, got {hour}")

    for name in ("warning_threshold_hours", "critical_threshold_hours"):
        if getattr(config, name) < 0:
            raise ValueError(f"{name} must not be negative")

    if config.lookahead_days < 1:
        raise ValueError(f"lookahead_days must be at least 1, got {config.lookahead_days}")

    return config


def assign_yaml_values(target: BaseModel, values: dict, names: Iterable[str]) -> None:
    """Copy ``names`` from YAML ``values`` onto ``target`` after type validation.

    Each value is validated against the declared type of the field it is
    assigned to, so ``"15"`` becomes ``15`` for an int field. A value that
    does not validate is skipped with a warning and the field keeps its
    current value.
    """
    fields = type(target).model_fields
    for name in names:
        if name not in values:
            continue
        try:
            value = TypeAdapter(fields[name].annotation).validate_python(values[name])
        except ValidationError as e:
            logging.warning(
                f"Ignoring invalid YAML value for '{name}': {values[name]!r} "
                f"({e.errors()[0]['msg']})"
            )
            continue
        setattr(target, name, value)


class FreeTimeBotSettings(BaseSettings):
    """Application settings with environment variable support."""

    # Private attributes
    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Calendar feeds
    calendars: List[CalendarSource] = Field(
        default_factory=list, description="Calendar feeds to aggregate"
    )

    # Free-time tracking
    tracking: TrackingConfig = Field(
        default_factory=TrackingConfig, description="Tracked window and warning thresholds"
    )

    # Application Configuration
    app_name: str = Field(default="FreeTimeBot", description="Application name")
    refresh_interval_minutes: int = Field(
        default=30, description="Minutes between automatic refreshes"
    )
    feed_cache_ttl_seconds: int = Field(
        default=300, description="How long fetched feed text is reused"
    )
    timezone: Optional[str] = Field(
        default=None, description="IANA zone for wall-clock times (host local time if unset)"
    )

    # File Paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "freetimebot")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "freetimebot")

    # Logging Configuration
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings, description="Logging settings"
    )

    # Display Settings
    display: DisplaySettings = Field(
        default_factory=DisplaySettings, description="Presenter settings"
    )

    # Network and Retry Settings
    request_timeout: int = Field(default=30, description="HTTP request timeout in seconds")
    max_retries: int = Field(default=3, description="Maximum retry attempts")
    retry_backoff_factor: float = Field(default=1.5, description="Exponential backoff factor")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    def __init__(self, **kwargs: Any) -> None:
        # Track which environment variables are set before calling parent
        env_vars_set = {
            key[len(ENV_PREFIX) :].lower().split("__")[0]
            for key in os.environ
            if key.upper().startswith(ENV_PREFIX)
        }

        super().__init__(**kwargs)

        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set

        self._load_yaml_config()

    @field_validator("tracking")
    @classmethod
    def _check_tracking(cls, value: TrackingConfig) -> TrackingConfig:
        return validate_tracking_config(value)

    def _is_overridden(self, name: str) -> bool:
        return name in self._explicit_args or name in self._env_vars_set

    def _find_config_file(self) -> Optional[Path]:
        """Find config file, checking project directory first, then user home."""
        project_root = Path(__file__).parent.parent.parent
        project_config = project_root / "config" / "config.yaml"
        if project_config.exists():
            return project_config

        if self.config_file.exists():
            return self.config_file

        return None

    def _load_calendars_config(self, config_data: dict) -> None:
        """Load calendar feeds from YAML data."""
        if "calendars" not in config_data or self._is_overridden("calendars"):
            return

        self.calendars = [CalendarSource(**entry) for entry in config_data["calendars"] or []]

    def _load_tracking_config(self, config_data: dict) -> None:
        """Load tracking window and thresholds from YAML data."""
        if "tracking" not in config_data or self._is_overridden("tracking"):
            return

        merged = {**self.tracking.model_dump(), **(config_data["tracking"] or {})}
        self.tracking = validate_tracking_config(TrackingConfig(**merged))

    def _load_basic_settings(self, config_data: dict) -> None:
        """Load basic application settings from YAML data."""
        basic_settings = ["refresh_interval_minutes", "feed_cache_ttl_seconds", "timezone"]

        assign_yaml_values(
            self, config_data, [s for s in basic_settings if not self._is_overridden(s)]
        )

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from YAML data."""
        if "logging" not in config_data or self._is_overridden("logging"):
            return

        assign_yaml_values(self.logging, config_data["logging"] or {}, LoggingSettings.model_fields)

    def _load_display_settings(self, config_data: dict) -> None:
        """Load presenter configuration from YAML data."""
        if "display" not in config_data or self._is_overridden("display"):
            return

        assign_yaml_values(self.display, config_data["display"] or {}, DisplaySettings.model_fields)

    def _load_network_settings(self, config_data: dict) -> None:
        """Load network and retry settings from YAML data."""
        network_settings = ["request_timeout", "max_retries", "retry_backoff_factor"]

        assign_yaml_values(
            self, config_data, [s for s in network_settings if not self._is_overridden(s)]
        )

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open() as f:
                config_data = yaml.safe_load(f)

            if not config_data:
                return

            self._load_calendars_config(config_data)
            self._load_tracking_config(config_data)
            self._load_basic_settings(config_data)
            self._load_logging_config(config_data)
            self._load_display_settings(config_data)
            self._load_network_settings(config_data)

        except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logging.warning(f"Could not load YAML config from {config_file}: {e}")

    def get_tzinfo(self) -> tzinfo:
        """Zone used for wall-clock calendar times."""
        return get_local_timezone(self.timezone)

    @property
    def enabled_calendars(self) -> List[CalendarSource]:
        """Calendar sources that take part in refreshes."""
        return [source for source in self.calendars if source.enabled and source.url.strip()]

    @property
    def config_file(self) -> Path:
        """Path to YAML configuration file."""
        return self.config_dir / "config.yaml"


# Global settings management
_settings_instance: Optional[FreeTimeBotSettings] = None


def get_settings() -> FreeTimeBotSettings:
    """Get the global settings instance, creating it lazily if needed.

    Returns:
        FreeTimeBotSettings: The global settings instance
    """
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = FreeTimeBotSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
