"""Utility functions and helpers package."""

from .helpers import (
    elapsed,
    ensure_timezone_aware,
    format_duration,
    get_local_timezone,
    shift_elapsed,
    to_epoch_millis,
)
from .logging import VERBOSE, apply_command_line_overrides, get_log_level, setup_logging

__all__ = [
    "VERBOSE",
    "apply_command_line_overrides",
    "elapsed",
    "ensure_timezone_aware",
    "format_duration",
    "get_local_timezone",
    "get_log_level",
    "setup_logging",
    "shift_elapsed",
    "to_epoch_millis",
]
