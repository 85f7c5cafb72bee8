"""Logging configuration and setup utilities."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from ..config.settings import FreeTimeBotSettings

# Custom log level between INFO(20) and DEBUG(10)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

ROOT_LOGGER_NAME = "freetimebot"

THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "asyncio")


def verbose(self: logging.Logger, message: Any, *args: Any, **kwargs: Any) -> None:
    """Log ``message`` at the VERBOSE level.

    Example:
        >>> logger = logging.getLogger(__name__)
        >>> logger.verbose("Parsed %d events", count)
    """
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


# Add verbose method to all Logger instances
logging.Logger.verbose = verbose  # type: ignore[attr-defined]


def get_log_level(level_name: str) -> int:
    """Get numeric log level from a name, including the custom VERBOSE level.

    Args:
        level_name: DEBUG, VERBOSE, INFO, WARNING, ERROR or CRITICAL (any case)

    Returns:
        Numeric log level

    Raises:
        AttributeError: If the level name is not recognized
    """
    level_name = level_name.upper()
    if level_name == "VERBOSE":
        return VERBOSE
    level: int = getattr(logging, level_name)
    return level


class AutoColoredFormatter(logging.Formatter):
    """Formatter that auto-detects terminal color support."""

    COLORS = {
        "ERROR": {"truecolor": "\033[91m", "basic": "\033[31m", "none": ""},
        "INFO": {"truecolor": "\033[94m", "basic": "\033[34m", "none": ""},
        "VERBOSE": {"truecolor": "\033[92m", "basic": "\033[32m", "none": ""},
        "WARNING": {"truecolor": "\033[93m", "basic": "\033[33m", "none": ""},
        "DEBUG": {"truecolor": "\033[95m", "basic": "\033[35m", "none": ""},
        "CRITICAL": {"truecolor": "\033[91m\033[1m", "basic": "\033[31m\033[1m", "none": ""},
        "RESET": {"truecolor": "\033[0m", "basic": "\033[0m", "none": ""},
    }

    def __init__(self, *args: Any, enable_colors: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.enable_colors = enable_colors
        self.color_mode = self._detect_color_support() if enable_colors else "none"

    def _detect_color_support(self) -> str:
        """Auto-detect terminal color capabilities."""
        if not hasattr(sys.stderr, "isatty") or not sys.stderr.isatty():
            return "none"

        term = os.environ.get("TERM", "").lower()
        colorterm = os.environ.get("COLORTERM", "").lower()

        if term == "dumb":
            return "none"

        if colorterm in ("truecolor", "24bit") or "256color" in term:
            return "truecolor"

        if term and "color" in term:
            return "basic"

        return "none"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a colored level name if supported."""
        formatted = super().format(record)

        if self.color_mode == "none" or record.levelname not in self.COLORS:
            return formatted

        color_start = self.COLORS[record.levelname][self.color_mode]
        color_end = self.COLORS["RESET"][self.color_mode]
        return formatted.replace(record.levelname, f"{color_start}{record.levelname}{color_end}", 1)


class TimestampedFileHandler(logging.FileHandler):
    """Handler that writes one timestamped log file per run."""

    def __init__(
        self, log_dir: Union[str, Path], prefix: str = ROOT_LOGGER_NAME, max_files: int = 5
    ) -> None:
        self.log_dir = Path(log_dir)
        self.prefix = prefix
        self.max_files = max_files

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        super().__init__(str(self.log_dir / f"{prefix}_{timestamp}.log"), encoding="utf-8")

        self.cleanup_old_files()

    def cleanup_old_files(self) -> None:
        """Remove log files beyond max_files, keeping the most recent."""
        log_files = list(self.log_dir.glob(f"{self.prefix}_*.log"))
        if len(log_files) <= self.max_files:
            return

        log_files.sort(key=lambda f: f.stat().st_mtime, reverse=True)
        for old_file in log_files[self.max_files :]:
            try:
                old_file.unlink()
            except OSError as e:
                logging.getLogger(__name__).debug(f"Could not remove old log file {old_file}: {e}")


def setup_logging(settings: "FreeTimeBotSettings") -> logging.Logger:
    """Configure the ``freetimebot`` logger from settings.

    Args:
        settings: Application settings; only the ``logging`` section and
            ``data_dir`` are read

    Returns:
        The configured package logger
    """
    log_settings = settings.logging

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # handlers filter
    logger.handlers.clear()

    if log_settings.console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(get_log_level(log_settings.console_level))
        console_handler.setFormatter(
            AutoColoredFormatter(
                "%(asctime)s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
                enable_colors=log_settings.console_colors,
            )
        )
        logger.addHandler(console_handler)

    if log_settings.file_enabled:
        if log_settings.file_directory:
            log_dir = Path(log_settings.file_directory)
        else:
            log_dir = settings.data_dir / "logs"

        file_handler = TimestampedFileHandler(
            log_dir=log_dir,
            prefix=log_settings.file_prefix,
            max_files=log_settings.max_log_files,
        )
        file_handler.setLevel(get_log_level(log_settings.file_level))

        if log_settings.include_function_names:
            file_format = (
                "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            )
        else:
            file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_handler.setFormatter(logging.Formatter(file_format, datefmt="%Y-%m-%d %H:%M:%S"))

        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {file_handler.baseFilename}")

    third_party_level = get_log_level(log_settings.third_party_level)
    for lib in THIRD_PARTY_LOGGERS:
        logging.getLogger(lib).setLevel(third_party_level)

    logger.debug(f"Logging initialized at console level {log_settings.console_level}")
    return logger


def apply_command_line_overrides(
    settings: "FreeTimeBotSettings", args: Any
) -> "FreeTimeBotSettings":
    """Apply command-line logging flags to settings in place.

    Priority: command line > environment > YAML > defaults. ``--quiet`` wins
    over ``--verbose`` for the console.

    Args:
        settings: Settings to modify
        args: Parsed argparse namespace

    Returns:
        The same settings object
    """
    if getattr(args, "log_level", None):
        settings.logging.console_level = args.log_level
        settings.logging.file_level = args.log_level

    if getattr(args, "verbose", False):
        settings.logging.console_level = "VERBOSE"
        settings.logging.file_level = "VERBOSE"

    if getattr(args, "quiet", False):
        settings.logging.console_level = "ERROR"

    if getattr(args, "no_log_colors", False):
        settings.logging.console_colors = False

    return settings
