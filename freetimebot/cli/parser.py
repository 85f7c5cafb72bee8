"""Command-line argument parsing for FreeTimeBot."""

import argparse

from .. import __version__

LOG_LEVELS = ["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"]


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError(f"'{value}' must be at least 1")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser.

    Example:
        >>> parser = create_parser()
        >>> args = parser.parse_args(["--once", "--url", "https://example.com/cal.ics"])
    """
    parser = argparse.ArgumentParser(
        prog="freetimebot",
        description="FreeTimeBot - free time remaining in your iCalendar feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                    # Refresh every refresh_interval_minutes
  %(prog)s --once                             # Single refresh with full breakdown
  %(prog)s --once --url webcal://host/cal.ics # Ad-hoc feed, no config needed
  %(prog)s --lookahead-days 14 --interval 10  # Two weeks, refresh every 10 minutes
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}", help="Show version information"
    )

    parser.add_argument(
        "--once", action="store_true", help="Run a single refresh, print the breakdown and exit"
    )

    # Calendar arguments
    calendar_group = parser.add_argument_group("calendars", "Feed and tracking overrides")

    calendar_group.add_argument(
        "--url",
        dest="urls",
        action="append",
        metavar="URL",
        help="ICS or webcal feed URL; repeatable, replaces configured calendars",
    )

    calendar_group.add_argument(
        "--lookahead-days",
        type=positive_int,
        default=None,
        help="Days after today to include (default: from config, 7)",
    )

    calendar_group.add_argument(
        "--interval",
        type=positive_int,
        default=None,
        metavar="MINUTES",
        help="Minutes between refreshes (default: from config, 30)",
    )

    # Logging arguments
    logging_group = parser.add_argument_group("logging", "Logging configuration options")

    logging_group.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    logging_group.add_argument(
        "--quiet", "-q", action="store_true", help="Only log errors to the console"
    )

    logging_group.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level for console and file",
    )

    logging_group.add_argument(
        "--no-log-colors", action="store_true", help="Disable colored console logging"
    )

    return parser
