"""CLI module for FreeTimeBot."""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from ..config.settings import FreeTimeBotSettings, get_settings
from ..freetime.models import WarningLevel
from ..ics.models import CalendarSource
from ..main import NO_CALENDARS_MESSAGE, FreeTimeTracker, setup_signal_handlers
from ..utils.logging import apply_command_line_overrides, setup_logging
from .parser import create_parser

logger = logging.getLogger(__name__)


def apply_cli_overrides(settings: FreeTimeBotSettings, args: argparse.Namespace) -> FreeTimeBotSettings:
    """Apply feed, tracking and logging flags to settings in place."""
    if args.urls:
        settings.calendars = [
            CalendarSource(url=url, name=f"Calendar {index}")
            for index, url in enumerate(args.urls, start=1)
        ]

    if args.lookahead_days is not None:
        settings.tracking = settings.tracking.model_copy(
            update={"lookahead_days": args.lookahead_days}
        )

    if args.interval is not None:
        settings.refresh_interval_minutes = args.interval

    return apply_command_line_overrides(settings, args)


async def main_entry(argv: Optional[list[str]] = None) -> int:
    """Parse arguments and run one refresh or the refresh loop.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = apply_cli_overrides(get_settings(), args)
    setup_logging(settings)

    if not settings.calendars:
        logger.error(
            f"{NO_CALENDARS_MESSAGE}. Add 'calendars' to config.yaml, set "
            "FREETIMEBOT_CALENDARS or pass --url"
        )
        return 1

    tracker = FreeTimeTracker(settings)

    if args.once:
        result = await tracker.refresh()
        if result is None:
            return 1
        # Critical results already showed the details view
        shown = result.warning_level == WarningLevel.CRITICAL and settings.display.show_warning_modal
        if not shown:
            tracker.presenter.show_details(result)
        return 0

    setup_signal_handlers(tracker)
    await tracker.run()
    return 0


def main() -> None:
    """Entry point for the ``freetimebot`` console script."""
    try:
        sys.exit(asyncio.run(main_entry()))
    except KeyboardInterrupt:
        print("Operation cancelled by user")
        sys.exit(130)


__all__ = ["apply_cli_overrides", "create_parser", "main", "main_entry"]
