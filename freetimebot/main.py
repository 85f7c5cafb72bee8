"""Refresh cycle tying feeds, calculator and presenter together."""

import asyncio
import logging
import signal
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from .config.settings import FreeTimeBotSettings
from .display.console_renderer import ConsoleRenderer
from .display.presenter import Presenter
from .freetime.calculator import FreeTimeCalculator
from .freetime.models import FreeTimeResult, WarningLevel
from .sources.manager import SourceManager
from .utils.helpers import to_epoch_millis

logger = logging.getLogger(__name__)

NO_CALENDARS_MESSAGE = "No calendars configured"


class FreeTimeTracker:
    """Fetches every feed, computes free time and reports it.

    Holds the only cross-refresh state: the last result, when it was fetched
    and the day on which warnings were dismissed.
    """

    def __init__(
        self,
        settings: FreeTimeBotSettings,
        source_manager: Optional[SourceManager] = None,
        calculator: Optional[FreeTimeCalculator] = None,
        presenter: Optional[Presenter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            settings: Application settings
            source_manager: Feed aggregation, built from settings when omitted
            calculator: Free-time calculator, built from settings when omitted
            presenter: Receives results, errors and notices
            clock: Returns the current aware instant
        """
        self.settings = settings
        self.tz = settings.get_tzinfo()
        self.source_manager = source_manager or SourceManager(settings)
        self.calculator = calculator or FreeTimeCalculator(settings.tracking, self.tz)
        self.presenter: Presenter = presenter or ConsoleRenderer(settings)
        self._clock = clock or (lambda: datetime.now(self.tz))

        self.running = False
        self.shutdown_event = asyncio.Event()

        self.last_result: Optional[FreeTimeResult] = None
        self.last_fetch_timestamp: Optional[int] = None
        self.cached_free_hours: Optional[float] = None
        self.warning_dismissed_on: Optional[date] = None

        logger.debug("Free time tracker initialized")

    def _today(self) -> date:
        return self._clock().astimezone(self.tz).date()

    async def refresh(self) -> Optional[FreeTimeResult]:
        """Run one refresh cycle.

        Returns:
            The new result, or None when nothing is configured or the cycle
            failed (the presenter has been told why)
        """
        if not self.settings.calendars:
            self.presenter.show_error(NO_CALENDARS_MESSAGE)
            return None

        self.presenter.show_loading()

        try:
            now = self._clock()
            range_end = now + timedelta(days=self.calculator.config.lookahead_days)

            occurrences = await self.source_manager.fetch_all_events(
                self.settings.enabled_calendars, now, range_end
            )
            result = self.calculator.calculate_free_time(occurrences, now)

        except Exception as e:
            logger.exception("Failed to refresh free time")
            self.presenter.show_error(str(e))
            self.presenter.notify(f"Free Time Tracker: {e}", "error")
            return None

        self.presenter.update(result)

        self.last_result = result
        self.cached_free_hours = result.free_hours
        self.last_fetch_timestamp = to_epoch_millis(now)

        logger.info(
            f"{result.free_hours:.1f}h free of {result.total_trackable_hours:.1f}h "
            f"({result.warning_level.value})"
        )

        self.handle_warnings(result)
        return result

    def dismiss_warning(self) -> None:
        """Suppress warnings for the rest of the current day."""
        self.warning_dismissed_on = self._today()
        logger.debug(f"Warnings dismissed for {self.warning_dismissed_on}")

    def handle_warnings(self, result: FreeTimeResult) -> None:
        """Show the details view and notices a result calls for."""
        if self.warning_dismissed_on == self._today():
            return

        display = self.settings.display

        if result.warning_level == WarningLevel.CRITICAL:
            if display.show_warning_modal:
                self.presenter.show_details(result, on_dismiss_for_today=self.dismiss_warning)
            if display.show_warning_notice:
                self.presenter.notify(
                    f"Critical: Only {result.free_hours:.1f} hours of free time this week!",
                    "critical",
                )
        elif result.warning_level == WarningLevel.WARNING:
            if display.show_warning_notice:
                self.presenter.notify(
                    f"Low free time: {result.free_hours:.1f} hours remaining", "warning"
                )

    async def run(self) -> None:
        """Refresh now and then every ``refresh_interval_minutes`` until stopped."""
        interval = self.settings.refresh_interval_minutes * 60
        logger.info(f"Starting refresh loop (interval: {self.settings.refresh_interval_minutes}m)")

        self.running = True
        await self.refresh()

        while self.running and not self.shutdown_event.is_set():
            try:
                await asyncio.wait_for(self.shutdown_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                if self.running:
                    await self.refresh()

        logger.info("Refresh loop stopped")

    async def stop(self) -> None:
        """Stop the refresh loop."""
        logger.info("Stopping free time tracker...")
        self.running = False
        self.shutdown_event.set()


def setup_signal_handlers(tracker: FreeTimeTracker) -> None:
    """Stop the tracker on SIGINT/SIGTERM."""
    background_tasks = set()

    def signal_handler(signum: int, frame: Any) -> None:  # noqa: ARG001
        logger.info(f"Received signal {signum}")
        task = asyncio.create_task(tracker.stop())
        background_tasks.add(task)
        task.add_done_callback(background_tasks.discard)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
