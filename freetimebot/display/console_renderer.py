"""Console presenter for free-time results."""

import logging
import math
import sys
from datetime import datetime
from typing import Any, Callable, List, Optional, TextIO

from ..freetime.models import FreeTimeResult, WarningLevel
from ..utils.helpers import format_duration

logger = logging.getLogger(__name__)

LEVEL_MARKERS = {
    WarningLevel.NONE: "OK",
    WarningLevel.WARNING: "!",
    WarningLevel.CRITICAL: "!!",
}

LEVEL_BANNERS = {
    WarningLevel.WARNING: "WARNING: Free time is low",
    WarningLevel.CRITICAL: "CRITICAL: Very little free time!",
}


def format_short_date(value: datetime) -> str:
    """Format as e.g. "Fri, Oct 16"."""
    return f"{value:%a}, {value:%b} {value.day}"


class ConsoleRenderer:
    """Renders free-time results to a console stream."""

    def __init__(self, settings: Any = None, stream: Optional[TextIO] = None) -> None:
        """Initialize console renderer.

        Args:
            settings: Application settings (``display`` section is read)
            stream: Output stream, stdout by default
        """
        self.settings = settings
        self.stream = stream or sys.stdout
        self.width = 60

        logger.debug("Console renderer initialized")

    def _write(self, text: str) -> None:
        print(text, file=self.stream)

    def _status_line_enabled(self) -> bool:
        return self.settings is None or self.settings.display.show_status_line

    def render_status_line(self, result: FreeTimeResult) -> str:
        """One-line summary, free hours rounded to one decimal."""
        return f"[{LEVEL_MARKERS[result.warning_level]}] {round(result.free_hours, 1)}h free"

    def render_tooltip(self, result: FreeTimeResult) -> str:
        """Compact multi-line summary with an optional warning banner first."""
        lines = [
            "Free Time Tracker",
            "---",
            f"Free: {result.free_hours:.1f} hours",
            f"Scheduled: {result.scheduled_hours:.1f} hours",
            f"Total trackable: {result.total_trackable_hours:.1f} hours",
            "---",
            f"Period: {format_short_date(result.period_start)} - {format_short_date(result.period_end)}",
        ]

        banner = LEVEL_BANNERS.get(result.warning_level)
        if banner:
            lines.insert(0, banner)

        return "\n".join(lines)

    def render_details(self, result: FreeTimeResult) -> str:
        """Full breakdown including every busy block."""
        day_count = math.ceil(
            (result.period_end - result.period_start).total_seconds() / 86400
        )
        utilization = 100 - result.percentage_free

        lines: List[str] = ["=" * self.width]
        if result.warning_level == WarningLevel.CRITICAL:
            lines.append("Critical: Low Free Time!")
        elif result.warning_level == WarningLevel.WARNING:
            lines.append("Warning: Free Time Running Low")
        else:
            lines.append("Free Time Overview")
        lines.append("=" * self.width)

        lines.append(
            f"You have {result.free_hours:.1f} hours of free time in the next {day_count} days."
        )
        lines.append("")
        lines.append(f"  Free Time:   {result.free_hours:.1f} hours")
        lines.append(f"  Scheduled:   {result.scheduled_hours:.1f} hours")
        lines.append(f"  Trackable:   {result.total_trackable_hours:.1f} hours")
        lines.append(f"  Utilization: {utilization:.0f}%")
        lines.append(
            f"Period: {format_short_date(result.period_start)} - {format_short_date(result.period_end)}"
        )

        if result.busy_blocks:
            lines.append("-" * self.width)
            lines.append("Busy:")
            for block in result.busy_blocks:
                duration = format_duration(int(block.duration_minutes * 60))
                lines.append(
                    f"  {format_short_date(block.start)} "
                    f"{block.start:%H:%M}-{block.end:%H:%M} ({duration})"
                )

        if result.warning_level == WarningLevel.CRITICAL:
            lines.append("-" * self.width)
            lines.append("Consider:")
            lines.append("  - Rescheduling non-essential meetings")
            lines.append("  - Blocking time for focused work")
            lines.append("  - Declining new meeting requests")

        lines.append("=" * self.width)
        return "\n".join(lines)

    def show_loading(self) -> None:
        if self._status_line_enabled():
            self._write("...")

    def show_error(self, message: str) -> None:
        logger.debug(f"Presenting error: {message}")
        self._write(f"[Error] {message}")

    def update(self, result: FreeTimeResult) -> None:
        if self._status_line_enabled():
            self._write(self.render_status_line(result))

    def notify(self, message: str, level: str = "info") -> None:
        prefix = "" if level == "info" else f"{level.upper()}: "
        self._write(f"{prefix}{message}")

    def show_details(
        self, result: FreeTimeResult, on_dismiss_for_today: Optional[Callable[[], None]] = None
    ) -> None:
        """Print the details view.

        The console cannot ask for a dismissal, so ``on_dismiss_for_today`` is
        not called here.
        """
        self._write(self.render_details(result))
