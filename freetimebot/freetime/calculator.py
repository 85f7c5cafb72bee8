"""Free-time calculation over clipped, merged busy intervals."""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Protocol

from ..ics.models import EventOccurrence
from ..utils.helpers import elapsed, ensure_timezone_aware, get_local_timezone
from .models import FreeTimeResult, TimeBlock, TrackingConfig, WarningLevel

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)

# Saturday, Sunday
WEEKEND_DAYS = (5, 6)


class Interval(Protocol):
    """Anything with an aware ``start`` and ``end``."""

    start: datetime
    end: datetime


def get_period(now: datetime, lookahead_days: int, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return (midnight of today, 23:59:59.999 of the day ``lookahead_days`` after today)."""
    today = now.astimezone(tz).date()
    last_day = today + timedelta(days=lookahead_days)
    return (
        datetime.combine(today, time(), tzinfo=tz),
        datetime.combine(last_day, END_OF_DAY, tzinfo=tz),
    )


def get_trackable_days(
    period_start: datetime, period_end: datetime, include_weekends: bool
) -> list[date]:
    """Every calendar date in ``[period_start, period_end]``, weekends optional."""
    days = []
    day = period_start.date()
    last_day = period_end.date()

    while day <= last_day:
        if include_weekends or day.weekday() not in WEEKEND_DAYS:
            days.append(day)
        day += timedelta(days=1)

    return days


def filter_excluded(
    occurrences: Iterable[EventOccurrence], excluded_keywords: Sequence[str]
) -> list[EventOccurrence]:
    """Drop occurrences whose title contains any keyword, ignoring case."""
    keywords = [keyword.lower() for keyword in excluded_keywords]
    if not keywords:
        return list(occurrences)

    return [
        occurrence
        for occurrence in occurrences
        if not any(keyword in occurrence.title.lower() for keyword in keywords)
    ]


def get_tracking_window(day: date, start_hour: int, end_hour: int, tz: tzinfo) -> tuple[datetime, datetime]:
    """Wall-clock window ``[day@start_hour:00, day@end_hour:00)`` in ``tz``."""
    midnight = datetime.combine(day, time(), tzinfo=tz)
    return midnight + timedelta(hours=start_hour), midnight + timedelta(hours=end_hour)


def clip_to_tracking_windows(
    occurrences: Iterable[EventOccurrence],
    days: Sequence[date],
    config: TrackingConfig,
    tz: tzinfo,
) -> list[EventOccurrence]:
    """Clip timed occurrences into each trackable day's window.

    All-day occurrences are dropped. One occurrence yields a day-scoped copy
    per window it overlaps, with the ISO date appended to its id. Copies that
    end up with no positive duration are discarded.
    """
    windows = [
        (day, *get_tracking_window(day, config.tracking_start_hour, config.tracking_end_hour, tz))
        for day in days
    ]
    clipped = []

    for occurrence in occurrences:
        if occurrence.is_all_day:
            continue

        for day, window_start, window_end in windows:
            if not (occurrence.start < window_end and occurrence.end > window_start):
                continue

            start = max(occurrence.start, window_start)
            end = min(occurrence.end, window_end)
            if end <= start:
                continue

            clipped.append(
                occurrence.model_copy(
                    update={"id": f"{occurrence.id}-{day.isoformat()}", "start": start, "end": end}
                )
            )

    return clipped


def _make_block(start: datetime, end: datetime) -> TimeBlock:
    return TimeBlock(
        start=start, end=end, duration_minutes=elapsed(start, end).total_seconds() / 60
    )


def merge_intervals(intervals: Iterable[Interval]) -> list[TimeBlock]:
    """Merge overlapping or touching intervals into ordered busy blocks."""
    ordered = sorted(intervals, key=lambda interval: interval.start)
    if not ordered:
        return []

    blocks = []
    block_start = ordered[0].start
    block_end = ordered[0].end

    for interval in ordered[1:]:
        if interval.start <= block_end:
            block_end = max(block_end, interval.end)
        else:
            blocks.append(_make_block(block_start, block_end))
            block_start, block_end = interval.start, interval.end

    blocks.append(_make_block(block_start, block_end))
    return blocks


def get_warning_level(free_hours: float, config: TrackingConfig) -> WarningLevel:
    """Classify free hours; the critical threshold is checked first."""
    if free_hours <= config.critical_threshold_hours:
        return WarningLevel.CRITICAL
    if free_hours <= config.warning_threshold_hours:
        return WarningLevel.WARNING
    return WarningLevel.NONE


class FreeTimeCalculator:
    """Computes free hours inside the tracked windows of the lookahead period.

    Pure with respect to its inputs: the same occurrences, configuration and
    ``now`` always give the same result. Never raises for odd data; an empty
    occurrence list gives ``free_hours == total_trackable_hours``.
    """

    def __init__(self, config: Optional[TrackingConfig] = None, tz: Optional[tzinfo] = None):
        self.config = config or TrackingConfig()
        self.tz = tz

    def calculate_free_time(
        self, occurrences: Iterable[EventOccurrence], now: Optional[datetime] = None
    ) -> FreeTimeResult:
        """Calculate free time for ``occurrences`` relative to ``now``.

        Args:
            occurrences: Occurrences from every enabled feed, in any order
            now: Current instant, defaults to the wall clock; naive values are
                read in the calculator's zone

        Returns:
            The aggregated free-time result
        """
        config = self.config
        tz = self.tz or (now.tzinfo if now is not None and now.tzinfo else get_local_timezone())
        now = ensure_timezone_aware(now, tz) if now is not None else datetime.now(tz)

        period_start, period_end = get_period(now, config.lookahead_days, tz)
        days = get_trackable_days(period_start, period_end, config.include_weekends)
        total_hours = len(days) * (config.tracking_end_hour - config.tracking_start_hour)

        relevant = filter_excluded(occurrences, config.excluded_keywords)
        clipped = clip_to_tracking_windows(relevant, days, config, tz)
        busy_blocks = merge_intervals(clipped)

        scheduled_hours = sum(block.duration_minutes for block in busy_blocks) / 60
        free_hours = max(0.0, total_hours - scheduled_hours)
        percentage_free = free_hours / total_hours * 100 if total_hours > 0 else 0.0
        warning_level = get_warning_level(free_hours, config)

        logger.debug(
            f"Free time: {free_hours:.1f}h of {total_hours}h over {len(days)} days, "
            f"{len(busy_blocks)} busy blocks, level={warning_level.value}"
        )

        return FreeTimeResult(
            total_trackable_hours=total_hours,
            scheduled_hours=scheduled_hours,
            free_hours=free_hours,
            percentage_free=percentage_free,
            period_start=period_start,
            period_end=period_end,
            busy_blocks=busy_blocks,
            warning_level=warning_level,
        )


def calculate_free_time(
    occurrences: Iterable[EventOccurrence],
    config: TrackingConfig,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> FreeTimeResult:
    """Functional form of FreeTimeCalculator.calculate_free_time."""
    return FreeTimeCalculator(config, tz).calculate_free_time(occurrences, now)
