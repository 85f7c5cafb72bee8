"""RRULE expansion for recurring calendar events."""

import logging
import re
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..utils.helpers import elapsed, get_local_timezone, shift_elapsed, to_epoch_millis
from .datetime_utils import decode_ical_datetime
from .models import EventOccurrence, Frequency, RecurrenceRule

logger = logging.getLogger(__name__)

# Upper bound on generated periods (weeks for BYDAY rules) per recurring event
MAX_ITERATIONS = 365

# Days after Sunday
WEEKDAY_OFFSETS = {"SU": 0, "MO": 1, "TU": 2, "WE": 3, "TH": 4, "FR": 5, "SA": 6}

_ORDINAL_PREFIX = re.compile(r"^[+-]?\d+")


class RRuleExpansionError(Exception):
    """Base exception for RRULE expansion errors."""


class RRuleParseError(RRuleExpansionError):
    """Error parsing RRULE string."""


def _parse_positive_int(value: str) -> Optional[int]:
    try:
        number = int(value)
    except ValueError:
        return None
    return number if number > 0 else None


def parse_rrule_string(rrule_string: str, tz: Optional[tzinfo] = None) -> RecurrenceRule:
    """Parse an RRULE value into a RecurrenceRule.

    Only FREQ, INTERVAL, UNTIL, COUNT and BYDAY are read; other parts are
    ignored. An unsupported or missing FREQ leaves ``frequency`` unset, which
    disables expansion. Non-positive INTERVAL falls back to 1 and a
    non-positive COUNT is ignored.

    Args:
        rrule_string: RRULE value (e.g. "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE")
        tz: Zone used to decode a floating UNTIL value

    Returns:
        Decoded recurrence rule

    Raises:
        RRuleParseError: If the RRULE string is empty
    """
    if not rrule_string or not rrule_string.strip():
        raise RRuleParseError("Empty RRULE string")

    rule = RecurrenceRule()

    for part in rrule_string.strip().split(";"):
        key, sep, value = part.partition("=")
        if not sep:
            continue
        key = key.strip().upper()
        value = value.strip()

        if key == "FREQ":
            try:
                rule.frequency = Frequency(value.upper())
            except ValueError:
                logger.debug(f"Unsupported RRULE frequency '{value}', not expanding")
        elif key == "INTERVAL":
            rule.interval = _parse_positive_int(value) or 1
        elif key == "UNTIL":
            decoded = decode_ical_datetime(value, tz=tz)
            rule.until = decoded.value if decoded else None
        elif key == "COUNT":
            rule.count = _parse_positive_int(value)
        elif key == "BYDAY":
            rule.by_weekday = [day.strip().upper() for day in value.split(",") if day.strip()]

    return rule


class RRuleExpander:
    """Expands an RRULE into concrete occurrences inside a date range.

    The original occurrence is never produced here; the parser emits it
    separately. Every generated instance keeps the origin's elapsed duration.
    """

    def __init__(self, tz: Optional[tzinfo] = None, max_iterations: int = MAX_ITERATIONS):
        """Initialize RRuleExpander.

        Args:
            tz: Zone used for floating UNTIL values, host local time by default
            max_iterations: Cap on generated periods per recurring event
        """
        self.tz = tz or get_local_timezone()
        self.max_iterations = max_iterations

    def expand(
        self,
        origin: EventOccurrence,
        rrule_string: str,
        range_start: datetime,
        range_end: datetime,
    ) -> list[EventOccurrence]:
        """Expand ``rrule_string`` for ``origin`` into instances in ``[range_start, range_end)``.

        Raises:
            RRuleParseError: If the RRULE string is empty
            RRuleExpansionError: If expansion fails for any other reason
        """
        rule = parse_rrule_string(rrule_string, self.tz)

        if rule.frequency is None:
            return []

        try:
            if rule.frequency == Frequency.WEEKLY and rule.by_weekday:
                starts = self._weekly_by_day_starts(origin, rule, range_start, range_end)
            else:
                starts = self._periodic_starts(origin, rule, range_start, range_end)
            instances = self.generate_event_instances(origin, starts)
        except (ValueError, OverflowError, TypeError) as e:
            raise RRuleExpansionError(f"Failed to expand RRULE '{rrule_string}': {e}") from e

        logger.debug(
            "RRULE expansion: uid=%s rrule=%s instances=%d", origin.id, rrule_string, len(instances)
        )
        return instances

    def _step(self, rule: RecurrenceRule, periods: int) -> relativedelta:
        amount = periods * rule.interval
        if rule.frequency == Frequency.DAILY:
            return relativedelta(days=amount)
        if rule.frequency == Frequency.WEEKLY:
            return relativedelta(weeks=amount)
        if rule.frequency == Frequency.MONTHLY:
            return relativedelta(months=amount)
        return relativedelta(years=amount)

    def _periodic_starts(
        self,
        origin: EventOccurrence,
        rule: RecurrenceRule,
        range_start: datetime,
        range_end: datetime,
    ) -> list[datetime]:
        """Step forward from the origin by whole periods.

        Each candidate is computed from the origin rather than the previous
        candidate, so month-end dates clamp (Jan 31 -> Feb 28 -> Mar 31).
        """
        starts = []
        generated = 0
        current = origin.start + self._step(rule, 1)

        while current < range_end and generated < self.max_iterations:
            if rule.until is not None and current > rule.until:
                break
            if rule.count is not None and generated >= rule.count - 1:
                break

            if current >= range_start:
                starts.append(current)

            generated += 1
            current = origin.start + self._step(rule, generated + 1)

        return starts

    def _weekly_by_day_starts(
        self,
        origin: EventOccurrence,
        rule: RecurrenceRule,
        range_start: datetime,
        range_end: datetime,
    ) -> list[datetime]:
        """Walk Sunday-aligned weeks, emitting each listed weekday at the origin's time of day."""
        # "2TU" / "-1FR": the ordinal is dropped, only the weekday code counts
        codes = dict.fromkeys(_ORDINAL_PREFIX.sub("", day) for day in rule.by_weekday)
        offsets = [WEEKDAY_OFFSETS[code] for code in codes if code in WEEKDAY_OFFSETS]
        if not offsets:
            return []

        days_since_sunday = (origin.start.weekday() + 1) % 7
        first_week_start = origin.start - timedelta(days=days_since_sunday)

        starts = []
        weeks = 0
        week_start = first_week_start

        while week_start < range_end and weeks < self.max_iterations:
            for offset in offsets:
                candidate = week_start + timedelta(days=offset)

                if candidate == origin.start:
                    continue
                if rule.until is not None and candidate > rule.until:
                    continue
                if candidate < origin.start or candidate >= range_end:
                    continue

                if candidate >= range_start:
                    starts.append(candidate)

            weeks += 1
            week_start = first_week_start + timedelta(weeks=weeks * rule.interval)

        return starts

    def generate_event_instances(
        self, origin: EventOccurrence, starts: list[datetime]
    ) -> list[EventOccurrence]:
        """Create one occurrence per start, copying the origin's title and duration.

        Args:
            origin: Recurring event's original occurrence
            starts: Instance start times

        Returns:
            Instances with ids of the form ``<origin id>-<start epoch millis>``
        """
        duration = elapsed(origin.start, origin.end)

        return [
            EventOccurrence(
                id=f"{origin.id}-{to_epoch_millis(start)}",
                title=origin.title,
                start=start,
                end=shift_elapsed(start, duration),
                is_all_day=origin.is_all_day,
                source_name=origin.source_name,
            )
            for start in starts
        ]
