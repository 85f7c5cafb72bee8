"""Fail-soft iCalendar parser producing concrete event occurrences."""

import logging
import uuid
from collections.abc import Generator
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from ..utils.helpers import ensure_timezone_aware, get_local_timezone
from .datetime_utils import decode_ical_datetime
from .models import EventOccurrence
from .rrule_expander import RRuleExpander, RRuleExpansionError

logger = logging.getLogger(__name__)

FOLD_PREFIXES = (" ", "\t")

# Applied in this order; the output of one substitution is not re-scanned
TEXT_ESCAPES = (("\\n", "\n"), ("\\,", ","), ("\\;", ";"), ("\\\\", "\\"))


def unfold_lines(ics_content: str) -> Generator[str, None, None]:
    """Yield logical lines from CRLF or LF terminated feed text.

    A physical line starting with a space or tab continues the previous
    logical line; its first character is dropped before joining. Continuation
    lines before the first logical line are discarded.
    """
    pending: Optional[str] = None

    for raw_line in ics_content.split("\n"):
        line = raw_line.rstrip("\r")

        if line.startswith(FOLD_PREFIXES):
            if pending is not None:
                pending += line[1:]
            continue

        if pending is not None:
            yield pending
        pending = line

    if pending is not None:
        yield pending


def unescape_text(text: str) -> str:
    """Undo iCalendar TEXT escaping for ``\\n``, ``\\,``, ``\\;`` and ``\\\\``."""
    for escaped, literal in TEXT_ESCAPES:
        text = text.replace(escaped, literal)
    return text


@dataclass
class PendingEvent:
    """Fields collected between BEGIN:VEVENT and END:VEVENT."""

    source_name: Optional[str] = None
    uid: Optional[str] = None
    title: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    is_all_day: bool = False
    rrule: Optional[str] = None

    def to_occurrence(self) -> Optional[EventOccurrence]:
        """Build the original occurrence, or None when start or end is missing."""
        if self.start is None or self.end is None:
            return None

        return EventOccurrence(
            id=self.uid if self.uid is not None else str(uuid.uuid4()),
            title=self.title or "",
            start=self.start,
            end=self.end,
            is_all_day=self.is_all_day,
            source_name=self.source_name,
        )


class ICSParser:
    """Line-oriented VEVENT parser with basic RRULE expansion.

    Never raises for malformed feed text: properties or events that cannot be
    read are skipped and whatever could be extracted is returned.
    """

    def __init__(self, tz: Optional[tzinfo] = None, rrule_expander: Optional[RRuleExpander] = None):
        """Initialize ICS parser.

        Args:
            tz: Zone for floating and all-day values, host local time by default
            rrule_expander: Expander for recurring events
        """
        self.tz = tz or get_local_timezone()
        self.rrule_expander = rrule_expander or RRuleExpander(self.tz)
        logger.debug("ICS parser initialized")

    def parse(
        self,
        feed_text: str,
        source_name: Optional[str],
        range_start: datetime,
        range_end: datetime,
    ) -> list[EventOccurrence]:
        """Parse one feed into occurrences overlapping ``[range_start, range_end)``.

        Args:
            feed_text: Raw iCalendar text
            source_name: Display name of the feed, copied onto every occurrence
            range_start: Range start; naive values are taken as wall-clock time
            range_end: Range end (exclusive)

        Returns:
            Original occurrences that overlap the range, each followed by its
            recurrence-expanded instances that start inside the range
        """
        if not feed_text or not feed_text.strip():
            logger.warning(f"Empty ICS content for '{source_name}'")
            return []

        range_start = ensure_timezone_aware(range_start, self.tz)
        range_end = ensure_timezone_aware(range_end, self.tz)

        occurrences: list[EventOccurrence] = []
        event_count = 0
        skipped_count = 0

        for pending in self.iter_events(feed_text, source_name):
            occurrence = pending.to_occurrence()
            if occurrence is None:
                skipped_count += 1
                logger.debug(f"Skipping event {pending.uid!r}: missing or unreadable DTSTART/DTEND")
                continue

            event_count += 1
            if occurrence.end > range_start and occurrence.start < range_end:
                occurrences.append(occurrence)

            if pending.rrule:
                occurrences.extend(
                    self._expand_recurrence(occurrence, pending.rrule, range_start, range_end)
                )

        logger.debug(
            f"Parsed {len(occurrences)} occurrences from {event_count} events "
            f"in '{source_name}' ({skipped_count} skipped)"
        )
        return occurrences

    def iter_events(
        self, feed_text: str, source_name: Optional[str] = None
    ) -> Generator[PendingEvent, None, None]:
        """Yield one PendingEvent per closed VEVENT block."""
        current: Optional[PendingEvent] = None

        for line in unfold_lines(feed_text):
            marker = line.strip()

            if marker == "BEGIN:VEVENT":
                current = PendingEvent(source_name=source_name)
                continue

            if marker == "END:VEVENT":
                if current is not None:
                    yield current
                current = None
                continue

            if current is None:
                continue

            key, sep, value = line.partition(":")
            if sep:
                self._apply_property(current, key, value)

        if current is not None:
            logger.warning(f"Incomplete event at end of feed '{source_name}'")

    def _apply_property(self, event: PendingEvent, key: str, value: str) -> None:
        """Record one recognized property; anything else is ignored."""
        base_key, _, params = key.partition(";")
        base_key = base_key.strip().upper()

        if base_key == "UID":
            event.uid = value.strip()
        elif base_key == "SUMMARY":
            event.title = unescape_text(value)
        elif base_key == "DTSTART":
            decoded = decode_ical_datetime(value, params, self.tz)
            if decoded is not None:
                event.start, event.is_all_day = decoded
        elif base_key == "DTEND":
            decoded = decode_ical_datetime(value, params, self.tz)
            if decoded is not None:
                event.end = decoded.value
        elif base_key == "RRULE":
            event.rrule = value.strip()

    def _expand_recurrence(
        self,
        occurrence: EventOccurrence,
        rrule_string: str,
        range_start: datetime,
        range_end: datetime,
    ) -> list[EventOccurrence]:
        try:
            return self.rrule_expander.expand(occurrence, rrule_string, range_start, range_end)
        except RRuleExpansionError as e:
            logger.warning(f"RRULE expansion failed for event {occurrence.id}: {e}")
            return []
