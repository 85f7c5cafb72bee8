"""Decoding of iCalendar DATE and DATE-TIME values."""

import logging
from datetime import datetime, timezone, tzinfo
from typing import NamedTuple, Optional

from ..utils.helpers import get_local_timezone

logger = logging.getLogger(__name__)

ALL_DAY_VALUE_LENGTH = 8  # YYYYMMDD


class DecodedDateTime(NamedTuple):
    """A decoded DTSTART/DTEND/UNTIL value."""

    value: datetime
    is_all_day: bool


def has_date_value_param(params: str) -> bool:
    """Check a property parameter block (``VALUE=DATE;TZID=...``) for VALUE=DATE."""
    return any(param.strip().upper() == "VALUE=DATE" for param in params.split(";"))


def decode_ical_datetime(
    value: str, params: str = "", tz: Optional[tzinfo] = None
) -> Optional[DecodedDateTime]:
    """Decode a raw iCalendar date or date-time.

    ``YYYYMMDD`` values (or any value whose parameters say VALUE=DATE) become
    midnight of that date in ``tz``. ``YYYYMMDDTHHMMSSZ`` is decoded as UTC and
    converted to ``tz``; without the ``Z`` suffix the value is wall-clock time
    in ``tz``. A TZID parameter does not change the decoded instant. Missing or
    unreadable seconds count as zero.

    Args:
        value: Raw property value
        params: Parameter block that followed the property name, if any
        tz: Zone for wall-clock values, host local time by default

    Returns:
        Decoded value, or None if the value cannot be read
    """
    zone = tz or get_local_timezone()
    value = value.strip()

    try:
        if has_date_value_param(params) or len(value) == ALL_DAY_VALUE_LENGTH:
            return DecodedDateTime(
                datetime(int(value[0:4]), int(value[4:6]), int(value[6:8]), tzinfo=zone), True
            )

        is_utc = value.endswith("Z")
        clean = value[:-1] if is_utc else value

        year = int(clean[0:4])
        month = int(clean[4:6])
        day = int(clean[6:8])
        hour = int(clean[9:11])
        minute = int(clean[11:13])
        try:
            second = int(clean[13:15])
        except ValueError:
            second = 0

        if is_utc:
            decoded = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
            return DecodedDateTime(decoded.astimezone(zone), False)
        return DecodedDateTime(datetime(year, month, day, hour, minute, second, tzinfo=zone), False)

    except (ValueError, OverflowError):
        logger.debug(f"Could not decode date-time value '{value}'")
        return None
