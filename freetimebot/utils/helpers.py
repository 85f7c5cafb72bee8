"""Time and formatting helpers shared across freetimebot."""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def get_local_timezone(timezone_name: Optional[str] = None) -> tzinfo:
    """Resolve the zone used for wall-clock times.

    Args:
        timezone_name: Optional IANA zone name (e.g. 'Europe/Berlin')

    Returns:
        The named zone, or the host's local zone when no name is given or the
        name cannot be resolved
    """
    if timezone_name:
        zone = dateutil_tz.gettz(timezone_name)
        if zone is not None:
            return zone
        logger.warning(f"Unknown timezone '{timezone_name}', falling back to local time")
    return dateutil_tz.tzlocal()


def ensure_timezone_aware(dt: datetime, default_tz: Optional[tzinfo] = None) -> datetime:
    """Attach ``default_tz`` (local time if None) to a naive datetime."""
    if dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=default_tz or dateutil_tz.tzlocal())


def elapsed(start: datetime, end: datetime) -> timedelta:
    """Real elapsed time between two aware datetimes, DST transitions included."""
    return end.astimezone(timezone.utc) - start.astimezone(timezone.utc)


def shift_elapsed(start: datetime, duration: timedelta) -> datetime:
    """Add real elapsed time to ``start``, keeping its zone."""
    return (start.astimezone(timezone.utc) + duration).astimezone(start.tzinfo)


def to_epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    return (dt - EPOCH) // timedelta(milliseconds=1)


def format_duration(seconds: int) -> str:
    """Format duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    hours = seconds // 3600
    remaining_minutes = (seconds % 3600) // 60
    if remaining_minutes == 0:
        return f"{hours}h"
    return f"{hours}h {remaining_minutes}m"
