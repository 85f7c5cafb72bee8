"""ICS calendar downloading, caching and parsing module."""

from .cache import FeedCache, normalize_url
from .exceptions import (
    ICSAuthError,
    ICSError,
    ICSFetchError,
    ICSNetworkError,
    ICSTimeoutError,
)
from .fetcher import ICSFetcher
from .models import CalendarSource, EventOccurrence, ICSResponse, RecurrenceRule
from .parser import ICSParser, decode_ical_datetime, unescape_text, unfold_lines
from .rrule_expander import RRuleExpander, RRuleExpansionError, parse_rrule_string

__all__ = [
    "CalendarSource",
    "EventOccurrence",
    "FeedCache",
    "ICSAuthError",
    "ICSError",
    "ICSFetchError",
    "ICSFetcher",
    "ICSNetworkError",
    "ICSParser",
    "ICSResponse",
    "ICSTimeoutError",
    "RRuleExpander",
    "RRuleExpansionError",
    "RecurrenceRule",
    "decode_ical_datetime",
    "normalize_url",
    "parse_rrule_string",
    "unescape_text",
    "unfold_lines",
]
