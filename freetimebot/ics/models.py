"""Data models for ICS calendar ingestion."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CalendarSource(BaseModel):
    """Configuration for one remote calendar feed."""

    url: str = Field(..., description="ICS calendar URL (webcal:// is accepted)")
    name: str = Field(default="Calendar", description="Human-readable name for this feed")
    enabled: bool = Field(default=True, description="Whether the feed is included in refreshes")


class CachedFeed(BaseModel):
    """Raw feed text held by the feed cache."""

    feed_text: str
    fetched_at: float = Field(..., description="Clock reading when the text was stored")


class EventOccurrence(BaseModel):
    """One concrete happening of a calendar event.

    Recurrence-expanded instances carry ``<uid>-<epoch millis>`` ids; copies
    clipped into a tracking window get the ISO date appended as well.
    ``end`` is not guaranteed to be after ``start`` for malformed feeds.
    """

    id: str
    title: str = ""
    start: datetime
    end: datetime
    is_all_day: bool = False
    source_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Frequency(str, Enum):
    """Supported RRULE frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class RecurrenceRule(BaseModel):
    """Decoded subset of an RRULE value."""

    frequency: Optional[Frequency] = None
    interval: int = 1
    until: Optional[datetime] = None
    count: Optional[int] = None
    by_weekday: List[str] = Field(default_factory=list)


class ICSResponse(BaseModel):
    """Response from ICS fetch operation."""

    success: bool
    content: Optional[str] = None
    status_code: Optional[int] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    error_message: Optional[str] = None
    fetch_time: datetime = Field(default_factory=datetime.now)

    @property
    def content_length(self) -> Optional[int]:
        """Get content length if available."""
        if self.content:
            return len(self.content.encode("utf-8"))
        return None
