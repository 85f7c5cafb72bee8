"""Data models for free-time calculation."""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class WarningLevel(str, Enum):
    """Severity classification of remaining free time."""

    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"


class TrackingConfig(BaseModel):
    """User configuration consumed by the calculator.

    No range checks happen here; nonsensical values give degenerate results
    rather than errors. The settings layer validates user input.
    """

    tracking_start_hour: int = Field(default=9, description="Start of the daily tracked window")
    tracking_end_hour: int = Field(default=20, description="End of the daily tracked window")
    include_weekends: bool = Field(default=True, description="Count Saturdays and Sundays")
    excluded_keywords: List[str] = Field(
        default_factory=list, description="Events whose title contains one of these are ignored"
    )
    warning_threshold_hours: float = Field(default=15, description="Free hours at or below which to warn")
    critical_threshold_hours: float = Field(default=5, description="Free hours at or below which it is critical")
    lookahead_days: int = Field(default=7, description="Days after today included in the period")


class TimeBlock(BaseModel):
    """A maximal merged busy interval."""

    start: datetime
    end: datetime
    duration_minutes: float
    kind: str = "busy"

    model_config = ConfigDict(frozen=True)


class FreeTimeResult(BaseModel):
    """Outcome of one free-time calculation."""

    total_trackable_hours: float
    scheduled_hours: float
    free_hours: float
    percentage_free: float
    period_start: datetime
    period_end: datetime
    busy_blocks: List[TimeBlock] = Field(default_factory=list)
    warning_level: WarningLevel = WarningLevel.NONE

    model_config = ConfigDict(frozen=True)
