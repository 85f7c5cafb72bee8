"""Free-time calculation over tracked daily windows."""

from .calculator import FreeTimeCalculator, calculate_free_time, merge_intervals
from .models import FreeTimeResult, TimeBlock, TrackingConfig, WarningLevel

__all__ = [
    "FreeTimeCalculator",
    "FreeTimeResult",
    "TimeBlock",
    "TrackingConfig",
    "WarningLevel",
    "calculate_free_time",
    "merge_intervals",
]
