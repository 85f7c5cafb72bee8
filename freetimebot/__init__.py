"""FreeTimeBot - free time remaining in iCalendar feeds."""

__version__ = "1.0.0"
__author__ = "FreeTimeBot Team"
