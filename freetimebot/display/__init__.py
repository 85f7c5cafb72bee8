"""Presentation of free-time results."""

from .console_renderer import ConsoleRenderer, format_short_date
from .presenter import Presenter

__all__ = ["ConsoleRenderer", "Presenter", "format_short_date"]
