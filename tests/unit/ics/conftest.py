"""Shared fixtures for ICS module tests."""

from datetime import timezone

import pytest

from freetimebot.ics.parser import ICSParser


@pytest.fixture
def parser():
    """ICSParser reading wall-clock values as UTC."""
    return ICSParser(timezone.utc)


@pytest.fixture
def ics_calendar():
    """Build CRLF calendar text; each argument is a list of VEVENT property lines."""

    def _build(*events: list) -> str:
        lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Test//Test//EN"]
        for properties in events:
            lines.extend(["BEGIN:VEVENT", *properties, "END:VEVENT"])
        lines.append("END:VCALENDAR")
        return "\r\n".join(lines) + "\r\n"

    return _build
