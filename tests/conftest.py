"""Shared test configuration and fixtures."""

import os
from datetime import datetime, timezone
from typing import Any
from unittest.mock import patch

import pytest

from freetimebot.config.settings import FreeTimeBotSettings, reset_settings
from freetimebot.ics.models import CalendarSource, EventOccurrence

UTC = timezone.utc


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove FREETIMEBOT_* variables so settings only see what a test sets."""
    for key in list(os.environ):
        if key.upper().startswith("FREETIMEBOT_"):
            monkeypatch.delenv(key)


@pytest.fixture
def no_config_file():
    """Make settings behave as if no config.yaml exists anywhere."""
    with patch.object(FreeTimeBotSettings, "_find_config_file", return_value=None):
        yield


@pytest.fixture
def test_settings(clean_env, no_config_file) -> FreeTimeBotSettings:
    """Real settings in UTC with one calendar and fast network settings."""
    return FreeTimeBotSettings(
        timezone="UTC",
        calendars=[CalendarSource(url="https://example.com/work.ics", name="Work")],
        max_retries=2,
        retry_backoff_factor=1.0,
        request_timeout=5,
        app_name="FreeTimeBot-Test",
    )


@pytest.fixture(autouse=True)
def _reset_global_settings():
    yield
    reset_settings()


@pytest.fixture
def make_occurrence():
    """Factory for timed occurrences in UTC."""

    def _make(
        start: datetime,
        end: datetime,
        title: str = "Meeting",
        occurrence_id: str = "event-1",
        is_all_day: bool = False,
    ) -> EventOccurrence:
        return EventOccurrence(
            id=occurrence_id,
            title=title,
            start=start,
            end=end,
            is_all_day=is_all_day,
            source_name="Work",
        )

    return _make
