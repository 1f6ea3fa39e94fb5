"""Pytest fixtures for booking timeline tests.

This module provides test fixtures that ensure:
1. No external API calls are made (Google Calendar)
2. Isolated test environment with controlled configuration
3. Scripted calendar sources with predictable pages
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment BEFORE importing application modules
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("CURRENT_USER_EMAIL", "me@example.com")

from booking_timeline.calendar.base import EventSource, RawPage
from booking_timeline.models.event import CalendarEntry, Event
from booking_timeline.models.policy import BookingPolicy, DayRange, Weekday
from booking_timeline.models.time_range import TimeRange


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from booking_timeline.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ScriptedSource(EventSource):
    """Event source answering from a fixed script of pages.

    The script maps `(calendar_id, continuation_token)` to either a page or an
    exception to raise.
    """

    name = "scripted"

    def __init__(self, script: dict[tuple[str, str | None], RawPage | Exception]):
        self.script = script
        self.calls: list[tuple[str, str | None]] = []
        self.closed = False

    async def issue_query(self, calendar_id, time_range, continuation_token=None):
        self.calls.append((calendar_id, continuation_token))
        outcome = self.script[(calendar_id, continuation_token)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_source():
    """Factory for scripted event sources."""
    return ScriptedSource


# =============================================================================
# Time Fixtures
# =============================================================================


# 2024-06-17 is a Monday
MONDAY = datetime(2024, 6, 17, tzinfo=timezone.utc)


@pytest.fixture
def at():
    """Build an aware datetime on Monday 2024-06-17 (or `day_offset` days later)."""

    def _at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
        return MONDAY + timedelta(days=day_offset, hours=hour, minutes=minute)

    return _at


@pytest.fixture
def long_ago() -> datetime:
    """A 'now' earlier than every test window."""
    return datetime(2000, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def morning_range(at) -> TimeRange:
    """Monday 09:00 - 11:00."""
    return TimeRange(min=at(9), max=at(11))


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def busy():
    """Build a busy entry for a calendar."""

    def _busy(calendar_id: str, start: datetime, end: datetime, **event_fields) -> CalendarEntry:
        return CalendarEntry(
            calendar_id=calendar_id,
            event=Event(start=start, end=end, **event_fields),
        )

    return _busy


@pytest.fixture
def open_policy() -> BookingPolicy:
    """Policy allowing bookings at any time of any day."""
    return BookingPolicy(
        time_step=timedelta(minutes=30),
        booking_days=Weekday.all_days(),
        booking_range_of_day=DayRange(min=timedelta(0), max=timedelta(hours=24)),
        minimum_event_duration=timedelta(minutes=15),
    )


@pytest.fixture
def office_policy() -> BookingPolicy:
    """Policy allowing bookings on workdays between 08:00 and 17:00."""
    return BookingPolicy(
        time_step=timedelta(minutes=30),
        booking_days=Weekday.workdays(),
        booking_range_of_day=DayRange(min=timedelta(hours=8), max=timedelta(hours=17)),
        minimum_event_duration=timedelta(minutes=15),
    )


@pytest.fixture
def sample_api_event() -> dict:
    """A Google Calendar API event resource."""
    return {
        "kind": "calendar#event",
        "id": "evt-1",
        "status": "confirmed",
        "summary": "Sprint planning",
        "creator": {"email": "me@example.com"},
        "start": {"dateTime": "2024-06-17T09:45:00Z"},
        "end": {"dateTime": "2024-06-17T10:15:00Z"},
    }
