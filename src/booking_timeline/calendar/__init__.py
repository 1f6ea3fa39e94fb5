"""Calendar integration module.

Provides the remote query interface used to fetch busy events, the paginated
fetch protocol, and Google Calendar implementations of the interface.

## Fetch Process

1. Build a `PageCursor` for a calendar and time range
2. Issue one query per page through an `EventSource`
3. Follow continuation tokens until the last page
4. Concatenate every page's items in arrival order

## Sources

- `GoogleCalendarSource`: REST API over httpx (async)
- `GoogleApiEventSource`: google-api-python-client discovery service
"""

from booking_timeline.calendar.base import (
    DecodeError,
    EventSource,
    RateLimitError,
    RawPage,
    ScheduleError,
    TransportError,
)
from booking_timeline.calendar.google_api import CalendarInfo, GoogleApiEventSource
from booking_timeline.calendar.google_rest import GoogleCalendarSource
from booking_timeline.calendar.pagination import PageCursor, PagedFetcher

__all__ = [
    "EventSource",
    "RawPage",
    "ScheduleError",
    "TransportError",
    "RateLimitError",
    "DecodeError",
    "PageCursor",
    "PagedFetcher",
    "GoogleCalendarSource",
    "GoogleApiEventSource",
    "CalendarInfo",
]
