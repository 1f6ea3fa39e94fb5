"""Base calendar event source abstraction.

This module defines the remote query interface consumed by the paginated
fetcher, the page format every source must produce, and the error hierarchy
raised when a calendar cannot be fetched.

## Remote Query Contract

```
issue_query(calendar_id, time_range, continuation_token) -> RawPage
```

- Exactly one remote request per call
- `RawPage.items` are decoded `Event` objects in the order the remote returned them
- `RawPage.next_continuation_token` is set when more pages are available

### Error Translation Requirements
Each source must translate its transport failures into `TransportError`
(or `RateLimitError`) and payload problems into `DecodeError`. Sources never
retry: the first failure aborts the calendar's fetch.

## Supported Sources

### Google Calendar REST (httpx)
- Endpoint: https://www.googleapis.com/calendar/v3/calendars/{calendarId}/events
- Auth: OAuth bearer access token
- Key response path: items[], nextPageToken

### Google Calendar discovery client (google-api-python-client)
- Same endpoint through `service.events().list(...)`
- Auth: `google.oauth2.credentials.Credentials`
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from booking_timeline.models.event import Event
from booking_timeline.models.time_range import TimeRange


class ScheduleError(Exception):
    """Base exception for calendar fetch errors."""

    def __init__(self, message: str, calendar_id: str | None = None):
        super().__init__(message)
        self.calendar_id = calendar_id


class TransportError(ScheduleError):
    """Raised when a remote query fails at the network or HTTP level."""

    def __init__(
        self,
        message: str,
        calendar_id: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message, calendar_id=calendar_id)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(TransportError):
    """Raised when the remote rate limit is exceeded."""

    def __init__(
        self,
        calendar_id: str | None = None,
        retry_after: int | None = None,
        status_code: int | None = 429,
    ):
        super().__init__(
            f"Rate limit exceeded for calendar {calendar_id}",
            calendar_id=calendar_id,
            status_code=status_code,
        )
        self.retry_after = retry_after


class DecodeError(ScheduleError):
    """Raised when a page payload cannot be interpreted as events."""

    pass


@dataclass
class RawPage:
    """One page of decoded events returned by a remote query."""

    items: list[Event] = field(default_factory=list)
    next_continuation_token: str | None = None


class EventSource(ABC):
    """Abstract base class for remote calendar event sources.

    Example:
        ```python
        class MySource(EventSource):
            name = "my_source"

            async def issue_query(self, calendar_id, time_range, continuation_token=None):
                payload = await self._request(...)
                return self._translate_page(payload, calendar_id)
        ```
    """

    name: str

    @abstractmethod
    async def issue_query(
        self,
        calendar_id: str,
        time_range: TimeRange,
        continuation_token: str | None = None,
    ) -> RawPage:
        """Fetch one page of events.

        Args:
            calendar_id: Calendar to query
            time_range: Window the events must intersect
            continuation_token: Token from the previous page, if any

        Returns:
            The decoded page

        Raises:
            TransportError: If the request fails
            DecodeError: If the payload cannot be decoded
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the source."""
        return None

    async def __aenter__(self) -> EventSource:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
