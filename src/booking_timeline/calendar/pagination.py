"""Paginated fetching of a single calendar.

A calendar's events may span several pages. `PagedFetcher.fetch` issues one
remote query per call and hands back a cursor for the next page;
`PagedFetcher.fetch_all` drives that loop to completion, concatenating the
items of every page in arrival order.

## Failure Policy

Any `TransportError` or `DecodeError` aborts the calendar's fetch at once.
Later pages are not requested and nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from booking_timeline.calendar.base import DecodeError, EventSource
from booking_timeline.models.event import Event
from booking_timeline.models.time_range import TimeRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageCursor:
    """A calendar query plus the continuation token for its next page."""

    calendar_id: str
    time_range: TimeRange
    continuation_token: str | None = None

    def advance(self, continuation_token: str) -> PageCursor:
        """Return the cursor for the page referenced by `continuation_token`."""
        return replace(self, continuation_token=continuation_token)


class PagedFetcher:
    """Fetches all pages of a calendar from an event source.

    Example:
        ```python
        fetcher = PagedFetcher(source)

        # One page at a time
        items, cursor = await fetcher.fetch(PageCursor("room-1", time_range))
        while cursor is not None:
            more, cursor = await fetcher.fetch(cursor)

        # Or everything at once
        events = await fetcher.fetch_all("room-1", time_range)
        ```
    """

    def __init__(self, source: EventSource):
        """Initialize the fetcher.

        Args:
            source: Remote query implementation
        """
        self.source = source

    async def fetch(self, cursor: PageCursor) -> tuple[list[Event], PageCursor | None]:
        """Fetch the page referenced by a cursor.

        Args:
            cursor: Calendar, time range and optional continuation token

        Returns:
            Tuple of (page items, cursor for the next page or None when done)
        """
        page = await self.source.issue_query(
            cursor.calendar_id,
            cursor.time_range,
            cursor.continuation_token,
        )

        next_cursor = None
        if page.next_continuation_token:
            next_cursor = cursor.advance(page.next_continuation_token)

        return list(page.items), next_cursor

    async def fetch_all(self, calendar_id: str, time_range: TimeRange) -> list[Event]:
        """Fetch every page of a calendar.

        Args:
            calendar_id: Calendar to fetch
            time_range: Window to fetch events for

        Returns:
            Items of all pages, concatenated in page-arrival order

        Raises:
            TransportError: If any page request fails
            DecodeError: If any page cannot be decoded, or the source
                repeats a continuation token
        """
        events: list[Event] = []
        seen_tokens: set[str] = set()
        cursor: PageCursor | None = PageCursor(calendar_id, time_range)
        pages = 0

        while cursor is not None:
            items, cursor = await self.fetch(cursor)
            events.extend(items)
            pages += 1

            logger.debug(
                f"Fetched page {pages} of calendar {calendar_id}: {len(items)} items"
            )

            if cursor is not None:
                if cursor.continuation_token in seen_tokens:
                    raise DecodeError(
                        f"Continuation token repeated for calendar {calendar_id}",
                        calendar_id=calendar_id,
                    )
                seen_tokens.add(cursor.continuation_token)

        logger.info(
            f"Fetched calendar {calendar_id}: {len(events)} events in {pages} pages"
        )
        return events
