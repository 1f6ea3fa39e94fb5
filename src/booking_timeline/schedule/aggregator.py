"""Concurrent fetching of several calendars.

Runs one `PagedFetcher.fetch_all` task per calendar id, at most
`max_concurrency` at a time. Results are keyed by calendar id, so completion
order does not matter. The first calendar to fail (by completion time, not by
position in the request) fails the whole fetch; the remaining in-flight
fetches are cancelled and their results discarded.
"""

from __future__ import annotations

import asyncio
import logging

from booking_timeline.calendar.base import EventSource
from booking_timeline.calendar.pagination import PagedFetcher
from booking_timeline.models.event import CalendarEntry, Event
from booking_timeline.models.time_range import TimeRange
from booking_timeline.schedule.entries import EntryBuilder, EntryMode

logger = logging.getLogger(__name__)


class MultiCalendarAggregator:
    """Fetches many calendars in parallel and builds their entries.

    Example:
        ```python
        aggregator = MultiCalendarAggregator(source, builder, max_concurrency=4)
        per_calendar = await aggregator.collect(["room-1", "room-2"], time_range, EntryMode.STANDARD)
        ```
    """

    def __init__(
        self,
        source: EventSource,
        builder: EntryBuilder,
        max_concurrency: int = 8,
    ):
        """Initialize the aggregator.

        Args:
            source: Remote query implementation shared by all fetches
            builder: Entry builder applied to each calendar's events
            max_concurrency: Maximum number of calendars fetched at once
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.fetcher = PagedFetcher(source)
        self.builder = builder
        self.max_concurrency = max_concurrency

    async def fetch_events(
        self,
        calendar_ids: list[str],
        time_range: TimeRange,
    ) -> dict[str, list[Event]]:
        """Fetch every page of every calendar.

        Args:
            calendar_ids: Calendars to fetch; duplicates are fetched once
            time_range: Window to fetch events for

        Returns:
            Mapping of calendar id to its events, in the order of `calendar_ids`

        Raises:
            ScheduleError: The first error raised by any calendar's fetch
        """
        unique_ids = list(dict.fromkeys(calendar_ids))
        if not unique_ids:
            return {}

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results: dict[str, list[Event]] = {}
        # Errors in the order the fetches failed
        failures: list[Exception] = []

        async def fetch_one(calendar_id: str) -> None:
            try:
                async with semaphore:
                    results[calendar_id] = await self.fetcher.fetch_all(calendar_id, time_range)
            except Exception as e:
                failures.append(e)
                raise

        tasks = [
            asyncio.create_task(fetch_one(calendar_id), name=f"fetch:{calendar_id}")
            for calendar_id in unique_ids
        ]

        try:
            _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            # Caller gave up; don't leave fetches running
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if failures:
            error = failures[0]
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(f"Calendar fetch failed, discarding partial results: {error}")
            raise error

        return {calendar_id: results[calendar_id] for calendar_id in unique_ids}

    async def collect(
        self,
        calendar_ids: list[str],
        time_range: TimeRange,
        mode: EntryMode,
    ) -> dict[str, list[CalendarEntry]]:
        """Fetch calendars and build one entry list per calendar.

        Args:
            calendar_ids: Calendars to fetch
            time_range: Window to fetch events for
            mode: Filter applied by the entry builder

        Returns:
            Mapping of calendar id to its entries
        """
        events_by_calendar = await self.fetch_events(calendar_ids, time_range)
        return {
            calendar_id: self.builder.build(calendar_id, events, mode)
            for calendar_id, events in events_by_calendar.items()
        }
