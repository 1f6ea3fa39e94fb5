"""Schedule assembly: fetch, merge and compose in one request.

## Request Flow

1. Fetch every requested calendar concurrently (`MultiCalendarAggregator`)
2. Build entries per calendar (`EntryBuilder`), revocable or standard
3. Merge all calendars and sort by start time
4. In a worker thread: keep the sorted list (revocable) or run the
   `TimelineComposer` (standard)
5. Resume on the caller's event loop with the result

Any calendar failure fails the request: callers get either a complete
timeline or a single error, never a partial result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial

from booking_timeline.calendar.base import EventSource
from booking_timeline.models.event import CalendarEntry, sorted_by_start
from booking_timeline.models.policy import BookingPolicy
from booking_timeline.models.time_range import TimeRange, ensure_utc_aware
from booking_timeline.schedule.aggregator import MultiCalendarAggregator
from booking_timeline.schedule.entries import EntryBuilder, EntryMode, UserEmailProvider
from booking_timeline.schedule.timeline import compose_timeline

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ResultCallback = Callable[[list[CalendarEntry], BaseException | None], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def merge_entries(per_calendar: dict[str, list[CalendarEntry]]) -> list[CalendarEntry]:
    """Concatenate entries of all calendars and sort them by start.

    Busy entries sharing both calendar id and start are collapsed to the
    first one seen.
    """
    merged: list[CalendarEntry] = []
    seen: set[tuple[str, datetime]] = set()

    for entries in per_calendar.values():
        for entry in entries:
            if entry.event.start is not None:
                key = (entry.calendar_id, entry.event.start)
                if key in seen:
                    continue
                seen.add(key)
            merged.append(entry)

    return sorted_by_start(merged)


def build_timeline(
    sorted_entries: list[CalendarEntry],
    time_range: TimeRange,
    policy: BookingPolicy,
    now: datetime,
    only_revocable: bool,
) -> list[CalendarEntry]:
    """Produce the final entry list from merged, sorted entries.

    Runs in a worker thread; it only receives the values it needs.
    """
    if only_revocable:
        return list(sorted_entries)
    return compose_timeline(time_range, sorted_entries, policy, now)


class ScheduleAssembler:
    """Top-level provider of calendar timelines.

    Example:
        ```python
        assembler = ScheduleAssembler(
            source=GoogleCalendarSource(access_token),
            policy=settings.booking_policy,
            current_user_email=lambda: settings.current_user_email,
        )

        entries = await assembler.provide(["room-1", "room-2"], time_range, only_revocable=False)

        # Or with a callback, invoked once on the running loop
        assembler.provide_with_callback(calendar_ids, time_range, False, on_result)
        ```
    """

    def __init__(
        self,
        source: EventSource,
        policy: BookingPolicy,
        current_user_email: UserEmailProvider,
        clock: Clock = utc_now,
        max_concurrency: int = 8,
        executor: Executor | None = None,
    ):
        """Initialize the assembler.

        Args:
            source: Remote query implementation
            policy: Free slot constraints
            current_user_email: Identity used by the revocable filter
            clock: Source of the current time for the past-clamp rule
            max_concurrency: Maximum calendars fetched at once
            executor: Executor for composition; a single-thread pool if omitted
        """
        self.policy = policy
        self.clock = clock
        self.aggregator = MultiCalendarAggregator(
            source,
            EntryBuilder(current_user_email),
            max_concurrency=max_concurrency,
        )
        self._executor = executor
        self._owns_executor = executor is None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="timeline-compose"
            )
        return self._executor

    async def provide(
        self,
        calendar_ids: list[str],
        time_range: TimeRange,
        only_revocable: bool = False,
    ) -> list[CalendarEntry]:
        """Build the timeline for a set of calendars.

        Args:
            calendar_ids: Calendars to include
            time_range: Window to cover
            only_revocable: Return only the current user's active events,
                without free slots

        Returns:
            Entries sorted by start time

        Raises:
            TransportError: If any calendar could not be fetched
            DecodeError: If any calendar page could not be decoded
        """
        mode = EntryMode.from_flag(only_revocable)
        logger.info(
            f"Providing {mode.value} timeline for {len(calendar_ids)} calendars "
            f"from {time_range.min.isoformat()} to {time_range.max.isoformat()}"
        )

        per_calendar = await self.aggregator.collect(calendar_ids, time_range, mode)
        sorted_entries = merge_entries(per_calendar)

        loop = asyncio.get_running_loop()
        entries = await loop.run_in_executor(
            self._get_executor(),
            partial(
                build_timeline,
                sorted_entries,
                time_range,
                self.policy,
                ensure_utc_aware(self.clock()),
                only_revocable,
            ),
        )

        logger.info(f"Provided {len(entries)} entries")
        return entries

    def provide_with_callback(
        self,
        calendar_ids: list[str],
        time_range: TimeRange,
        only_revocable: bool,
        callback: ResultCallback,
    ) -> asyncio.Task[list[CalendarEntry]]:
        """Build the timeline in the background and report through a callback.

        Must be called from a running event loop. `callback(entries, error)` is
        invoked exactly once on that loop: with the entries and `None` on
        success, or with an empty list and the error on failure (including
        cancellation of the returned task).

        Returns:
            The task running the request; cancel it to abort in-flight fetches
        """
        task = asyncio.get_running_loop().create_task(
            self.provide(calendar_ids, time_range, only_revocable)
        )

        def deliver(done: asyncio.Task[list[CalendarEntry]]) -> None:
            if done.cancelled():
                callback([], asyncio.CancelledError())
                return
            error = done.exception()
            if error is not None:
                callback([], error)
            else:
                callback(done.result(), None)

        task.add_done_callback(deliver)
        return task

    def close(self) -> None:
        """Shut down the composition executor if this assembler created it."""
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=False)
            self._executor = None
