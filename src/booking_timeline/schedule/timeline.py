"""Timeline composer: fills the gaps between busy entries with free slots.

## Sweep

A cursor `t` starts at the beginning of the requested window and moves
forward until it reaches the end. At each step, with `gap` being the time
from `t` to the next busy entry's start (rounded up to whole seconds):

| Condition | Action |
|-----------|--------|
| no entries left | free slot `[t, t + step)`, `t += step` |
| next entry malformed | drop the entry, `t` unchanged |
| `gap >= step` | free slot `[t, t + step)`, `t += step` |
| `0 < gap < step` | free slot `[t, t + gap)`, `t += gap` |
| `gap <= 0` | emit the busy entry, `t += entry duration` |

Wide gaps are therefore offered as several step-sized slots, and a gap
narrower than one step becomes a single slot that ends exactly where the busy
entry begins. Free slots never extend past the end of the window.

## Free Slot Policy

A candidate slot is checked against the `BookingPolicy` before it is emitted;
a rejected slot produces no entry but the cursor still advances:

1. Its start must fall on one of `booking_days`
2. Its start's offset from midnight must lie within `booking_range_of_day`
3. A start earlier than `now` is moved to `now`
4. The (possibly shortened) slot must last at least `minimum_event_duration`
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from booking_timeline.models.event import CalendarEntry
from booking_timeline.models.policy import BookingPolicy
from booking_timeline.models.time_range import TimeRange

logger = logging.getLogger(__name__)


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _ceil_seconds(delta: timedelta) -> timedelta:
    """Round a duration up to whole seconds."""
    return timedelta(seconds=math.ceil(delta.total_seconds()))


@dataclass
class _SweepState:
    """Mutable state of one composition, owned by a single sweep."""

    cursor: datetime
    entry_index: int = 0
    output: list[CalendarEntry] = field(default_factory=list)
    dropped_slots: int = 0
    skipped_entries: int = 0


class TimelineComposer:
    """Builds a busy/free timeline from sorted busy entries.

    Example:
        ```python
        composer = TimelineComposer(policy)
        timeline = composer.compose(time_range, sorted_entries, now=datetime.now(timezone.utc))

        for entry in timeline:
            print("free" if entry.is_free else entry.calendar_id, entry.start, entry.end)
        ```
    """

    def __init__(self, policy: BookingPolicy):
        """Initialize the composer.

        Args:
            policy: Constraints on offered free slots
        """
        self.policy = policy

    def compose(
        self,
        time_range: TimeRange,
        sorted_entries: list[CalendarEntry],
        now: datetime,
    ) -> list[CalendarEntry]:
        """Interleave busy entries with free slots across `time_range`.

        Args:
            time_range: Window to cover
            sorted_entries: Busy entries sorted by start ascending
            now: Current time; free slots never start before it

        Returns:
            Busy and free entries in chronological order
        """
        step = self.policy.time_step
        state = _SweepState(cursor=time_range.min)

        while state.cursor < time_range.max:
            if state.entry_index >= len(sorted_entries):
                self._offer_free_slot(state, state.cursor + step, time_range, now)
                state.cursor += step
                continue

            entry = sorted_entries[state.entry_index]
            if not entry.event.is_usable:
                logger.debug(f"Skipping malformed entry from calendar {entry.calendar_id}")
                state.entry_index += 1
                state.skipped_entries += 1
                continue

            gap = _ceil_seconds(entry.event.start - state.cursor)

            if gap >= step:
                self._offer_free_slot(state, state.cursor + step, time_range, now)
                state.cursor += step
            elif gap > timedelta(0):
                self._offer_free_slot(state, state.cursor + gap, time_range, now)
                state.cursor += gap
            else:
                state.output.append(entry)
                state.cursor += entry.event.end - entry.event.start
                state.entry_index += 1

        logger.debug(
            f"Composed {len(state.output)} entries "
            f"({state.dropped_slots} free slots dropped, "
            f"{state.skipped_entries} malformed entries skipped)"
        )
        return state.output

    def _offer_free_slot(
        self,
        state: _SweepState,
        end: datetime,
        time_range: TimeRange,
        now: datetime,
    ) -> None:
        """Validate a candidate `[state.cursor, end)` and emit it if allowed."""
        slot = self.validate_free_slot(state.cursor, min(end, time_range.max), now)
        if slot is None:
            state.dropped_slots += 1
        else:
            state.output.append(slot)

    def validate_free_slot(
        self,
        start: datetime,
        end: datetime,
        now: datetime,
    ) -> CalendarEntry | None:
        """Apply the booking policy to a candidate free slot.

        Args:
            start: Candidate start
            end: Candidate end
            now: Current time

        Returns:
            The free entry, or None if the policy rejects the slot
        """
        policy = self.policy

        # cannot book on undeclared days
        if not policy.allows_weekday(start.weekday()):
            return None

        # cannot book outside the bookable part of the day
        if not policy.booking_range_of_day.contains(start - _midnight(start)):
            return None

        if start < now:
            start = now

        # a slot already in the past ends up with a negative duration here
        if end - start < policy.minimum_event_duration:
            return None

        return CalendarEntry.free(start, end)


def compose_timeline(
    time_range: TimeRange,
    sorted_entries: list[CalendarEntry],
    policy: BookingPolicy,
    now: datetime,
) -> list[CalendarEntry]:
    """Convenience function to compose a timeline.

    Args:
        time_range: Window to cover
        sorted_entries: Busy entries sorted by start ascending
        policy: Constraints on offered free slots
        now: Current time

    Returns:
        Busy and free entries in chronological order
    """
    return TimelineComposer(policy).compose(time_range, sorted_entries, now)
