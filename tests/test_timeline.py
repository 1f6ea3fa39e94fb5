"""Tests for the timeline composer."""

from datetime import timedelta

import pytest

from booking_timeline.models.event import CalendarEntry, Event
from booking_timeline.models.policy import BookingPolicy, DayRange, Weekday
from booking_timeline.models.time_range import TimeRange
from booking_timeline.schedule.timeline import TimelineComposer, compose_timeline


def spans(entries: list[CalendarEntry]) -> list[tuple[str, object, object]]:
    """Summarize entries as (kind, start, end) tuples."""
    return [
        ("free" if e.is_free else e.calendar_id, e.event.start, e.event.end)
        for e in entries
    ]


class TestScenarios:
    """End-to-end composition scenarios."""

    def test_single_busy_entry(self, morning_range, open_policy, busy, at, long_ago):
        """Test the 09:00-11:00 window around one busy entry."""
        meeting = busy("room-1", at(9, 45), at(10, 15))

        result = compose_timeline(morning_range, [meeting], open_policy, long_ago)

        assert spans(result) == [
            ("free", at(9), at(9, 30)),
            ("free", at(9, 30), at(9, 45)),
            ("room-1", at(9, 45), at(10, 15)),
            ("free", at(10, 15), at(10, 45)),
            ("free", at(10, 45), at(11)),
        ]
        assert result[2] is meeting

    def test_longer_minimum_drops_short_slots(
        self, morning_range, open_policy, busy, at, long_ago
    ):
        """Test that 15-minute slots vanish with a 20-minute minimum."""
        policy = open_policy.model_copy(
            update={"minimum_event_duration": timedelta(minutes=20)}
        )
        meeting = busy("room-1", at(9, 45), at(10, 15))

        result = compose_timeline(morning_range, [meeting], policy, long_ago)

        assert spans(result) == [
            ("free", at(9), at(9, 30)),
            ("room-1", at(9, 45), at(10, 15)),
            ("free", at(10, 15), at(10, 45)),
        ]

    def test_no_entries(self, morning_range, open_policy, long_ago, at):
        """Test that an empty calendar yields step-sized free slots."""
        result = compose_timeline(morning_range, [], open_policy, long_ago)
        assert spans(result) == [
            ("free", at(9), at(9, 30)),
            ("free", at(9, 30), at(10)),
            ("free", at(10), at(10, 30)),
            ("free", at(10, 30), at(11)),
        ]

    def test_empty_range(self, open_policy, busy, at, long_ago):
        """Test that an empty window yields nothing."""
        time_range = TimeRange(min=at(9), max=at(9))
        result = compose_timeline(
            time_range, [busy("room-1", at(9), at(10))], open_policy, long_ago
        )
        assert result == []

    def test_busy_entry_at_window_start(self, morning_range, open_policy, busy, at, long_ago):
        """Test that a busy entry starting at the window start is emitted first."""
        meeting = busy("room-1", at(9), at(10))
        result = compose_timeline(morning_range, [meeting], open_policy, long_ago)
        assert spans(result) == [
            ("room-1", at(9), at(10)),
            ("free", at(10), at(10, 30)),
            ("free", at(10, 30), at(11)),
        ]

    def test_busy_entry_starting_before_window(
        self, morning_range, open_policy, busy, at, long_ago
    ):
        """Test that an entry already running advances the cursor by its duration."""
        meeting = busy("room-1", at(8, 30), at(9, 30))
        result = compose_timeline(morning_range, [meeting], open_policy, long_ago)
        assert spans(result)[0] == ("room-1", at(8, 30), at(9, 30))
        # cursor moved from 09:00 by one hour
        assert spans(result)[1] == ("free", at(10), at(10, 30))

    def test_back_to_back_entries(self, morning_range, open_policy, busy, at, long_ago):
        """Test adjacent busy entries from different calendars."""
        first = busy("room-1", at(9), at(9, 30))
        second = busy("room-2", at(9, 30), at(10, 30))
        result = compose_timeline(morning_range, [first, second], open_policy, long_ago)
        assert spans(result) == [
            ("room-1", at(9), at(9, 30)),
            ("room-2", at(9, 30), at(10, 30)),
            ("free", at(10, 30), at(11)),
        ]

    def test_overlapping_entries_are_kept(self, morning_range, open_policy, busy, at, long_ago):
        """Test that overlapping busy entries are both emitted in order."""
        first = busy("room-1", at(9), at(10))
        second = busy("room-2", at(9, 30), at(10, 30))
        result = compose_timeline(morning_range, [first, second], open_policy, long_ago)
        assert [e.calendar_id for e in result if not e.is_free] == ["room-1", "room-2"]
        assert all(not e.is_free or e.event.start >= at(10, 30) for e in result[2:])

    def test_gap_rounded_up_to_seconds(self, morning_range, open_policy, at, long_ago):
        """Test that sub-second gaps are rounded up before comparison."""
        policy = open_policy.model_copy(update={"minimum_event_duration": timedelta(0)})
        start = at(9) + timedelta(milliseconds=500)
        meeting = CalendarEntry(
            calendar_id="room-1", event=Event(start=start, end=start + timedelta(hours=1))
        )

        result = compose_timeline(morning_range, [meeting], policy, long_ago)

        assert spans(result)[0] == ("free", at(9), at(9) + timedelta(seconds=1))
        assert result[1] is meeting


class TestMalformedEntries:
    """Tests for entries without usable times."""

    def test_malformed_entries_are_skipped(self, morning_range, open_policy, busy, at, long_ago):
        """Test that malformed entries first in the list do not stall the sweep."""
        entries = [
            CalendarEntry(calendar_id="room-1", event=Event(start=None, end=at(10))),
            CalendarEntry(calendar_id="room-1", event=Event(start=at(10), end=None)),
            CalendarEntry(calendar_id="room-1", event=Event(start=at(10), end=at(9))),
            busy("room-1", at(10), at(10, 30)),
        ]

        result = compose_timeline(morning_range, entries, open_policy, long_ago)

        assert spans(result) == [
            ("free", at(9), at(9, 30)),
            ("free", at(9, 30), at(10)),
            ("room-1", at(10), at(10, 30)),
            ("free", at(10, 30), at(11)),
        ]

    def test_only_malformed_entries(self, morning_range, open_policy, at, long_ago):
        """Test that a list of only malformed entries behaves like an empty one."""
        entries = [
            CalendarEntry(calendar_id="room-1", event=Event())
            for _ in range(5)
        ]
        result = compose_timeline(morning_range, entries, open_policy, long_ago)
        assert all(e.is_free for e in result)
        assert len(result) == 4


class TestFreeSlotPolicy:
    """Tests for free slot validation."""

    def test_weekday_exclusion(self, at, long_ago):
        """Test that slots starting on excluded days never appear."""
        policy = BookingPolicy(
            booking_days=Weekday.workdays(),
            booking_range_of_day=DayRange(min=timedelta(0), max=timedelta(hours=24)),
        )
        # Friday 23:00 -> Saturday 01:00
        time_range = TimeRange(min=at(23, day_offset=4), max=at(1, day_offset=5))

        result = compose_timeline(time_range, [], policy, long_ago)

        assert spans(result) == [
            ("free", at(23, day_offset=4), at(23, 30, day_offset=4)),
            ("free", at(23, 30, day_offset=4), at(0, day_offset=5)),
        ]
        assert all(e.event.start.weekday() in policy.booking_days for e in result)

    def test_whole_weekend_excluded(self, office_policy, at, long_ago):
        """Test that a weekend window offers nothing under an office policy."""
        time_range = TimeRange(min=at(0, day_offset=5), max=at(0, day_offset=7))
        assert compose_timeline(time_range, [], office_policy, long_ago) == []

    def test_time_of_day_bounds_inclusive(self, office_policy, at, long_ago):
        """Test that slots may start exactly at the end of the bookable day."""
        time_range = TimeRange(min=at(16), max=at(18))
        result = compose_timeline(time_range, [], office_policy, long_ago)
        assert [e.event.start for e in result] == [at(16), at(16, 30), at(17)]

    def test_before_opening(self, office_policy, at, long_ago):
        """Test that slots before the bookable day starts are dropped."""
        time_range = TimeRange(min=at(7), max=at(9))
        result = compose_timeline(time_range, [], office_policy, long_ago)
        assert [e.event.start for e in result] == [at(8), at(8, 30)]

    def test_past_clamp(self, morning_range, open_policy, at):
        """Test that a slot containing now starts at now."""
        result = compose_timeline(morning_range, [], open_policy, now=at(9, 10))
        assert spans(result)[0] == ("free", at(9, 10), at(9, 30))

    def test_past_clamp_too_short(self, morning_range, open_policy, at):
        """Test that a clamped slot below the minimum is dropped."""
        result = compose_timeline(morning_range, [], open_policy, now=at(9, 20))
        assert spans(result)[0] == ("free", at(9, 30), at(10))

    def test_fully_past_slots_dropped(self, morning_range, open_policy, at):
        """Test that slots entirely in the past are dropped."""
        result = compose_timeline(morning_range, [], open_policy, now=at(10, 5))
        assert spans(result) == [
            ("free", at(10, 5), at(10, 30)),
            ("free", at(10, 30), at(11)),
        ]

    def test_busy_entries_ignore_policy(self, morning_range, office_policy, busy, at):
        """Test that busy entries are emitted regardless of the policy."""
        saturday = TimeRange(min=at(9, day_offset=5), max=at(11, day_offset=5))
        meeting = busy("room-1", at(9, day_offset=5), at(10, day_offset=5))
        result = compose_timeline(saturday, [meeting], office_policy, now=at(12, day_offset=5))
        assert result == [meeting]

    def test_validate_free_slot(self, open_policy, at):
        """Test direct validation of a candidate."""
        composer = TimelineComposer(open_policy)
        slot = composer.validate_free_slot(at(9), at(9, 30), now=at(9, 5))
        assert slot is not None
        assert slot.is_free
        assert slot.event.start == at(9, 5)
        assert composer.validate_free_slot(at(9), at(9, 10), now=at(8)) is None


class TestSweepProperties:
    """Property-style checks over the sweep."""

    @pytest.mark.parametrize("step_minutes", [1, 7, 30, 45, 120, 600])
    def test_terminates_and_stays_within_range(self, morning_range, busy, at, long_ago, step_minutes):
        """Test termination and that no free slot leaves the window."""
        policy = BookingPolicy(
            time_step=timedelta(minutes=step_minutes),
            booking_days=Weekday.all_days(),
            booking_range_of_day=DayRange(),
            minimum_event_duration=timedelta(0),
        )
        entries = [busy("room-1", at(9, 20), at(9, 50)), busy("room-2", at(10, 10), at(10, 25))]

        result = compose_timeline(morning_range, entries, policy, long_ago)

        free = [e for e in result if e.is_free]
        assert all(morning_range.min <= e.event.start < e.event.end <= morning_range.max for e in free)

    def test_coverage_without_gaps_or_overlaps(self, busy, at, long_ago):
        """Test that busy and free entries tile the window exactly."""
        policy = BookingPolicy(
            booking_days=Weekday.all_days(),
            booking_range_of_day=DayRange(),
            minimum_event_duration=timedelta(0),
        )
        time_range = TimeRange(min=at(9), max=at(12))
        entries = [
            busy("room-1", at(9, 10), at(9, 40)),
            busy("room-2", at(10), at(10, 5)),
            busy("room-1", at(10, 50), at(11, 30)),
        ]

        result = compose_timeline(time_range, entries, policy, long_ago)

        assert result[0].event.start == time_range.min
        assert result[-1].event.end == time_range.max
        for previous, current in zip(result, result[1:]):
            assert previous.event.end == current.event.start
        assert [e for e in result if not e.is_free] == entries

    def test_free_slots_never_overlap_busy(self, busy, at, long_ago, open_policy):
        """Test that free slots and busy entries are disjoint."""
        time_range = TimeRange(min=at(8), max=at(18))
        entries = [
            busy("a", at(8, 50), at(9, 35)),
            busy("b", at(9, 35), at(9, 36)),
            busy("a", at(13, 1), at(14, 59)),
        ]

        result = compose_timeline(time_range, entries, open_policy, long_ago)

        free = [e for e in result if e.is_free]
        for slot in free:
            for entry in entries:
                assert slot.event.end <= entry.event.start or slot.event.start >= entry.event.end
        for previous, current in zip(free, free[1:]):
            assert previous.event.end <= current.event.start
        starts = [e.event.start for e in result]
        assert starts == sorted(starts)
