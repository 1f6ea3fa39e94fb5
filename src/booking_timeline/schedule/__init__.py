"""Timeline scheduling: entry building, gap filling and request assembly."""

from booking_timeline.schedule.aggregator import MultiCalendarAggregator
from booking_timeline.schedule.assembler import ScheduleAssembler, merge_entries
from booking_timeline.schedule.entries import EntryBuilder, EntryMode
from booking_timeline.schedule.timeline import TimelineComposer, compose_timeline

__all__ = [
    "EntryBuilder",
    "EntryMode",
    "MultiCalendarAggregator",
    "TimelineComposer",
    "compose_timeline",
    "ScheduleAssembler",
    "merge_entries",
]
