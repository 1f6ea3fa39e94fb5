"""Domain models for booking timelines."""

from booking_timeline.models.event import (
    FREE_CALENDAR_ID,
    CalendarEntry,
    Event,
    sorted_by_start,
)
from booking_timeline.models.policy import BookingPolicy, DayRange, Weekday
from booking_timeline.models.time_range import TimeRange

__all__ = [
    # Time
    "TimeRange",
    # Events
    "Event",
    "CalendarEntry",
    "FREE_CALENDAR_ID",
    "sorted_by_start",
    # Policy
    "BookingPolicy",
    "DayRange",
    "Weekday",
]
