"""Booking policy models.

The policy decides which synthesized free slots are offered to the user:

- `time_step`: the widest free slot emitted per sweep step
- `booking_days`: weekdays on which free slots may start
- `booking_range_of_day`: offsets from midnight within which a free slot may start
- `minimum_event_duration`: shorter free slots are never offered
"""

from __future__ import annotations

from datetime import timedelta
from enum import IntEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Weekday(IntEnum):
    """Day of week, numbered like `datetime.weekday()`."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def workdays(cls) -> frozenset[Weekday]:
        return frozenset(
            {cls.MONDAY, cls.TUESDAY, cls.WEDNESDAY, cls.THURSDAY, cls.FRIDAY}
        )

    @classmethod
    def all_days(cls) -> frozenset[Weekday]:
        return frozenset(cls)


class DayRange(BaseModel):
    """Offsets from midnight bounding the bookable part of a day."""

    model_config = ConfigDict(frozen=True)

    min: timedelta = Field(default=timedelta(0), description="Earliest start offset")
    max: timedelta = Field(default=timedelta(hours=24), description="Latest start offset")

    @model_validator(mode="after")
    def validate_order(self) -> Self:
        if self.min > self.max:
            raise ValueError("Booking range of day must not end before it starts")
        return self

    def contains(self, offset: timedelta) -> bool:
        """Check if an offset from midnight lies within `[min, max]`."""
        return self.min <= offset <= self.max


class BookingPolicy(BaseModel):
    """Process-wide constraints on offered free slots.

    Read-only during request processing; build one at startup (see
    `Settings.booking_policy`) and pass it down.
    """

    model_config = ConfigDict(frozen=True)

    time_step: timedelta = Field(
        default=timedelta(minutes=30), description="Free slot step size"
    )
    booking_days: frozenset[Weekday] = Field(
        default_factory=Weekday.workdays, description="Weekdays allowing bookings"
    )
    booking_range_of_day: DayRange = Field(
        default_factory=DayRange, description="Bookable offsets from midnight"
    )
    minimum_event_duration: timedelta = Field(
        default=timedelta(minutes=15), description="Shortest bookable free slot"
    )

    @field_validator("time_step")
    @classmethod
    def validate_time_step(cls, v: timedelta) -> timedelta:
        """A non-positive step would never move the sweep forward."""
        if v <= timedelta(0):
            raise ValueError("time_step must be positive")
        return v

    @field_validator("minimum_event_duration")
    @classmethod
    def validate_minimum_duration(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("minimum_event_duration must not be negative")
        return v

    def allows_weekday(self, weekday: int) -> bool:
        return weekday in self.booking_days
