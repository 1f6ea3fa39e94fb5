"""Event and calendar entry models.

An `Event` is either a busy event fetched from a remote calendar or a free
event synthesized by the timeline composer. A `CalendarEntry` pairs an event
with the id of the calendar it came from; free entries use an empty id.

## Google Calendar decoding

`Event.from_api` understands the `events#event` resource:

| API field | Event field | Notes |
|-----------|-------------|-------|
| id | id | |
| summary | summary | |
| status | canceled | `"cancelled"` -> True |
| creator.email | creator_email | |
| start.dateTime / start.date | start | all-day dates become UTC midnight |
| end.dateTime / end.date | end | |
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from booking_timeline.models.time_range import ensure_utc_aware

FREE_CALENDAR_ID = ""


def _parse_api_time(data: dict[str, Any] | None) -> datetime | None:
    """Parse a Google `EventDateTime` object."""
    if not data:
        return None
    if data.get("dateTime"):
        return datetime.fromisoformat(data["dateTime"].replace("Z", "+00:00"))
    if data.get("date"):
        day = date.fromisoformat(data["date"])
        return datetime.combine(day, time.min, tzinfo=timezone.utc)
    return None


class Event(BaseModel):
    """A busy or free event."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = Field(default=None, description="Event start time")
    end: datetime | None = Field(default=None, description="Event end time")
    canceled: bool = Field(default=False, description="Whether the event was cancelled")
    creator_email: str | None = Field(
        default=None, description="Email of the user who created the event"
    )
    id: str | None = Field(default=None, description="Remote event id")
    summary: str | None = Field(default=None, description="Event title")
    is_free: bool = Field(
        default=False, description="Whether this is a synthesized free slot"
    )

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive times are taken to be UTC."""
        return ensure_utc_aware(v)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        """Create from a Google Calendar API event resource.

        Raises:
            ValueError: If a date or datetime cannot be parsed
            TypeError: If the payload is not shaped like an event
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected event object, got {type(data).__name__}")
        creator = data.get("creator") or {}
        return cls(
            id=data.get("id"),
            summary=data.get("summary"),
            start=_parse_api_time(data.get("start")),
            end=_parse_api_time(data.get("end")),
            canceled=data.get("status") == "cancelled",
            creator_email=creator.get("email"),
        )

    @classmethod
    def free(cls, start: datetime, end: datetime) -> Self:
        """Create a synthesized free event."""
        return cls(start=start, end=end, is_free=True)

    @property
    def is_usable(self) -> bool:
        """Whether the event has a start and an end that is not before it."""
        return self.start is not None and self.end is not None and self.end >= self.start

    @property
    def duration(self) -> timedelta | None:
        if not self.is_usable:
            return None
        return self.end - self.start


class CalendarEntry(BaseModel):
    """An event tagged with its owning calendar."""

    model_config = ConfigDict(frozen=True)

    calendar_id: str = Field(..., description="Owning calendar id, empty for free slots")
    event: Event = Field(..., description="The wrapped event")

    @classmethod
    def free(cls, start: datetime, end: datetime) -> Self:
        """Create a free entry belonging to no calendar."""
        return cls(calendar_id=FREE_CALENDAR_ID, event=Event.free(start, end))

    @property
    def is_free(self) -> bool:
        return self.calendar_id == FREE_CALENDAR_ID

    @property
    def start(self) -> datetime | None:
        return self.event.start

    @property
    def end(self) -> datetime | None:
        return self.event.end


def sort_key(entry: CalendarEntry) -> tuple[bool, datetime | None]:
    """Sort key ordering entries by start, entries lacking a start last."""
    return (entry.event.start is None, entry.event.start)


def sorted_by_start(entries: list[CalendarEntry]) -> list[CalendarEntry]:
    """Return entries sorted by event start (stable)."""
    return sorted(entries, key=sort_key)
