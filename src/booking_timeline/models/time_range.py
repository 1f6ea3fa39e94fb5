"""Time range model shared by fetching and composition."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def ensure_utc_aware(moment: datetime | None) -> datetime | None:
    """Attach UTC to a naive datetime; aware datetimes are returned unchanged."""
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class TimeRange(BaseModel):
    """A closed-open window of time `[min, max)`.

    Naive bounds are taken to be UTC. Aware bounds keep their offset.
    """

    model_config = ConfigDict(frozen=True)

    min: datetime = Field(..., description="Start of the window")
    max: datetime = Field(..., description="End of the window")

    @field_validator("min", "max")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return ensure_utc_aware(v)

    @model_validator(mode="after")
    def validate_order(self) -> Self:
        """Ensure the window is not inverted."""
        if self.min > self.max:
            raise ValueError(
                f"Time range start {self.min.isoformat()} is after "
                f"end {self.max.isoformat()}"
            )
        return self

    @classmethod
    def between(cls, start: datetime, end: datetime) -> Self:
        """Create a range from two datetimes."""
        return cls(min=start, max=end)

    @property
    def duration(self) -> timedelta:
        return self.max - self.min

    def contains(self, moment: datetime) -> bool:
        """Check if a moment falls inside `[min, max)`."""
        return self.min <= moment < self.max
