"""Timeline routes.

Serves the busy/free timeline of one or more calendars.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ValidationError

from booking_timeline.api.dependencies import (
    get_compose_executor,
    get_current_user_email,
    get_event_source,
)
from booking_timeline.calendar.base import EventSource, ScheduleError
from booking_timeline.config import Settings, get_settings
from booking_timeline.models.event import CalendarEntry
from booking_timeline.models.time_range import TimeRange
from booking_timeline.schedule.assembler import ScheduleAssembler

logger = logging.getLogger(__name__)

router = APIRouter()


class EntryResponse(BaseModel):
    """A busy or free timeline entry."""

    calendar_id: str
    is_free: bool
    start: datetime | None
    end: datetime | None
    canceled: bool
    creator_email: str | None
    id: str | None
    summary: str | None

    @classmethod
    def from_entry(cls, entry: CalendarEntry) -> EntryResponse:
        return cls(
            calendar_id=entry.calendar_id,
            is_free=entry.is_free,
            start=entry.event.start,
            end=entry.event.end,
            canceled=entry.event.canceled,
            creator_email=entry.event.creator_email,
            id=entry.event.id,
            summary=entry.event.summary,
        )


class TimelineResponse(BaseModel):
    """Timeline response."""

    time_min: datetime
    time_max: datetime
    only_revocable: bool
    entries: list[EntryResponse]


@router.get("/", response_model=TimelineResponse)
async def get_timeline(
    calendar_id: list[str] = Query(...),
    time_min: datetime = Query(...),
    time_max: datetime = Query(...),
    only_revocable: bool = False,
    source: EventSource = Depends(get_event_source),
    user_email: str | None = Depends(get_current_user_email),
    executor: Executor | None = Depends(get_compose_executor),
    settings: Settings = Depends(get_settings),
) -> TimelineResponse:
    """Get the combined timeline of the requested calendars."""
    try:
        time_range = TimeRange(min=time_min, max=time_max)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="time_min must not be after time_max",
        )

    assembler = ScheduleAssembler(
        source=source,
        policy=settings.booking_policy,
        current_user_email=lambda: user_email,
        max_concurrency=settings.max_concurrent_fetches,
        executor=executor,
    )

    try:
        entries = await assembler.provide(calendar_id, time_range, only_revocable)
    except ScheduleError as e:
        logger.warning(f"Timeline request failed for calendar {e.calendar_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch calendar {e.calendar_id}: {str(e)}",
        )
    finally:
        assembler.close()

    return TimelineResponse(
        time_min=time_range.min,
        time_max=time_range.max,
        only_revocable=only_revocable,
        entries=[EntryResponse.from_entry(entry) for entry in entries],
    )
