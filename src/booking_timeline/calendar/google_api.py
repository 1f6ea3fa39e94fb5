"""Google Calendar event source backed by google-api-python-client.

The discovery client is synchronous; every `.execute()` call runs in a worker
thread so the event loop is never blocked while a page is in flight.

## API Documentation

https://developers.google.com/calendar/api/v3/reference

## Authentication

Uses OAuth 2.0 access tokens obtained elsewhere. With a refresh token and
client credentials, `google-auth` refreshes expired tokens transparently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httplib2
from google.auth import exceptions as auth_exceptions
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from booking_timeline.calendar.base import (
    EventSource,
    RateLimitError,
    RawPage,
    TransportError,
)
from booking_timeline.calendar.google_rest import translate_events_page
from booking_timeline.models.time_range import TimeRange

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass
class CalendarInfo:
    """Information about a calendar."""

    id: str
    summary: str
    time_zone: str | None = None
    is_primary: bool = False
    access_role: str = "reader"  # freeBusyReader, reader, writer, owner

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CalendarInfo:
        """Create from Google Calendar API response."""
        return cls(
            id=data["id"],
            summary=data.get("summary", ""),
            time_zone=data.get("timeZone"),
            is_primary=data.get("primary", False),
            access_role=data.get("accessRole", "reader"),
        )


class GoogleApiEventSource(EventSource):
    """Event source using the Google API discovery client.

    Example:
        ```python
        source = GoogleApiEventSource(access_token, refresh_token)

        # List calendars
        calendars = await source.list_calendars()

        # One page of events
        page = await source.issue_query(calendar_id, time_range)
        ```
    """

    name = "google_api"

    def __init__(
        self,
        access_token: str,
        refresh_token: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        page_size: int = 250,
        service: Any = None,
    ):
        """Initialize the source.

        Args:
            access_token: OAuth access token
            refresh_token: OAuth refresh token for auto-refresh
            client_id: OAuth client id, needed for refresh
            client_secret: OAuth client secret, needed for refresh
            page_size: Maximum events per page
            service: Pre-built discovery service (mostly for tests)
        """
        self.page_size = page_size

        if service is None:
            credentials = Credentials(
                token=access_token,
                refresh_token=refresh_token,
                token_uri=TOKEN_URI,
                client_id=client_id,
                client_secret=client_secret,
            )
            service = build(
                "calendar", "v3", credentials=credentials, cache_discovery=False
            )
        self._service = service

    async def _execute(self, request: Any, calendar_id: str | None) -> dict[str, Any]:
        """Execute a discovery request off the event loop."""
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            status_code = e.resp.status if e.resp is not None else None
            if status_code == 429:
                raise RateLimitError(calendar_id) from e
            logger.warning(f"Calendar API request for {calendar_id} failed: {e}")
            raise TransportError(
                f"API request failed: {status_code}",
                calendar_id=calendar_id,
                status_code=status_code,
                response_body=e.content.decode("utf-8", "replace") if e.content else None,
            ) from e
        except (
            OSError,
            httplib2.HttpLib2Error,
            auth_exceptions.TransportError,
            auth_exceptions.RefreshError,
        ) as e:
            logger.warning(f"Calendar API request for {calendar_id} failed: {e}")
            raise TransportError(
                f"Request for calendar {calendar_id} failed: {e}",
                calendar_id=calendar_id,
            ) from e

    async def issue_query(
        self,
        calendar_id: str,
        time_range: TimeRange,
        continuation_token: str | None = None,
    ) -> RawPage:
        """Fetch one page of a calendar's events."""
        params: dict[str, Any] = {
            "calendarId": calendar_id,
            "timeMin": time_range.min.isoformat(),
            "timeMax": time_range.max.isoformat(),
            "maxResults": self.page_size,
            "singleEvents": True,  # Expand recurring events
            "orderBy": "startTime",
            "showDeleted": True,
        }
        if continuation_token:
            params["pageToken"] = continuation_token

        result = await self._execute(self._service.events().list(**params), calendar_id)
        return translate_events_page(result, calendar_id)

    async def list_calendars(self) -> list[CalendarInfo]:
        """List all calendars accessible to the user.

        Returns:
            List of CalendarInfo objects
        """
        calendars = []
        page_token = None

        while True:
            result = await self._execute(
                self._service.calendarList().list(pageToken=page_token), None
            )

            for item in result.get("items", []):
                calendars.append(CalendarInfo.from_api(item))

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        return calendars
