"""Google Calendar event source over the REST API.

## API Documentation Summary
Source: https://developers.google.com/calendar/api/v3/reference/events/list

## Endpoint
- Base URL: https://www.googleapis.com/calendar/v3
- Path: /calendars/{calendarId}/events
- Full URL example:
  https://www.googleapis.com/calendar/v3/calendars/primary/events?timeMin=...&timeMax=...

## Authentication
- OAuth 2.0 bearer access token in the Authorization header
- 401 when the token is missing or expired

## Query Parameters
| Parameter | Value | Notes |
|-----------|-------|-------|
| timeMin | time_range.min (RFC 3339) | Lower bound on event end |
| timeMax | time_range.max (RFC 3339) | Upper bound on event start |
| singleEvents | true | Expand recurring events |
| orderBy | startTime | Requires singleEvents |
| maxResults | page_size | At most 2500 |
| pageToken | continuation token | Only after the first page |
| showDeleted | true | Cancelled events are filtered locally |

## Response Format
```json
{
  "kind": "calendar#events",
  "items": [
    {
      "id": "abc123",
      "status": "confirmed",
      "summary": "Standup",
      "creator": {"email": "someone@example.com"},
      "start": {"dateTime": "2024-06-17T09:45:00Z"},
      "end": {"dateTime": "2024-06-17T10:15:00Z"}
    }
  ],
  "nextPageToken": "CiAKGjBpNDd2Nmp2Zml2cXRwYjBpOXA"
}
```
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from booking_timeline.calendar.base import (
    DecodeError,
    EventSource,
    RateLimitError,
    RawPage,
    TransportError,
)
from booking_timeline.models.event import Event
from booking_timeline.models.time_range import TimeRange

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.googleapis.com/calendar/v3"


def translate_events_page(payload: Any, calendar_id: str) -> RawPage:
    """Translate an `events#list` response into a `RawPage`.

    Args:
        payload: Decoded JSON response
        calendar_id: Calendar the page belongs to (for error reporting)

    Returns:
        The decoded page

    Raises:
        DecodeError: If the payload is not an events list
    """
    if not isinstance(payload, dict):
        raise DecodeError(
            f"Expected an events list for calendar {calendar_id}, "
            f"got {type(payload).__name__}",
            calendar_id=calendar_id,
        )

    raw_items = payload.get("items", [])
    if not isinstance(raw_items, list):
        raise DecodeError(
            f"Malformed items in events list for calendar {calendar_id}",
            calendar_id=calendar_id,
        )

    try:
        items = [Event.from_api(item) for item in raw_items]
    except (ValueError, TypeError, AttributeError, ValidationError) as e:
        raise DecodeError(
            f"Could not decode events for calendar {calendar_id}: {e}",
            calendar_id=calendar_id,
        ) from e

    token = payload.get("nextPageToken")
    if token is not None and not isinstance(token, str):
        raise DecodeError(
            f"Malformed page token for calendar {calendar_id}",
            calendar_id=calendar_id,
        )

    return RawPage(items=items, next_continuation_token=token or None)


class GoogleCalendarSource(EventSource):
    """Google Calendar source using an async httpx client.

    Example:
        ```python
        async with GoogleCalendarSource(access_token) as source:
            page = await source.issue_query("primary", time_range)
        ```
    """

    name = "google_rest"

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        page_size: int = 250,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the source.

        Args:
            access_token: OAuth access token
            base_url: Calendar API base URL
            page_size: Maximum events per page
            timeout: Request timeout in seconds
            client: Pre-built client (mostly for tests); created lazily otherwise
        """
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def _build_params(
        self,
        time_range: TimeRange,
        continuation_token: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "timeMin": time_range.min.isoformat(),
            "timeMax": time_range.max.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": self.page_size,
            "showDeleted": "true",
        }
        if continuation_token:
            params["pageToken"] = continuation_token
        return params

    async def issue_query(
        self,
        calendar_id: str,
        time_range: TimeRange,
        continuation_token: str | None = None,
    ) -> RawPage:
        """Fetch one page of a calendar's events."""
        client = self._get_client()
        url = f"{self.base_url}/calendars/{quote(calendar_id, safe='')}/events"

        try:
            response = await client.get(
                url,
                params=self._build_params(time_range, continuation_token),
                headers=self._get_default_headers(),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Request for calendar {calendar_id} failed: {e}")
            raise TransportError(
                f"Request for calendar {calendar_id} failed: {e}",
                calendar_id=calendar_id,
            ) from e

        # Handle rate limiting
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                calendar_id,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        # Handle other errors
        if response.status_code >= 400:
            raise TransportError(
                f"API request failed: {response.status_code}",
                calendar_id=calendar_id,
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(
                f"Invalid JSON for calendar {calendar_id}",
                calendar_id=calendar_id,
            ) from e

        return translate_events_page(payload, calendar_id)

    async def aclose(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
