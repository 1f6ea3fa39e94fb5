"""FastAPI dependencies for calendar access.

## Usage

```python
from fastapi import Depends
from booking_timeline.api.dependencies import get_event_source

@router.get("/")
async def handler(source: EventSource = Depends(get_event_source)):
    ...
```
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request, status

from booking_timeline.calendar.base import EventSource
from booking_timeline.calendar.google_rest import GoogleCalendarSource
from booking_timeline.config import Settings, get_settings

logger = logging.getLogger(__name__)


async def get_access_token(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    """Get the Google access token for this request.

    Raises 401 if neither the request nor the configuration provides one.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()

    if settings.google_access_token:
        return settings.google_access_token

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Google access token required",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_event_source(
    access_token: str = Depends(get_access_token),
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[EventSource, None]:
    """Provide a calendar source for the request and close it afterwards."""
    source = GoogleCalendarSource(
        access_token,
        base_url=settings.google_calendar_base_url,
        page_size=settings.page_size,
        timeout=settings.request_timeout_seconds,
    )
    try:
        yield source
    finally:
        await source.aclose()


async def get_current_user_email(
    x_user_email: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Get the requesting user's email, if known."""
    return x_user_email or settings.current_user_email


def get_compose_executor(request: Request) -> Executor | None:
    """Get the shared composition executor created at startup."""
    return getattr(request.app.state, "compose_executor", None)
