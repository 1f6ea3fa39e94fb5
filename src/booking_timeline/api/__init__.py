"""FastAPI application and routes.

This module provides a read-only REST API over booking timelines.

## API Structure

- /health - Liveness check
- /api/timeline - Busy/free timeline for a set of calendars

## Authentication

Requests carry a Google OAuth access token as `Authorization: Bearer <token>`.
Without one, the configured `GOOGLE_ACCESS_TOKEN` is used if present.
The requesting user's email (for revocable timelines) comes from the
`X-User-Email` header or `CURRENT_USER_EMAIL`.
"""

from booking_timeline.api.app import create_app

__all__ = ["create_app"]
