"""Application configuration.

Configuration is loaded from environment variables using pydantic-settings.
Sensitive values (OAuth tokens, client secrets) should be provided via
environment variables, not config files.

## Optional Environment Variables

- GOOGLE_ACCESS_TOKEN: OAuth access token used by the CLI and as API fallback
- GOOGLE_REFRESH_TOKEN / GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET: token refresh
- CURRENT_USER_EMAIL: Identity used to find revocable events
- LOG_LEVEL: Logging level (default: INFO)

## Booking Policy

- TIME_STEP: Free slot step as an ISO 8601 duration (default: PT30M)
- BOOKING_DAYS: Comma-separated weekday names or numbers, Monday = 0
  (default: mon,tue,wed,thu,fri)
- BOOKING_DAY_START / BOOKING_DAY_END: Bookable offsets from midnight
  (default: PT8H / PT20H)
- MINIMUM_EVENT_DURATION: Shortest offered free slot (default: PT15M)

## Example .env file

```
GOOGLE_ACCESS_TOKEN=ya29.a0Af...
CURRENT_USER_EMAIL=me@example.com
BOOKING_DAYS=mon,tue,wed,thu,fri
TIME_STEP=PT30M
```
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from booking_timeline.models.policy import BookingPolicy, DayRange, Weekday

WEEKDAY_NAMES = {
    "mon": Weekday.MONDAY,
    "tue": Weekday.TUESDAY,
    "wed": Weekday.WEDNESDAY,
    "thu": Weekday.THURSDAY,
    "fri": Weekday.FRIDAY,
    "sat": Weekday.SATURDAY,
    "sun": Weekday.SUNDAY,
}


def parse_weekday(value: Any) -> Weekday:
    """Parse a weekday from a name ('mon', 'Monday'), a number or a Weekday."""
    if isinstance(value, Weekday):
        return value
    if isinstance(value, int):
        return Weekday(value)
    text = str(value).strip().lower()
    if text.isdigit():
        return Weekday(int(text))
    if text[:3] in WEEKDAY_NAMES:
        return WEEKDAY_NAMES[text[:3]]
    raise ValueError(f"Invalid weekday: '{value}'")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Booking Timeline"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Google Calendar API
    google_access_token: str | None = None
    google_refresh_token: str | None = None
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_calendar_base_url: str = "https://www.googleapis.com/calendar/v3"
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    page_size: int = Field(default=250, ge=1, le=2500)

    # Fetching and composition
    max_concurrent_fetches: int = Field(default=8, ge=1, le=64)
    composition_workers: int = Field(default=1, ge=1, le=16)

    # Identity
    current_user_email: str | None = None

    # Booking policy
    time_step: timedelta = Field(
        default=timedelta(minutes=30),
        description="Size of offered free slots",
    )
    booking_days: Annotated[list[Weekday], NoDecode] = Field(
        default_factory=lambda: sorted(Weekday.workdays()),
        description="Weekdays on which free slots may start",
    )
    booking_day_start: timedelta = Field(default=timedelta(hours=8))
    booking_day_end: timedelta = Field(default=timedelta(hours=20))
    minimum_event_duration: timedelta = Field(default=timedelta(minutes=15))

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("booking_days", mode="before")
    @classmethod
    def parse_booking_days(cls, v: Any) -> list[Weekday]:
        """Accept 'mon,tue', '0,1' or a list of names/numbers."""
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        return [parse_weekday(day) for day in v]

    @field_validator("time_step")
    @classmethod
    def validate_time_step(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("time_step must be positive")
        return v

    @model_validator(mode="after")
    def validate_day_range(self) -> Settings:
        if self.booking_day_start > self.booking_day_end:
            raise ValueError("booking_day_start must not be after booking_day_end")
        return self

    @property
    def booking_policy(self) -> BookingPolicy:
        """Build the read-only booking policy from these settings."""
        return BookingPolicy(
            time_step=self.time_step,
            booking_days=frozenset(self.booking_days),
            booking_range_of_day=DayRange(
                min=self.booking_day_start,
                max=self.booking_day_end,
            ),
            minimum_event_duration=self.minimum_event_duration,
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def google_refresh_configured(self) -> bool:
        """Check if expired access tokens can be refreshed."""
        return bool(
            self.google_refresh_token
            and self.google_client_id
            and self.google_client_secret
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()


def get_settings_uncached() -> Settings:
    """Get fresh settings without caching.

    Useful for testing when environment variables change.
    """
    return Settings()
