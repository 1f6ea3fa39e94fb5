"""Entry building for fetched calendar events.

Filters a calendar's raw events and tags each survivor with the id of the
calendar it came from.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum

from booking_timeline.models.event import CalendarEntry, Event

UserEmailProvider = Callable[[], str | None]


class EntryMode(str, Enum):
    """Which events become entries."""

    STANDARD = "standard"  # Every event that is not cancelled
    REVOCABLE = "revocable"  # Only active events the current user created

    @classmethod
    def from_flag(cls, only_revocable: bool) -> EntryMode:
        return cls.REVOCABLE if only_revocable else cls.STANDARD


def is_active(event: Event) -> bool:
    return not event.canceled


def is_revocable(event: Event, user_email: str | None) -> bool:
    """Check if the user created the event and it is still active."""
    return not event.canceled and event.creator_email == user_email


class EntryBuilder:
    """Builds calendar entries from fetched events.

    Example:
        ```python
        builder = EntryBuilder(current_user_email=lambda: "me@example.com")
        entries = builder.build("room-1", events, EntryMode.REVOCABLE)
        ```
    """

    def __init__(self, current_user_email: UserEmailProvider):
        """Initialize the builder.

        Args:
            current_user_email: Returns the requesting user's email, if known
        """
        self.current_user_email = current_user_email

    def build(
        self,
        calendar_id: str,
        events: Iterable[Event],
        mode: EntryMode,
    ) -> list[CalendarEntry]:
        """Filter events and wrap them as entries of `calendar_id`.

        Args:
            calendar_id: Calendar the events were fetched from
            events: Fetched events, in any order
            mode: Filter to apply

        Returns:
            Entries for the retained events, in input order
        """
        if mode is EntryMode.REVOCABLE:
            user_email = self.current_user_email()
            retained = [e for e in events if is_revocable(e, user_email)]
        else:
            retained = [e for e in events if is_active(e)]

        return [CalendarEntry(calendar_id=calendar_id, event=e) for e in retained]
