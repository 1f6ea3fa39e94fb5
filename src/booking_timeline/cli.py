"""Command-line interface for booking timelines."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from booking_timeline import __version__
from booking_timeline.calendar.base import EventSource, ScheduleError
from booking_timeline.calendar.google_api import GoogleApiEventSource
from booking_timeline.calendar.google_rest import GoogleCalendarSource
from booking_timeline.config import Settings, get_settings
from booking_timeline.logging_config import setup_logging
from booking_timeline.models.event import CalendarEntry
from booking_timeline.models.time_range import TimeRange
from booking_timeline.schedule.assembler import ScheduleAssembler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="booking-timeline",
        description="Booking Timeline - Busy and free slots across calendars",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Timeline command
    timeline_parser = subparsers.add_parser(
        "timeline", help="Show the busy/free timeline of calendars"
    )
    timeline_parser.add_argument(
        "calendar_ids",
        nargs="+",
        metavar="CALENDAR_ID",
        help="Calendar ids to include",
    )
    timeline_parser.add_argument(
        "--start",
        type=datetime.fromisoformat,
        required=True,
        help="Window start (ISO 8601)",
    )
    timeline_parser.add_argument(
        "--end",
        type=datetime.fromisoformat,
        required=True,
        help="Window end (ISO 8601)",
    )
    timeline_parser.add_argument(
        "--revocable",
        action="store_true",
        help="Only show your own active events",
    )
    timeline_parser.add_argument(
        "--source",
        choices=["rest", "api"],
        default="rest",
        help="Google Calendar client to use",
    )

    # Calendars command
    subparsers.add_parser("calendars", help="List calendars available to the token")

    return parser


def create_source(settings: Settings, kind: str) -> EventSource:
    """Create the configured Google Calendar source."""
    if kind == "api":
        return GoogleApiEventSource(
            settings.google_access_token,
            refresh_token=settings.google_refresh_token,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            page_size=settings.page_size,
        )
    return GoogleCalendarSource(
        settings.google_access_token,
        base_url=settings.google_calendar_base_url,
        page_size=settings.page_size,
        timeout=settings.request_timeout_seconds,
    )


def format_entry(entry: CalendarEntry) -> str:
    """Format an entry as one line of output."""
    start = entry.event.start.isoformat() if entry.event.start else "?"
    end = entry.event.end.isoformat() if entry.event.end else "?"
    if entry.is_free:
        return f"{start}  {end}  FREE"
    title = entry.event.summary or "(busy)"
    return f"{start}  {end}  {entry.calendar_id}  {title}"


async def run_timeline(args: argparse.Namespace, settings: Settings) -> int:
    try:
        time_range = TimeRange(min=args.start, max=args.end)
    except ValueError as e:
        print(f"Invalid time range: {e}", file=sys.stderr)
        return 2

    source = create_source(settings, args.source)
    assembler = ScheduleAssembler(
        source=source,
        policy=settings.booking_policy,
        current_user_email=lambda: settings.current_user_email,
        max_concurrency=settings.max_concurrent_fetches,
    )
    try:
        entries = await assembler.provide(args.calendar_ids, time_range, args.revocable)
    except ScheduleError as e:
        logger.error(f"Could not build timeline: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        assembler.close()
        await source.aclose()

    for entry in entries:
        print(format_entry(entry))
    return 0


async def run_calendars(settings: Settings) -> int:
    source = create_source(settings, "api")
    try:
        calendars = await source.list_calendars()
    except ScheduleError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for calendar in calendars:
        marker = "*" if calendar.is_primary else " "
        print(f"{marker} {calendar.id}  {calendar.summary}  ({calendar.access_role})")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    setup_logging(settings.log_level)

    if not settings.google_access_token:
        print("GOOGLE_ACCESS_TOKEN is not set.", file=sys.stderr)
        return 2

    if args.command == "timeline":
        return asyncio.run(run_timeline(args, settings))
    return asyncio.run(run_calendars(settings))


if __name__ == "__main__":
    sys.exit(main())
