"""Command-line entry for calendarreader.

Reads one calendar file, prints its events in a display timezone, and can
export each event as its own .ics file or as a Google Calendar link.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from . import _init_logging
from .config import ReaderSettings, load_settings
from .datetime_utils import format_event_range
from .engine import parse_calendar_file
from .exceptions import CalendarParseError
from .export import create_google_calendar_url, suggested_filename, write_ics_file
from .logging_config import configure_logging
from .models import NormalizedEvent, ParseResult

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the calendarreader CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="calendarreader",
        description="Read .ics, .vcs and .csv calendar files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  calendarreader meetings.ics                          # List events in America/New_York
  calendarreader export.csv --timezone Europe/Berlin   # List events in another zone
  calendarreader team.vcs --json                       # Print normalized events as JSON
  calendarreader meetings.ics --export-dir out/        # Write one .ics file per event
        """,
    )

    parser.add_argument("file", type=Path, metavar="FILE", help="Calendar file (.ics, .vcs or .csv)")
    parser.add_argument(
        "--timezone",
        metavar="TZ",
        help="IANA timezone for displayed times (default: America/New_York, "
        "or CALENDARREADER_DISPLAY_TIMEZONE)",
    )
    parser.add_argument("--json", action="store_true", help="Print the parse result as JSON")
    parser.add_argument(
        "--export-dir",
        type=Path,
        metavar="DIR",
        help="Write each event to DIR as a single-event .ics file",
    )
    parser.add_argument(
        "--google-links",
        action="store_true",
        help="Print a Google Calendar link for each event",
    )
    parser.add_argument("--config", type=Path, metavar="PATH", help="YAML settings file")
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    return parser


def _format_event(event: NormalizedEvent, tz_name: str, google_links: bool) -> list[str]:
    """Render one event as human-readable lines."""
    start_text, end_text = format_event_range(event, tz_name)
    lines = [event.summary, f"  When:      {start_text} - {end_text}"]
    if event.location:
        lines.append(f"  Where:     {event.location}")
    if event.recurrence:
        lines.append(f"  Repeats:   {event.recurrence}")
    if event.organizer:
        organizer = event.organizer.name
        if event.organizer.email:
            organizer = f"{organizer} <{event.organizer.email}>"
        lines.append(f"  Organizer: {organizer}")
    for attendee in event.attendees:
        label = f"{attendee.name} <{attendee.email}>" if attendee.name else attendee.email
        lines.append(f"  Attendee:  {label} ({attendee.status.value})")
    if event.description:
        lines.append(f"  Notes:     {event.description}")
    if google_links:
        lines.append(f"  Google:    {create_google_calendar_url(event)}")
    return lines


def _print_result(result: ParseResult, args: argparse.Namespace, settings: ReaderSettings) -> None:
    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(f"{result.file_name}: {result.event_count} event(s)")
        for event in result.events:
            print()
            print("\n".join(_format_event(event, settings.display_timezone, args.google_links)))

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the calendarreader CLI.

    Returns:
        Process exit code: 0 on success, 1 on parse or configuration errors
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(
            args.config,
            display_timezone=args.timezone,
            log_level=args.log_level,
        )
    except (ValidationError, ValueError, OSError) as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    _init_logging(settings.log_level)
    configure_logging(settings.log_level)

    try:
        result = asyncio.run(parse_calendar_file(args.file, settings))
    except CalendarParseError as exc:
        logger.debug("Parse of %s failed", args.file, exc_info=True)
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    _print_result(result, args, settings)

    if args.export_dir is not None:
        used_names: set[str] = set()
        for index, event in enumerate(result.events):
            filename = suggested_filename(event)
            if filename in used_names:
                filename = f"{filename[:-len('.ics')]}_{index}.ics"
            used_names.add(filename)
            path = write_ics_file(event, args.export_dir, filename)
            print(f"Exported {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
