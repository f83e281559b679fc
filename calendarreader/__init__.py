"""calendarreader - turn .ics, .vcs and .csv calendar files into normalized events.

Typical use::

    from calendarreader import parse_calendar_text

    result = parse_calendar_text(text, "meetings.ics")
    for event in result.events:
        print(event.summary, event.start_date)
"""

__version__ = "0.1.0"

from typing import Optional

from .engine import parse_calendar_bytes, parse_calendar_file, parse_calendar_text
from .exceptions import (
    CalendarParseError,
    EmptyInputError,
    FileTooLargeError,
    MalformedDocumentError,
    MalformedTableError,
    MissingRequiredFieldError,
    ReadFailureError,
    UnsupportedFormatError,
)
from .models import (
    Attendee,
    AttendeeStatus,
    NormalizedEvent,
    Organizer,
    ParseResult,
    RecurrenceKind,
    SourceFormat,
)

__all__ = [
    "Attendee",
    "AttendeeStatus",
    "CalendarParseError",
    "EmptyInputError",
    "FileTooLargeError",
    "MalformedDocumentError",
    "MalformedTableError",
    "MissingRequiredFieldError",
    "NormalizedEvent",
    "Organizer",
    "ParseResult",
    "ReadFailureError",
    "RecurrenceKind",
    "SourceFormat",
    "UnsupportedFormatError",
    "parse_calendar_bytes",
    "parse_calendar_file",
    "parse_calendar_text",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized stderr handler when the root logger has none, then
    applies the requested level. The CALENDARREADER_DEBUG environment variable
    (truthy values: "1", "true", "yes", "on") forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("CALENDARREADER_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none is present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, with only the level colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
