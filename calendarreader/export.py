"""Export of a single normalized event to calendar services and .ics files."""

import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlencode

from icalendar import Calendar, Event as ICalEvent

from .models import NormalizedEvent

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
EXPORT_PRODID = "-//Calendar File Reader//EN"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def format_for_calendar(instant: datetime) -> str:
    """Format an instant as a compact UTC timestamp, e.g. ``20240101T090000Z``."""
    return instant.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")


def create_google_calendar_url(event: NormalizedEvent) -> str:
    """Build a Google Calendar "add event" URL for the event."""
    params = {
        "action": "TEMPLATE",
        "text": event.summary,
        "dates": f"{format_for_calendar(event.start_date)}/{format_for_calendar(event.end_date)}",
        "details": event.description,
        "location": event.location,
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


def create_ics_content(event: NormalizedEvent) -> str:
    """Build a minimal one-event iCalendar document."""
    calendar = Calendar()
    calendar.add("version", "2.0")
    calendar.add("prodid", EXPORT_PRODID)

    ical_event = ICalEvent()
    ical_event.add("uid", event.uid)
    ical_event.add("dtstart", event.start_date.astimezone(UTC))
    ical_event.add("dtend", event.end_date.astimezone(UTC))
    ical_event.add("summary", event.summary)
    ical_event.add("description", event.description)
    ical_event.add("location", event.location)
    calendar.add_component(ical_event)

    return calendar.to_ical().decode("utf-8")


def suggested_filename(event: NormalizedEvent) -> str:
    """File name for a downloaded event: summary with unsafe characters replaced."""
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', event.summary)}.ics"


def write_ics_file(
    event: NormalizedEvent,
    directory: Union[str, Path],
    filename: Optional[str] = None,
) -> Path:
    """Write the event as a one-event .ics file and return its path."""
    target = Path(directory) / (filename or suggested_filename(event))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(create_ics_content(event).encode("utf-8"))
    logger.info("Exported event %s to %s", event.uid, target)
    return target
