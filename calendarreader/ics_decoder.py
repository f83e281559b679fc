"""iCalendar / vCalendar decoding into event drafts."""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Optional

from icalendar import Calendar, Event as ICalEvent

from .attendee_parser import AttendeeParser, as_property_list, get_param
from .config import ReaderSettings
from .datetime_utils import is_date_only, to_utc
from .exceptions import MalformedDocumentError
from .models import EventDraft, RecurrenceDescription, SourceFormat
from .recurrence import RecurrenceTranslator
from .vcal_compat import (
    LEGACY_RULE_PROPERTY,
    decode_quoted_printable,
    is_legacy_document,
    upgrade_legacy_document,
)

logger = logging.getLogger(__name__)

_FOLDED_LINE = re.compile(r"\r?\n[ \t]")
_RRULE_LINE = re.compile(r"^RRULE(?:;[^:]*)?:(?P<value>.*)$", re.IGNORECASE)


def scan_raw_rules(text: str) -> list[Optional[str]]:
    """Return the first RRULE value written in each top-level VEVENT, in order.

    icalendar discards rule lines it cannot parse, so their text is recovered
    from the document itself.
    """
    rules: list[Optional[str]] = []
    stack: list[str] = []

    for line in _FOLDED_LINE.sub("", text).splitlines():
        name, _, value = line.partition(":")
        keyword = name.strip().upper()
        if keyword == "BEGIN":
            stack.append(value.strip().upper())
            if stack == ["VCALENDAR", "VEVENT"]:
                rules.append(None)
        elif keyword == "END":
            if stack:
                stack.pop()
        elif stack == ["VCALENDAR", "VEVENT"] and rules and rules[-1] is None:
            match = _RRULE_LINE.match(line)
            if match:
                rules[-1] = match.group("value").strip()

    return rules


class IcsDecoder:
    """Decode iCalendar (.ics) and vCalendar 1.0 (.vcs) documents."""

    def __init__(
        self,
        settings: ReaderSettings,
        translator: Optional[RecurrenceTranslator] = None,
        attendee_parser: Optional[AttendeeParser] = None,
    ) -> None:
        """Initialize ICS decoder.

        Args:
            settings: Engine settings
            translator: Recurrence translator (a default one is created if omitted)
            attendee_parser: Attendee/organizer parser (a default one is created if omitted)
        """
        self.settings = settings
        self.translator = translator or RecurrenceTranslator()
        self.attendee_parser = attendee_parser or AttendeeParser()
        self.warnings: list[str] = []

    def decode(self, text: str, legacy: bool = False) -> list[EventDraft]:
        """Decode a calendar document into event drafts in document order.

        Args:
            text: Full document text
            legacy: Treat the document as vCalendar 1.0 regardless of its VERSION

        Returns:
            Event drafts, one per top-level VEVENT

        Raises:
            MalformedDocumentError: If the document cannot be parsed
        """
        self.warnings = []
        legacy = legacy or is_legacy_document(text)
        source_format = SourceFormat.VCS if legacy else SourceFormat.ICS
        if legacy:
            text = upgrade_legacy_document(text)

        try:
            calendar = Calendar.from_ical(text)
        except Exception as e:
            logger.warning("Calendar document rejected by parser: %s", e)
            raise MalformedDocumentError(f"Parsing failed: {e}") from e

        if getattr(calendar, "name", None) != "VCALENDAR":
            raise MalformedDocumentError("Parsing failed: missing VCALENDAR component")

        components = [c for c in calendar.subcomponents if c.name == "VEVENT"]
        logger.debug("Found %d VEVENT components", len(components))

        raw_rules = scan_raw_rules(text)
        return [
            self._decode_event(
                component,
                source_format,
                raw_rules[index] if index < len(raw_rules) else None,
            )
            for index, component in enumerate(components)
        ]

    def _decode_event(
        self,
        component: ICalEvent,
        source_format: SourceFormat,
        raw_rule: Optional[str] = None,
    ) -> EventDraft:
        """Decode one VEVENT component.

        Raises:
            MalformedDocumentError: If the event has no usable start
        """
        uid_prop = component.get("UID")
        uid = str(uid_prop).strip() if uid_prop is not None else None

        for prop_name, message in getattr(component, "errors", []):
            self._warn(uid, f"ignored unreadable {prop_name or 'line'}: {message}")

        dtstart = self._single_property(component, "DTSTART", uid)
        if dtstart is None:
            raise MalformedDocumentError(f"Parsing failed: event {uid or '<no uid>'} has no DTSTART")

        try:
            start_date, end_date, is_all_day = self._parse_event_times(component, dtstart, uid)
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedDocumentError(
                f"Parsing failed: event {uid or '<no uid>'} has invalid dates: {e}"
            ) from e

        attendees = self.attendee_parser.parse_attendees(component)
        dropped = len(as_property_list(component.get("ATTENDEE"))) - len(attendees)
        if dropped:
            self._warn(uid, f"dropped {dropped} attendee(s) without an email address")

        return EventDraft(
            source_format=source_format,
            uid=uid,
            summary=self._text_property(component, "SUMMARY"),
            description=self._text_property(component, "DESCRIPTION"),
            location=self._text_property(component, "LOCATION"),
            start_date=start_date,
            end_date=end_date,
            is_all_day=is_all_day,
            organizer=self.attendee_parser.parse_organizer(component),
            attendees=attendees,
            recurrence=self._extract_recurrence(component, start_date, uid, raw_rule),
        )

    def _parse_event_times(
        self, component: ICalEvent, dtstart: Any, uid: Optional[str] = None
    ) -> tuple[datetime, datetime, bool]:
        """Return (start, end, is_all_day) as UTC instants.

        End falls back to DTSTART + DURATION, then to one day for date-only
        starts and zero length for timed starts.
        """
        floating_tz = self.settings.floating_timezone
        start_value = self._zoned_value(dtstart, uid)
        is_all_day = is_date_only(start_value)
        start = to_utc(start_value, floating_tz)

        dtend = self._single_property(component, "DTEND", uid)
        duration = self._single_property(component, "DURATION", uid)
        if dtend is not None:
            end = to_utc(self._zoned_value(dtend, uid), floating_tz)
        elif duration is not None and isinstance(duration.dt, timedelta):
            end = start + duration.dt
        elif is_all_day:
            end = start + timedelta(days=1)
        else:
            end = start

        return start, end, is_all_day

    def _single_property(self, component: ICalEvent, name: str, uid: Optional[str]) -> Any:
        """Return the first value of a property that may occur only once."""
        values = as_property_list(component.get(name))
        if not values:
            return None
        if len(values) > 1:
            self._warn(uid, f"repeated {name}, using the first of {len(values)}")
        return values[0]

    def _zoned_value(self, prop: Any, uid: Optional[str]) -> Any:
        """Return a property's date value, warning when its TZID is unknown.

        icalendar leaves a date-time naive when it cannot resolve the TZID,
        so the value is then read in ``floating_timezone``.
        """
        value = prop.dt
        tzid = get_param(prop, "TZID")
        if tzid and isinstance(value, datetime) and value.tzinfo is None:
            self._warn(
                uid,
                f"unknown time zone {tzid!r}, reading the time in {self.settings.floating_timezone}",
            )
        return value

    def _warn(self, uid: Optional[str], message: str) -> None:
        warning = f"Event {uid or '<no uid>'}: {message}"
        self.warnings.append(warning)
        logger.warning(warning)

    def _text_property(self, component: ICalEvent, name: str) -> Optional[str]:
        """Return a text property, decoding vCalendar quoted-printable values."""
        prop = component.get(name)
        if prop is None:
            return None
        if isinstance(prop, list):
            prop = prop[0] if prop else None
            if prop is None:
                return None

        text = str(prop)
        encoding = get_param(prop, "ENCODING")
        if encoding and encoding.upper() == "QUOTED-PRINTABLE":
            text = decode_quoted_printable(text, get_param(prop, "CHARSET"))
        return text

    def _extract_recurrence(
        self,
        component: ICalEvent,
        start_date: datetime,
        uid: Optional[str],
        raw_rule: Optional[str] = None,
    ) -> Optional[RecurrenceDescription]:
        """Describe the event's first recurrence rule, if it declares one.

        A rule the component parser rejected is described by ``raw_rule``,
        its text as written in the document.
        """
        rrule_prop = component.get("RRULE")
        if isinstance(rrule_prop, list):
            rrule_prop = rrule_prop[0] if rrule_prop else None

        if rrule_prop is not None:
            result = self.translator.translate(rrule_prop, start_date)
        elif raw_rule:
            result = self.translator.fallback(raw_rule)
        else:
            legacy_rule = component.get(LEGACY_RULE_PROPERTY)
            if legacy_rule is None:
                return None
            result = self.translator.fallback(str(legacy_rule))

        if result.is_fallback:
            self.warnings.append(
                f"Event {uid or '<no uid>'}: recurrence shown as raw rule '{result.text}'"
            )
        return result
