"""Attendee and organizer parsing for iCalendar components.

Each property kind has an explicit extraction contract returning typed
optional values instead of untyped parameter lookups.
"""

import logging
import re
from typing import Any, Optional

from .models import Attendee, AttendeeStatus, Organizer

logger = logging.getLogger(__name__)

_MAILTO_PREFIX = re.compile(r"^\s*mailto:", re.IGNORECASE)
# vCalendar 1.0 writes addresses as "Display Name <user@example.com>"
_NAMED_ADDRESS = re.compile(r"^\s*(?P<name>[^<]*?)\s*<(?P<address>[^>]*)>\s*$")


def get_param(prop: Any, name: str) -> Optional[str]:
    """Return a property parameter as a stripped string, or None when absent or empty."""
    params = getattr(prop, "params", None)
    if not params:
        return None

    value = params.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
        if value is None:
            return None

    text = str(value).strip().strip('"')
    return text or None


def split_address(value: Any) -> tuple[Optional[str], str]:
    """Split a calendar address into (display name, email).

    Strips a leading ``mailto:`` scheme in any case and understands the
    ``Name <address>`` form.
    """
    text = str(value).strip() if value is not None else ""
    match = _NAMED_ADDRESS.match(text)
    name = None
    if match:
        name = match.group("name").strip().strip('"') or None
        text = match.group("address")
    return name, _MAILTO_PREFIX.sub("", text).strip()


def as_property_list(value: Any) -> list[Any]:
    """Normalize a single property, a list, or None into a flat list."""
    if value is None:
        return []
    if isinstance(value, list):
        flattened = []
        for item in value:
            # Some producers nest attendee lists
            flattened.extend(item if isinstance(item, list) else [item])
        return flattened
    return [value]


class AttendeeParser:
    """Parser for ATTENDEE and ORGANIZER properties."""

    def parse_attendee(self, attendee_prop: Any) -> Optional[Attendee]:
        """Parse attendee from iCalendar property.

        Args:
            attendee_prop: iCalendar ATTENDEE property

        Returns:
            Parsed Attendee, or None when the property has no email address
        """
        address_name, email = split_address(attendee_prop)
        if not email:
            logger.debug("Skipping attendee without email address: %r", attendee_prop)
            return None

        name = get_param(attendee_prop, "CN") or address_name
        # vCalendar 1.0 uses STATUS where iCalendar uses PARTSTAT
        status = get_param(attendee_prop, "PARTSTAT") or get_param(attendee_prop, "STATUS")

        return Attendee(name=name, email=email, status=AttendeeStatus.parse(status))

    def parse_attendees(self, component: Any) -> list[Attendee]:
        """Parse all attendees from an iCalendar component, in document order."""
        attendees = []
        for attendee_prop in as_property_list(component.get("ATTENDEE")):
            attendee = self.parse_attendee(attendee_prop)
            if attendee:
                attendees.append(attendee)
        return attendees

    def parse_organizer(self, component: Any) -> Optional[Organizer]:
        """Parse the first ORGANIZER property.

        The name falls back to the local part of the email address when no
        display name is given.
        """
        props = as_property_list(component.get("ORGANIZER"))
        if not props:
            return None

        organizer_prop = props[0]
        address_name, email = split_address(organizer_prop)
        name = get_param(organizer_prop, "CN") or address_name or email.split("@")[0]
        if not name:
            logger.debug("Skipping organizer without name or email")
            return None

        return Organizer(name=name, email=email or None)
