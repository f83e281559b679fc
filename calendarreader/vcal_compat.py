"""vCalendar 1.0 compatibility.

Legacy ``.vcs`` files differ from iCalendar in ways the component parser
does not accept: recurrence rules use the compact vCalendar grammar
(``W1 MO TH #10``) and text values are often quoted-printable with soft line
breaks. ``upgrade_legacy_document`` rewrites those constructs into iCalendar
form before parsing. Rules that cannot be converted are kept under
``X-VCAL-RRULE`` so the decoder can still show them verbatim.
"""

import logging
import quopri
import re
from typing import Optional

logger = logging.getLogger(__name__)

LEGACY_RULE_PROPERTY = "X-VCAL-RRULE"

_VERSION_1 = re.compile(r"^VERSION:1\.0\s*$", re.IGNORECASE | re.MULTILINE)
_FOLDED_LINE = re.compile(r"\r?\n[ \t]")
_RULE_LINE = re.compile(r"^RRULE(?P<params>;[^:]*)?:(?P<value>.*)$", re.IGNORECASE)

_FREQUENCY_TOKEN = re.compile(r"^(?P<kind>MP|MD|YM|YD|D|W|M)(?P<interval>\d+)$")
_DURATION_TOKEN = re.compile(r"^#(?P<count>\d+)$")
_END_DATE_TOKEN = re.compile(r"^\d{8}(T\d{6}Z?)?$")
_WEEKDAY_TOKEN = re.compile(r"^(?P<day>SU|MO|TU|WE|TH|FR|SA)\$?$")
_OCCURRENCE_TOKEN = re.compile(r"^(?P<n>[1-5])(?P<sign>[+-])$")
_DAY_NUMBER_TOKEN = re.compile(r"^(?P<n>\d{1,3})(?P<sign>[+-])?$")

_FREQUENCIES = {
    "D": "DAILY",
    "W": "WEEKLY",
    "MP": "MONTHLY",
    "MD": "MONTHLY",
    "YM": "YEARLY",
    "YD": "YEARLY",
    "M": "MINUTELY",
}

# vCalendar 1.0 repeats twice when a rule gives neither duration nor end date
DEFAULT_LEGACY_COUNT = 2


def is_legacy_document(text: str) -> bool:
    """Return True when the document declares vCalendar version 1.0."""
    return bool(_VERSION_1.search(text))


def _signed(n: str, sign: Optional[str]) -> str:
    return f"-{n}" if sign == "-" else n


def convert_legacy_rule(value: str) -> str:
    """Convert a vCalendar 1.0 recurrence rule into iCalendar RRULE syntax.

    Examples:
        ``D2 #5`` -> ``FREQ=DAILY;INTERVAL=2;COUNT=5``
        ``W1 MO TH 20250301T000000Z`` -> ``FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,TH;UNTIL=20250301T000000Z``
        ``MP1 1+ MO #0`` -> ``FREQ=MONTHLY;INTERVAL=1;BYDAY=1MO``
        ``MD1 1 LD`` -> ``FREQ=MONTHLY;INTERVAL=1;BYMONTHDAY=1,-1;COUNT=2``

    Raises:
        ValueError: If the rule does not follow the vCalendar grammar
    """
    tokens = value.split()
    if not tokens:
        raise ValueError("Empty recurrence rule")

    match = _FREQUENCY_TOKEN.match(tokens[0].upper())
    if not match:
        raise ValueError(f"Unrecognized recurrence frequency: {tokens[0]!r}")

    kind = match.group("kind")
    parts = [f"FREQ={_FREQUENCIES[kind]}", f"INTERVAL={int(match.group('interval'))}"]

    by_values: list[str] = []
    ordinals: list[str] = []
    expecting_weekday = False
    count: Optional[int] = None
    until: Optional[str] = None

    for raw_token in tokens[1:]:
        token = raw_token.upper()

        duration = _DURATION_TOKEN.match(token)
        if duration:
            count = int(duration.group("count"))
            continue
        if _END_DATE_TOKEN.match(token):
            until = token
            continue

        if kind == "W":
            day = _WEEKDAY_TOKEN.match(token)
            if not day:
                raise ValueError(f"Unexpected token {raw_token!r} in weekly rule")
            by_values.append(day.group("day"))
        elif kind == "MP":
            occurrence = _OCCURRENCE_TOKEN.match(token)
            day = _WEEKDAY_TOKEN.match(token)
            if occurrence:
                if expecting_weekday:
                    ordinals = []
                    expecting_weekday = False
                ordinals.append(_signed(occurrence.group("n"), occurrence.group("sign")))
            elif day and ordinals:
                expecting_weekday = True
                by_values.extend(f"{ordinal}{day.group('day')}" for ordinal in ordinals)
            else:
                raise ValueError(f"Unexpected token {raw_token!r} in monthly-by-position rule")
        elif kind in ("MD", "YM", "YD"):
            if kind == "MD" and token == "LD":
                by_values.append("-1")
                continue
            number = _DAY_NUMBER_TOKEN.match(token)
            if not number:
                raise ValueError(f"Unexpected token {raw_token!r} in {kind} rule")
            by_values.append(_signed(str(int(number.group("n"))), number.group("sign")))
        else:
            raise ValueError(f"Unexpected token {raw_token!r} in {kind} rule")

    by_part = {"W": "BYDAY", "MP": "BYDAY", "MD": "BYMONTHDAY", "YM": "BYMONTH", "YD": "BYYEARDAY"}
    if by_values:
        parts.append(f"{by_part[kind]}={','.join(by_values)}")

    if until is not None:
        parts.append(f"UNTIL={until}")
    elif count is None:
        parts.append(f"COUNT={DEFAULT_LEGACY_COUNT}")
    elif count > 0:
        parts.append(f"COUNT={count}")

    return ";".join(parts)


def _property_head(line: str) -> str:
    return line.split(":", 1)[0] if ":" in line else ""


def _join_soft_line_breaks(lines: list[str]) -> list[str]:
    """Join quoted-printable soft line breaks (``=`` at end of line)."""
    joined: list[str] = []
    pending: Optional[str] = None

    for line in lines:
        if pending is not None:
            pending = pending[:-1] + line
            if not line.endswith("="):
                joined.append(pending)
                pending = None
            continue

        if "QUOTED-PRINTABLE" in _property_head(line).upper() and line.endswith("="):
            pending = line
        else:
            joined.append(line)

    if pending is not None:
        joined.append(pending[:-1])
    return joined


def _normalize_bare_encoding(line: str) -> str:
    """Rewrite a bare ``;QUOTED-PRINTABLE`` parameter as ``;ENCODING=QUOTED-PRINTABLE``."""
    head = _property_head(line)
    if not head:
        return line
    params = head.split(";")
    rewritten = [
        "ENCODING=QUOTED-PRINTABLE" if index and param.upper() == "QUOTED-PRINTABLE" else param
        for index, param in enumerate(params)
    ]
    return ";".join(rewritten) + line[len(head):]


def _upgrade_rule_line(line: str) -> str:
    match = _RULE_LINE.match(line)
    if not match:
        return line

    value = match.group("value").strip()
    if "FREQ=" in value.upper():
        return line

    try:
        return f"RRULE:{convert_legacy_rule(value)}"
    except ValueError as e:
        logger.warning("Keeping unconvertible vCalendar rule %r as raw text: %s", value, e)
        return f"{LEGACY_RULE_PROPERTY}:{value}"


def upgrade_legacy_document(text: str) -> str:
    """Rewrite vCalendar 1.0 constructs into their iCalendar equivalents."""
    lines = _join_soft_line_breaks(text.splitlines())
    unfolded = _FOLDED_LINE.sub("", "\r\n".join(lines))

    upgraded = [
        _upgrade_rule_line(_normalize_bare_encoding(line)) for line in unfolded.split("\r\n")
    ]
    logger.debug("Upgraded vCalendar 1.0 document (%d lines)", len(upgraded))
    return "\r\n".join(upgraded) + "\r\n"


def decode_quoted_printable(value: str, charset: Optional[str] = None) -> str:
    """Decode a quoted-printable text value."""
    decoded = quopri.decodestring(value.encode("ascii", errors="replace"))
    return decoded.decode(charset or "utf-8", errors="replace")
