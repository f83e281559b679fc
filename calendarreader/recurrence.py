"""Recurrence rule translation and description.

Bridges icalendar's parsed ``vRecur`` and dateutil's ``rrule`` constructor.
The rule is rebuilt field by field rather than re-parsed from its string form,
because not every producer's UNTIL encoding survives a string round trip.
Occurrences are never enumerated; the constructed rule is only used to
validate the translation before it is described in English.
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Any, Optional

from dateutil.rrule import (
    DAILY,
    FR,
    HOURLY,
    MINUTELY,
    MO,
    MONTHLY,
    SA,
    SECONDLY,
    SU,
    TH,
    TU,
    WE,
    WEEKLY,
    YEARLY,
    rrule,
)

from .exceptions import RecurrenceTranslationError
from .models import RecurrenceDescription, RecurrenceKind

logger = logging.getLogger(__name__)

_RULE_PREFIX = re.compile(r"^\s*RRULE:", re.IGNORECASE)
_BYDAY_TOKEN = re.compile(r"^(?P<ordinal>[+-]?\d{1,2})?(?P<day>SU|MO|TU|WE|TH|FR|SA)$")

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class Frequency(str, Enum):
    """Recurrence frequencies."""

    YEARLY = "YEARLY"
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    DAILY = "DAILY"
    HOURLY = "HOURLY"
    MINUTELY = "MINUTELY"
    SECONDLY = "SECONDLY"


class Weekday(str, Enum):
    """Weekday tokens."""

    SU = "SU"
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"

    @property
    def full_name(self) -> str:
        return _WEEKDAY_NAMES[self]


_WEEKDAY_NAMES = {
    Weekday.SU: "Sunday",
    Weekday.MO: "Monday",
    Weekday.TU: "Tuesday",
    Weekday.WE: "Wednesday",
    Weekday.TH: "Thursday",
    Weekday.FR: "Friday",
    Weekday.SA: "Saturday",
}

FREQUENCY_MAP = {
    Frequency.YEARLY: YEARLY,
    Frequency.MONTHLY: MONTHLY,
    Frequency.WEEKLY: WEEKLY,
    Frequency.DAILY: DAILY,
    Frequency.HOURLY: HOURLY,
    Frequency.MINUTELY: MINUTELY,
    Frequency.SECONDLY: SECONDLY,
}

WEEKDAY_MAP = {
    Weekday.SU: SU,
    Weekday.MO: MO,
    Weekday.TU: TU,
    Weekday.WE: WE,
    Weekday.TH: TH,
    Weekday.FR: FR,
    Weekday.SA: SA,
}

_WORKWEEK = (Weekday.MO, Weekday.TU, Weekday.WE, Weekday.TH, Weekday.FR)


@dataclass(frozen=True)
class WeekdayRule:
    """A BYDAY entry such as ``MO``, ``1MO`` or ``-1FR``."""

    day: Weekday
    ordinal: Optional[int] = None

    @classmethod
    def parse(cls, token: Any) -> "WeekdayRule":
        match = _BYDAY_TOKEN.match(str(token).strip().upper())
        if not match:
            raise RecurrenceTranslationError(f"Unrecognized BYDAY value: {token!r}")
        ordinal = match.group("ordinal")
        return cls(day=Weekday(match.group("day")), ordinal=int(ordinal) if ordinal else None)


@dataclass(frozen=True)
class RuleSpec:
    """Source-independent recurrence rule."""

    frequency: Frequency
    interval: Optional[int] = None
    count: Optional[int] = None
    until: Optional[datetime] = None
    week_start: Optional[Weekday] = None
    by_day: tuple[WeekdayRule, ...] = ()
    by_month: tuple[int, ...] = ()
    by_month_day: tuple[int, ...] = ()
    by_year_day: tuple[int, ...] = ()
    by_week_no: tuple[int, ...] = ()
    by_hour: tuple[int, ...] = ()
    by_minute: tuple[int, ...] = ()
    by_second: tuple[int, ...] = ()
    by_set_pos: tuple[int, ...] = ()


def _values(recur: Any, key: str) -> list[Any]:
    value = recur.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _first(recur: Any, key: str) -> Any:
    values = _values(recur, key)
    return values[0] if values else None


def _ints(recur: Any, key: str) -> tuple[int, ...]:
    try:
        return tuple(int(v) for v in _values(recur, key))
    except (TypeError, ValueError) as e:
        raise RecurrenceTranslationError(f"Invalid {key} value: {e}") from e


def map_until(value: Any) -> datetime:
    """Map an UNTIL value onto a UTC datetime.

    Date-only values cover their whole UTC day; naive datetimes are UTC.

    Raises:
        RecurrenceTranslationError: For anything that is not a date or datetime
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime.combine(value, time(23, 59, 59), tzinfo=UTC)
    raise RecurrenceTranslationError(f"Cannot map UNTIL value {value!r}")


def rule_spec_from_recur(recur: Any) -> RuleSpec:
    """Decode an icalendar ``vRecur`` mapping into a RuleSpec.

    Raises:
        RecurrenceTranslationError: If any field cannot be mapped
    """
    freq = _first(recur, "FREQ")
    try:
        frequency = Frequency(str(freq).upper())
    except ValueError as e:
        raise RecurrenceTranslationError(f"Unsupported FREQ value: {freq!r}") from e

    interval = _first(recur, "INTERVAL")
    count = _first(recur, "COUNT")
    until = _first(recur, "UNTIL")
    wkst = _first(recur, "WKST")

    try:
        week_start = Weekday(str(wkst).upper()) if wkst is not None else None
    except ValueError as e:
        raise RecurrenceTranslationError(f"Unsupported WKST value: {wkst!r}") from e

    try:
        return RuleSpec(
            frequency=frequency,
            interval=int(interval) if interval is not None else None,
            count=int(count) if count is not None else None,
            until=map_until(until) if until is not None else None,
            week_start=week_start,
            by_day=tuple(WeekdayRule.parse(token) for token in _values(recur, "BYDAY")),
            by_month=_ints(recur, "BYMONTH"),
            by_month_day=_ints(recur, "BYMONTHDAY"),
            by_year_day=_ints(recur, "BYYEARDAY"),
            by_week_no=_ints(recur, "BYWEEKNO"),
            by_hour=_ints(recur, "BYHOUR"),
            by_minute=_ints(recur, "BYMINUTE"),
            by_second=_ints(recur, "BYSECOND"),
            by_set_pos=_ints(recur, "BYSETPOS"),
        )
    except (TypeError, ValueError) as e:
        raise RecurrenceTranslationError(f"Invalid recurrence value: {e}") from e


def build_rrule_kwargs(spec: RuleSpec, dtstart: datetime) -> dict[str, Any]:
    """Map a RuleSpec onto dateutil ``rrule`` constructor arguments.

    Fields absent from the rule are omitted so dateutil applies its own defaults.
    """
    kwargs: dict[str, Any] = {
        "freq": FREQUENCY_MAP[spec.frequency],
        "dtstart": dtstart,
    }

    if spec.interval:
        kwargs["interval"] = spec.interval
    if spec.count:
        kwargs["count"] = spec.count
    if spec.until is not None:
        kwargs["until"] = spec.until
    if spec.week_start is not None:
        kwargs["wkst"] = WEEKDAY_MAP[spec.week_start]
    if spec.by_day:
        kwargs["byweekday"] = [
            WEEKDAY_MAP[rule.day](rule.ordinal) if rule.ordinal else WEEKDAY_MAP[rule.day]
            for rule in spec.by_day
        ]

    optional_fields = (
        ("bymonth", spec.by_month),
        ("bymonthday", spec.by_month_day),
        ("byyearday", spec.by_year_day),
        ("byweekno", spec.by_week_no),
        ("byhour", spec.by_hour),
        ("byminute", spec.by_minute),
        ("bysecond", spec.by_second),
        ("bysetpos", spec.by_set_pos),
    )
    for name, values in optional_fields:
        if values:
            kwargs[name] = list(values)

    return kwargs


def _ordinal(n: int) -> str:
    """Render 1 -> 1st, -1 -> last, -2 -> 2nd last."""
    if n == -1:
        return "last"
    if n < 0:
        return f"{_ordinal(-n)} last"
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _join(items: list[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + " and " + items[-1]


_UNITS = {
    Frequency.YEARLY: "year",
    Frequency.MONTHLY: "month",
    Frequency.WEEKLY: "week",
    Frequency.DAILY: "day",
    Frequency.HOURLY: "hour",
    Frequency.MINUTELY: "minute",
    Frequency.SECONDLY: "second",
}


def describe_rule(spec: RuleSpec) -> str:
    """Render a RuleSpec as an English phrase.

    Examples:
        ``every week on Monday``, ``every 2 months on the 1st Monday``,
        ``every day for 5 times``, ``every year in June until March 1, 2025``
    """
    interval = spec.interval or 1
    unit = _UNITS[spec.frequency]
    weekdays = [rule.day for rule in spec.by_day if rule.ordinal is None]

    if (
        spec.frequency in (Frequency.DAILY, Frequency.WEEKLY)
        and interval == 1
        and not any(rule.ordinal for rule in spec.by_day)
        and len(weekdays) == len(_WORKWEEK)
        and set(weekdays) == set(_WORKWEEK)
    ):
        parts = ["every weekday"]
        by_day_rendered = True
    else:
        parts = [f"every {unit}" if interval == 1 else f"every {interval} {unit}s"]
        by_day_rendered = False

    if spec.by_month:
        parts.append("in " + _join([_MONTH_NAMES[m - 1] for m in spec.by_month if 1 <= m <= 12]))

    if spec.by_month_day:
        parts.append("on the " + _join([_ordinal(d) for d in spec.by_month_day]))

    if spec.by_day and not by_day_rendered:
        days = [
            f"the {_ordinal(rule.ordinal)} {rule.day.full_name}"
            if rule.ordinal
            else rule.day.full_name
            for rule in spec.by_day
        ]
        parts.append("on " + _join(days))

    if spec.by_year_day:
        parts.append("on the " + _join([_ordinal(d) for d in spec.by_year_day]) + " day of the year")

    if spec.by_week_no:
        parts.append("in week " + _join([str(w) for w in spec.by_week_no]))

    if spec.by_hour:
        if len(spec.by_hour) == 1 and len(spec.by_minute) == 1:
            parts.append(f"at {spec.by_hour[0]}:{spec.by_minute[0]:02d}")
        else:
            parts.append("at " + _join([str(h) for h in spec.by_hour]) + " o'clock")
            if spec.by_minute:
                parts.append("past minute " + _join([str(m) for m in spec.by_minute]))
    elif spec.by_minute:
        parts.append("at minute " + _join([str(m) for m in spec.by_minute]))

    if spec.by_second:
        parts.append("at second " + _join([str(s) for s in spec.by_second]))

    if spec.by_set_pos:
        parts.append("(" + _join([_ordinal(p) for p in spec.by_set_pos]) + " instance)")

    if spec.count:
        parts.append("for 1 time" if spec.count == 1 else f"for {spec.count} times")
    elif spec.until is not None:
        parts.append(f"until {spec.until:%B} {spec.until.day}, {spec.until.year}")

    return " ".join(parts)


def raw_rule_text(recur: Any) -> str:
    """Return the rule's own text with any leading ``RRULE:`` keyword removed."""
    if isinstance(recur, str):
        text = recur
    else:
        try:
            text = recur.to_ical().decode("utf-8")
        except Exception:
            # Values that icalendar cannot serialize are rendered as written
            text = ";".join(
                f"{key}={','.join(str(v) for v in _values(recur, key))}" for key in recur
            )
    return _RULE_PREFIX.sub("", text).strip()


class RecurrenceTranslator:
    """Translate icalendar recurrence rules into human-readable descriptions."""

    def translate(self, recur: Any, dtstart: datetime) -> RecurrenceDescription:
        """Describe a recurrence rule.

        Args:
            recur: icalendar ``vRecur`` (or compatible mapping)
            dtstart: Event start instant, timezone-aware

        Returns:
            A DESCRIBED result, or a RAW result carrying the rule text when the
            rule cannot be translated
        """
        try:
            spec = rule_spec_from_recur(recur)
            kwargs = build_rrule_kwargs(spec, dtstart)
            # Constructing the rule validates the combination of fields
            rrule(**kwargs)
            return RecurrenceDescription(kind=RecurrenceKind.DESCRIBED, text=describe_rule(spec))
        except Exception as e:
            logger.warning("Could not translate recurrence rule, using raw text: %s", e)
            return self.fallback(recur)

    def fallback(self, recur: Any) -> RecurrenceDescription:
        """Describe a rule by its raw text."""
        text = raw_rule_text(recur) or "Recurring"
        return RecurrenceDescription(kind=RecurrenceKind.RAW, text=text)
