"""Datetime helpers: UTC anchoring of source values and display formatting."""

import logging
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if TYPE_CHECKING:
    from .models import NormalizedEvent

logger = logging.getLogger(__name__)


def ensure_timezone_aware(dt: datetime, fallback_tz: str = "UTC") -> datetime:
    """Ensure datetime is timezone-aware.

    Args:
        dt: Datetime to make timezone-aware
        fallback_tz: IANA zone applied to naive datetimes

    Returns:
        Timezone-aware datetime (unchanged if it already carried a zone)
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC if fallback_tz == "UTC" else ZoneInfo(fallback_tz))
    return dt


def to_utc(value: Union[date, datetime], fallback_tz: str = "UTC") -> datetime:
    """Anchor a date or datetime to an absolute UTC instant.

    Date-only values become UTC midnight so they never shift across a day
    boundary when rendered in UTC. Naive datetimes are interpreted in
    ``fallback_tz``.

    Raises:
        TypeError: If value is neither a date nor a datetime
    """
    if isinstance(value, datetime):
        return ensure_timezone_aware(value, fallback_tz).astimezone(UTC)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def is_date_only(value: object) -> bool:
    """Return True for date values that carry no time of day."""
    return isinstance(value, date) and not isinstance(value, datetime)


def _resolve_zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz_name}") from e


def format_event_datetime(instant: datetime, tz_name: str, is_all_day: bool) -> str:
    """Format an event instant for display.

    All-day events are always rendered in UTC to avoid date shifting; timed
    events are rendered in the requested zone.

    Examples:
        >>> from datetime import datetime, UTC
        >>> format_event_datetime(datetime(2024, 1, 1, tzinfo=UTC), "Asia/Tokyo", True)
        'January 1, 2024'
        >>> format_event_datetime(datetime(2024, 1, 1, 14, tzinfo=UTC), "America/New_York", False)
        'January 1, 2024, 9:00:00 AM (EST)'

    Raises:
        ValueError: If tz_name is not a known IANA zone
    """
    if is_all_day:
        local = instant.astimezone(UTC)
        return f"{local:%B} {local.day}, {local.year}"

    local = instant.astimezone(_resolve_zone(tz_name))
    hour = local.hour % 12 or 12
    return (
        f"{local:%B} {local.day}, {local.year}, "
        f"{hour}:{local:%M:%S} {local:%p} ({local.tzname()})"
    )


def format_event_range(event: "NormalizedEvent", tz_name: str) -> tuple[str, str]:
    """Format an event's start and end for display in ``tz_name``."""
    return (
        format_event_datetime(event.start_date, tz_name, event.is_all_day),
        format_event_datetime(event.end_date, tz_name, event.is_all_day),
    )
