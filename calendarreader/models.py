"""Data models for normalized calendar events."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class SourceFormat(str, Enum):
    """Calendar file formats understood by the engine."""

    ICS = "ics"
    VCS = "vcs"
    CSV = "csv"


class AttendeeStatus(str, Enum):
    """Attendee participation status."""

    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    TENTATIVE = "TENTATIVE"
    NEEDS_ACTION = "NEEDS-ACTION"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AttendeeStatus":
        """Map a PARTSTAT (or vCalendar STATUS) value onto the enumeration.

        Unknown and missing values map to NEEDS-ACTION.
        """
        if not value:
            return cls.NEEDS_ACTION

        normalized = str(value).strip().upper()
        legacy_aliases = {
            "NEEDS ACTION": cls.NEEDS_ACTION,
            "CONFIRMED": cls.ACCEPTED,
        }
        if normalized in legacy_aliases:
            return legacy_aliases[normalized]

        try:
            return cls(normalized)
        except ValueError:
            return cls.NEEDS_ACTION


class RecurrenceKind(str, Enum):
    """How a recurrence description was produced."""

    DESCRIBED = "described"
    RAW = "raw"


class RecurrenceDescription(BaseModel):
    """Result of translating a recurrence rule.

    ``DESCRIBED`` carries a human-readable phrase; ``RAW`` carries the rule's
    own text when translation failed.
    """

    kind: RecurrenceKind
    text: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    @property
    def is_fallback(self) -> bool:
        return self.kind == RecurrenceKind.RAW


class Organizer(BaseModel):
    """Event organizer."""

    name: str = Field(..., description="Display name, or the email local part")
    email: Optional[str] = Field(default=None, description="Organizer email address")

    model_config = ConfigDict(frozen=True)


class Attendee(BaseModel):
    """Event attendee."""

    name: Optional[str] = Field(default=None, description="Attendee display name")
    email: str = Field(..., min_length=1, description="Attendee email address")
    status: AttendeeStatus = Field(
        default=AttendeeStatus.NEEDS_ACTION, description="Participation status"
    )

    model_config = ConfigDict(frozen=True)


class NormalizedEvent(BaseModel):
    """Uniform event record produced for every supported file format."""

    uid: str = Field(..., min_length=1, description="Event identity")
    summary: str = Field(..., min_length=1, description="Display title")
    description: str = Field(default="", description="Free-text description")
    location: str = Field(default="", description="Free-text location")

    start_date: datetime = Field(..., description="Start instant (UTC)")
    end_date: datetime = Field(..., description="End instant (UTC)")
    is_all_day: bool = Field(default=False, description="Date-only source values")

    organizer: Optional[Organizer] = Field(default=None, description="Event organizer")
    attendees: tuple[Attendee, ...] = Field(default=(), description="Event attendees")

    recurrence: Optional[str] = Field(default=None, description="Recurrence description")
    recurrence_kind: Optional[RecurrenceKind] = Field(
        default=None, description="Whether recurrence is a description or raw rule text"
    )

    source_format: SourceFormat = Field(..., description="Format the event was read from")

    model_config = ConfigDict(frozen=True)

    @field_validator("start_date", "end_date")
    @classmethod
    def _require_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() != timedelta(0):
            raise ValueError("event instants must be timezone-aware UTC datetimes")
        return value

    @field_serializer("start_date", "end_date")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


class ParseResult(BaseModel):
    """Complete batch of events produced from one file."""

    file_name: str
    source_format: SourceFormat
    events: tuple[NormalizedEvent, ...] = ()
    warnings: list[str] = Field(default_factory=list)

    @property
    def event_count(self) -> int:
        return len(self.events)


@dataclass
class EventDraft:
    """Pre-normalization event shape shared by both decoders.

    Decoders fill in what the source provides; EventNormalizer applies
    defaults and produces the immutable NormalizedEvent.
    """

    source_format: SourceFormat
    start_date: datetime
    end_date: datetime
    uid: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False
    organizer: Optional[Organizer] = None
    attendees: list[Attendee] = field(default_factory=list)
    recurrence: Optional[RecurrenceDescription] = None
