"""Shared defaulting rules applied to every decoded event."""

import logging
import uuid
from collections.abc import Iterable

from .config import ReaderSettings
from .datetime_utils import to_utc
from .models import EventDraft, NormalizedEvent, SourceFormat

logger = logging.getLogger(__name__)


class EventNormalizer:
    """Turn decoder drafts into immutable NormalizedEvent records.

    Both decoders go through the same rules, so every record leaving the
    engine has a non-empty uid and summary, string text fields, attendees
    with an email address, and UTC instants.
    """

    def __init__(self, settings: ReaderSettings) -> None:
        self.settings = settings

    def default_summary(self, source_format: SourceFormat) -> str:
        if source_format == SourceFormat.CSV:
            return self.settings.csv_default_summary
        return self.settings.ics_default_summary

    def normalize(self, draft: EventDraft) -> NormalizedEvent:
        """Apply defaults to a draft and freeze it."""
        uid = (draft.uid or "").strip()
        if not uid:
            uid = str(uuid.uuid4())
            logger.debug("Generated uid %s for event without one", uid)

        summary = (draft.summary or "").strip() or self.default_summary(draft.source_format)
        attendees = tuple(a for a in draft.attendees if a.email.strip())

        recurrence = draft.recurrence
        return NormalizedEvent(
            uid=uid,
            summary=summary,
            description=draft.description or "",
            location=draft.location or "",
            start_date=to_utc(draft.start_date),
            end_date=to_utc(draft.end_date),
            is_all_day=draft.is_all_day,
            organizer=draft.organizer,
            attendees=attendees,
            recurrence=recurrence.text if recurrence else None,
            recurrence_kind=recurrence.kind if recurrence else None,
            source_format=draft.source_format,
        )

    def normalize_all(self, drafts: Iterable[EventDraft]) -> tuple[NormalizedEvent, ...]:
        """Normalize drafts, preserving order."""
        return tuple(self.normalize(draft) for draft in drafts)
