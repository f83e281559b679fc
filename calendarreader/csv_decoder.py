"""CSV decoding into event drafts.

Column meaning is guessed from a static, ordered alias table: for each
logical field the first header (in priority order) holding a non-empty
value wins. Header matching is case-sensitive.
"""

import csv
import hashlib
import io
import logging
import time
from datetime import datetime
from typing import Mapping, Optional

from dateutil import parser as date_parser

from .config import ReaderSettings
from .datetime_utils import to_utc
from .exceptions import MalformedTableError, MissingRequiredFieldError
from .models import Attendee, AttendeeStatus, EventDraft, SourceFormat

logger = logging.getLogger(__name__)

# Logical field -> candidate headers, highest priority first
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "summary": ("Subject", "subject", "Title", "title"),
    "start": ("Start Date", "startDate", "start"),
    "end": ("End Date", "endDate", "end"),
    "description": ("Description", "description"),
    "location": ("Location", "location"),
    "attendees": ("Attendees", "attendees"),
}

# Data rows are reported by file line: header is line 1, first data row line 2
HEADER_ROW_OFFSET = 2


def resolve_field(row: Mapping[str, Optional[str]], field: str) -> Optional[str]:
    """Resolve a logical field from a row using COLUMN_ALIASES.

    Args:
        row: Mapping of header name to cell value
        field: Logical field name (a key of COLUMN_ALIASES)

    Returns:
        The first non-empty candidate value, or None
    """
    for header in COLUMN_ALIASES[field]:
        value = row.get(header)
        if value:
            return value
    return None


def parse_attendee_list(value: Optional[str]) -> list[Attendee]:
    """Split a comma-separated email list into attendees awaiting a response."""
    if not value:
        return []
    return [
        Attendee(email=token.strip(), status=AttendeeStatus.NEEDS_ACTION)
        for token in value.split(",")
        if token.strip()
    ]


def batch_discriminator(text: str) -> str:
    """Short content digest that separates uids of different files parsed in the same tick."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:8]


class CsvDecoder:
    """Decode tabular calendar exports."""

    def __init__(self, settings: ReaderSettings) -> None:
        self.settings = settings
        self.warnings: list[str] = []

    def decode(self, text: str, batch_id: Optional[str] = None) -> list[EventDraft]:
        """Decode CSV text (header on line 1) into event drafts.

        Args:
            text: Full file text
            batch_id: Optional caller-supplied discriminator used in synthesized uids

        Returns:
            Event drafts in row order

        Raises:
            MalformedTableError: On structural errors or unreadable dates
            MissingRequiredFieldError: If a row has no start or end value
        """
        self.warnings = []
        rows = self._read_rows(text)

        stamp = int(time.time() * 1000)
        batch = batch_id or batch_discriminator(text)

        drafts = []
        for index, row in enumerate(rows):
            row_number = index + HEADER_ROW_OFFSET
            start = resolve_field(row, "start")
            end = resolve_field(row, "end")
            if not start or not end:
                raise MissingRequiredFieldError(row_number)

            drafts.append(
                EventDraft(
                    source_format=SourceFormat.CSV,
                    uid=f"csv-{stamp}-{batch}-{index}",
                    summary=resolve_field(row, "summary"),
                    description=resolve_field(row, "description"),
                    location=resolve_field(row, "location"),
                    start_date=self._parse_date(start, row_number),
                    end_date=self._parse_date(end, row_number),
                    is_all_day=False,
                    attendees=parse_attendee_list(resolve_field(row, "attendees")),
                )
            )

        logger.debug("Decoded %d CSV rows", len(drafts))
        return drafts

    def _read_rows(self, text: str) -> list[dict[str, Optional[str]]]:
        """Read every data row, failing on structural errors."""
        reader = csv.DictReader(io.StringIO(text, newline=""), strict=True)
        errors: list[str] = []
        rows: list[dict[str, Optional[str]]] = []

        try:
            if not reader.fieldnames:
                raise MalformedTableError("Parsing failed: CSV file has no header row.")

            field_count = len(reader.fieldnames)
            for index, row in enumerate(reader):
                row_number = index + HEADER_ROW_OFFSET
                if None in row:
                    errors.append(
                        f"Row {row_number}: too many fields "
                        f"(expected {field_count}, got {field_count + len(row[None])})"
                    )
                elif any(value is None for value in row.values()):
                    errors.append(f"Row {row_number}: too few fields (expected {field_count})")
                rows.append(row)
        except csv.Error as e:
            errors.append(f"Line {reader.line_num}: {e}")

        if errors:
            logger.error("CSV parsing errors: %s", errors)
            raise MalformedTableError(
                f"Parsing failed: {errors[0]}",
                row_number=None,
            )

        return rows

    def _parse_date(self, value: str, row_number: int) -> datetime:
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise MalformedTableError(
                f"Parsing failed: Row {row_number} has an unreadable date: {value!r}", row_number=row_number
            ) from e
        return to_utc(parsed, self.settings.csv_timezone)
