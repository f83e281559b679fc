"""Exception hierarchy for calendar file parsing.

Every error except RecurrenceTranslationError is file-fatal: the parse aborts
and the caller receives the error message instead of a partial event list.
"""

from typing import Optional


class CalendarParseError(Exception):
    """Base exception for calendar file parsing errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedFormatError(CalendarParseError):
    """Raised when the file extension does not map to a known decoder."""

    def __init__(self, extension: Optional[str] = None):
        super().__init__("Unsupported file type. Please use .ics, .vcs, or .csv")
        self.extension = extension


class EmptyInputError(CalendarParseError):
    """Raised when the file contains no content."""

    def __init__(self, message: str = "File is empty."):
        super().__init__(message)


class MalformedDocumentError(CalendarParseError):
    """Raised when iCalendar/vCalendar content cannot be parsed."""


class MalformedTableError(CalendarParseError):
    """Raised when CSV content has structural errors.

    Raised when:
    - The header row is missing
    - A row has more or fewer fields than the header
    - A row's start or end value is not a recognizable date
    """

    def __init__(self, message: str, row_number: Optional[int] = None):
        super().__init__(message)
        self.row_number = row_number


class MissingRequiredFieldError(CalendarParseError):
    """Raised when a CSV row has no resolvable start or end value.

    ``row_number`` is the 1-based line number in the file, counting the header.
    """

    def __init__(self, row_number: int, field_names: tuple[str, ...] = ("start", "end")):
        super().__init__(f"Parsing failed: Row {row_number} is missing Start or End date.")
        self.row_number = row_number
        self.field_names = field_names


class ReadFailureError(CalendarParseError):
    """Raised when the file could not be read from disk."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FileTooLargeError(CalendarParseError):
    """Raised when a file exceeds the configured size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"File too large: {size} bytes exceeds {limit} byte limit")
        self.size = size
        self.limit = limit


class RecurrenceTranslationError(Exception):
    """Raised inside the recurrence translator when a rule cannot be mapped.

    Never surfaces to callers; the translator recovers by describing the rule
    with its raw text.
    """
