"""Unit tests for the parse error hierarchy."""

import pytest

from calendarreader.exceptions import (
    CalendarParseError,
    EmptyInputError,
    FileTooLargeError,
    MalformedDocumentError,
    MalformedTableError,
    MissingRequiredFieldError,
    ReadFailureError,
    RecurrenceTranslationError,
    UnsupportedFormatError,
)

pytestmark = pytest.mark.unit


class TestCalendarParseErrors:
    """Tests for CalendarParseError and its subclasses."""

    @pytest.mark.parametrize(
        "error",
        [
            UnsupportedFormatError("txt"),
            EmptyInputError(),
            MalformedDocumentError("Parsing failed: bad line"),
            MalformedTableError("Parsing failed: Row 2: too few fields (expected 3)"),
            MissingRequiredFieldError(3),
            ReadFailureError("File could not be read: denied", path="/tmp/x.ics"),
            FileTooLargeError(100, 10),
        ],
    )
    def test_file_fatal_errors_share_base_class(self, error):
        assert isinstance(error, CalendarParseError)
        assert error.message
        assert str(error) == error.message

    def test_missing_required_field_names_row(self):
        error = MissingRequiredFieldError(3)

        assert error.row_number == 3
        assert error.field_names == ("start", "end")
        assert error.message == "Parsing failed: Row 3 is missing Start or End date."

    def test_empty_input_default_message(self):
        assert EmptyInputError().message == "File is empty."

    def test_file_too_large_keeps_sizes(self):
        error = FileTooLargeError(2048, 1024)

        assert error.size == 2048
        assert error.limit == 1024
        assert "2048" in error.message

    def test_recurrence_translation_error_is_not_file_fatal(self):
        assert not issubclass(RecurrenceTranslationError, CalendarParseError)
