"""Unit tests for csv_decoder module."""

from datetime import UTC, datetime

import pytest

from calendarreader.config import ReaderSettings
from calendarreader.csv_decoder import (
    COLUMN_ALIASES,
    CsvDecoder,
    batch_discriminator,
    parse_attendee_list,
    resolve_field,
)
from calendarreader.exceptions import MalformedTableError, MissingRequiredFieldError
from calendarreader.models import AttendeeStatus, SourceFormat

pytestmark = pytest.mark.unit


class TestResolveField:
    """Tests for resolve_field function."""

    def test_resolve_field_when_several_aliases_then_priority_order_wins(self):
        row = {"startDate": "2024-02-02", "Start Date": "2024-01-01", "start": "2024-03-03"}

        assert resolve_field(row, "start") == "2024-01-01"

    def test_resolve_field_when_preferred_alias_empty_then_next_non_empty(self):
        row = {"Start Date": "", "startDate": "2024-02-02"}

        assert resolve_field(row, "start") == "2024-02-02"

    def test_resolve_field_is_case_sensitive(self):
        assert resolve_field({"START DATE": "2024-01-01"}, "start") is None

    def test_alias_table_covers_every_logical_field(self):
        assert set(COLUMN_ALIASES) == {"summary", "start", "end", "description", "location", "attendees"}


class TestParseAttendeeList:
    """Tests for parse_attendee_list function."""

    def test_parse_attendee_list_splits_and_trims(self):
        attendees = parse_attendee_list(" ana@example.com,ben@example.com , ")

        assert [a.email for a in attendees] == ["ana@example.com", "ben@example.com"]
        assert all(a.name is None for a in attendees)
        assert all(a.status == AttendeeStatus.NEEDS_ACTION for a in attendees)

    def test_parse_attendee_list_when_empty_then_no_attendees(self):
        assert parse_attendee_list(None) == []
        assert parse_attendee_list("") == []


class TestCsvDecoder:
    """Tests for CsvDecoder class."""

    def test_decode_fixture(self, settings, read_fixture):
        drafts = CsvDecoder(settings).decode(read_fixture("outlook.csv"))

        assert len(drafts) == 2
        review = drafts[0]
        assert review.summary == "Quarterly review"
        assert review.location == "Board room"
        assert review.description == "Numbers and plans"
        assert review.start_date == datetime(2024, 3, 4, 10, 0, tzinfo=UTC)
        assert review.end_date == datetime(2024, 3, 4, 11, 30, tzinfo=UTC)
        assert review.is_all_day is False
        assert review.source_format == SourceFormat.CSV
        assert [a.email for a in review.attendees] == ["ana@example.com", "ben@example.com"]

        untitled = drafts[1]
        assert untitled.summary is None
        assert untitled.attendees == []

    def test_decode_when_start_and_end_aliases_only_then_parses(self, settings):
        drafts = CsvDecoder(settings).decode("start,end\n2024-03-01 10:00,2024-03-01 11:00\n")

        assert len(drafts) == 1
        assert drafts[0].start_date == datetime(2024, 3, 1, 10, 0, tzinfo=UTC)

    def test_decode_when_start_date_and_camel_case_present_then_start_date_wins(self, settings):
        text = "Subject,startDate,Start Date,End Date\nX,2024-02-02 08:00,2024-01-01 09:00,2024-01-01 10:00\n"

        draft = CsvDecoder(settings).decode(text)[0]

        assert draft.start_date == datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

    def test_decode_when_second_row_lacks_end_then_names_row_three(self, settings):
        text = "Subject,Start Date,End Date\nA,2024-01-01 09:00,2024-01-01 10:00\nB,2024-01-02 09:00,\n"

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            CsvDecoder(settings).decode(text)

        assert exc_info.value.row_number == 3
        assert exc_info.value.message == "Parsing failed: Row 3 is missing Start or End date."

    def test_decode_when_header_only_then_no_events(self, settings):
        assert CsvDecoder(settings).decode("Subject,Start Date,End Date\n") == []

    def test_decode_naive_times_use_csv_timezone(self):
        settings = ReaderSettings(csv_timezone="America/New_York", _env_file=None)

        draft = CsvDecoder(settings).decode("start,end\n2024-01-01 09:00,2024-01-01 10:00\n")[0]

        assert draft.start_date == datetime(2024, 1, 1, 14, 0, tzinfo=UTC)

    def test_decode_explicit_offsets_are_respected(self, settings):
        draft = CsvDecoder(settings).decode(
            "start,end\n2024-01-01T09:00:00+02:00,2024-01-01T10:00:00+02:00\n"
        )[0]

        assert draft.start_date == datetime(2024, 1, 1, 7, 0, tzinfo=UTC)

    def test_decode_when_end_before_start_then_both_kept(self, settings):
        draft = CsvDecoder(settings).decode("start,end\n2024-01-02,2024-01-01\n")[0]

        assert draft.start_date == datetime(2024, 1, 2, tzinfo=UTC)
        assert draft.end_date == datetime(2024, 1, 1, tzinfo=UTC)

    def test_decode_when_date_unreadable_then_malformed_table(self, settings):
        with pytest.raises(MalformedTableError) as exc_info:
            CsvDecoder(settings).decode("start,end\nsoon,later\n")

        assert exc_info.value.row_number == 2
        assert exc_info.value.message == "Parsing failed: Row 2 has an unreadable date: 'soon'"


class TestCsvDecoderUids:
    """Synthesized uids."""

    def test_uids_follow_row_index_and_are_distinct(self, settings, read_fixture):
        text = read_fixture("outlook.csv")

        uids = [d.uid for d in CsvDecoder(settings).decode(text)]

        assert len(set(uids)) == 2
        assert all(uid.startswith("csv-") for uid in uids)
        assert uids[0].endswith(f"-{batch_discriminator(text)}-0")
        assert uids[1].endswith(f"-{batch_discriminator(text)}-1")

    def test_uids_use_caller_batch_id(self, settings):
        draft = CsvDecoder(settings).decode("start,end\n2024-01-01,2024-01-02\n", batch_id="upload7")[0]

        assert draft.uid.endswith("-upload7-0")

    def test_batch_discriminator_differs_between_files(self):
        assert batch_discriminator("a,b\n1,2\n") != batch_discriminator("a,b\n1,3\n")


class TestCsvDecoderStructure:
    """Structural errors."""

    def test_too_many_fields(self, settings):
        with pytest.raises(MalformedTableError) as exc_info:
            CsvDecoder(settings).decode("start,end\n2024-01-01,2024-01-02,extra\n")

        assert exc_info.value.message == "Parsing failed: Row 2: too many fields (expected 2, got 3)"

    def test_too_few_fields(self, settings):
        with pytest.raises(MalformedTableError) as exc_info:
            CsvDecoder(settings).decode("Subject,start,end\nA,2024-01-01\n")

        assert "too few fields" in exc_info.value.message

    def test_unterminated_quote(self, settings):
        with pytest.raises(MalformedTableError):
            CsvDecoder(settings).decode('Subject,start,end\n"A,2024-01-01,2024-01-02\n')

    def test_missing_header(self, settings):
        with pytest.raises(MalformedTableError):
            CsvDecoder(settings).decode("")
