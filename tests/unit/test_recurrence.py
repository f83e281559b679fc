"""Unit tests for recurrence module."""

from datetime import UTC, date, datetime

import pytest
from dateutil.rrule import MO, WEEKLY
from icalendar import vRecur

from calendarreader.exceptions import RecurrenceTranslationError
from calendarreader.models import RecurrenceKind
from calendarreader.recurrence import (
    Frequency,
    RecurrenceTranslator,
    RuleSpec,
    Weekday,
    WeekdayRule,
    build_rrule_kwargs,
    describe_rule,
    map_until,
    raw_rule_text,
    rule_spec_from_recur,
)

pytestmark = pytest.mark.unit

DTSTART = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


def describe(rule: str) -> str:
    return describe_rule(rule_spec_from_recur(vRecur.from_ical(rule)))


class TestMapUntil:
    """Tests for map_until function."""

    def test_map_until_when_date_then_end_of_utc_day(self):
        assert map_until(date(2025, 3, 1)) == datetime(2025, 3, 1, 23, 59, 59, tzinfo=UTC)

    def test_map_until_when_naive_datetime_then_treated_as_utc(self):
        assert map_until(datetime(2025, 3, 1, 12, 0)) == datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

    def test_map_until_when_string_then_raises(self):
        with pytest.raises(RecurrenceTranslationError):
            map_until("not-a-date")


class TestWeekdayRule:
    """Tests for WeekdayRule.parse."""

    @pytest.mark.parametrize(
        ("token", "day", "ordinal"),
        [("MO", Weekday.MO, None), ("1MO", Weekday.MO, 1), ("-1FR", Weekday.FR, -1), ("+2su", Weekday.SU, 2)],
    )
    def test_parse_valid_tokens(self, token, day, ordinal):
        rule = WeekdayRule.parse(token)

        assert rule.day == day
        assert rule.ordinal == ordinal

    def test_parse_invalid_token_raises(self):
        with pytest.raises(RecurrenceTranslationError):
            WeekdayRule.parse("XX")


class TestRuleSpecFromRecur:
    """Tests for rule_spec_from_recur function."""

    def test_rule_spec_from_recur_reads_all_parts(self):
        spec = rule_spec_from_recur(
            vRecur.from_ical("FREQ=MONTHLY;INTERVAL=2;COUNT=6;BYDAY=1MO,-1FR;BYMONTH=1,7;WKST=SU")
        )

        assert spec.frequency == Frequency.MONTHLY
        assert spec.interval == 2
        assert spec.count == 6
        assert spec.week_start == Weekday.SU
        assert spec.by_day == (WeekdayRule(Weekday.MO, 1), WeekdayRule(Weekday.FR, -1))
        assert spec.by_month == (1, 7)

    def test_rule_spec_from_recur_when_unknown_frequency_then_raises(self):
        with pytest.raises(RecurrenceTranslationError):
            rule_spec_from_recur({"FREQ": ["FORTNIGHTLY"]})


class TestBuildRruleKwargs:
    """Tests for build_rrule_kwargs function."""

    def test_build_rrule_kwargs_maps_weekly_monday(self):
        spec = RuleSpec(frequency=Frequency.WEEKLY, interval=1, by_day=(WeekdayRule(Weekday.MO),))

        kwargs = build_rrule_kwargs(spec, DTSTART)

        assert kwargs["freq"] == WEEKLY
        assert kwargs["dtstart"] == DTSTART
        assert kwargs["byweekday"] == [MO]
        assert "count" not in kwargs
        assert "until" not in kwargs

    def test_build_rrule_kwargs_keeps_weekday_ordinals(self):
        spec = RuleSpec(frequency=Frequency.MONTHLY, by_day=(WeekdayRule(Weekday.MO, -1),))

        assert build_rrule_kwargs(spec, DTSTART)["byweekday"] == [MO(-1)]


class TestDescribeRule:
    """Tests for describe_rule function."""

    @pytest.mark.parametrize(
        ("rule", "expected"),
        [
            ("FREQ=WEEKLY;INTERVAL=1;BYDAY=MO", "every week on Monday"),
            ("FREQ=DAILY", "every day"),
            ("FREQ=DAILY;COUNT=5", "every day for 5 times"),
            ("FREQ=DAILY;COUNT=1", "every day for 1 time"),
            ("FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR", "every weekday"),
            ("FREQ=WEEKLY;INTERVAL=2;BYDAY=TU,TH", "every 2 weeks on Tuesday and Thursday"),
            ("FREQ=MONTHLY;INTERVAL=2;BYDAY=1MO", "every 2 months on the 1st Monday"),
            ("FREQ=MONTHLY;BYDAY=-1FR", "every month on the last Friday"),
            ("FREQ=MONTHLY;BYMONTHDAY=15", "every month on the 15th"),
            ("FREQ=YEARLY;BYMONTH=1", "every year in January"),
            ("FREQ=WEEKLY;UNTIL=20250301T000000Z", "every week until March 1, 2025"),
        ],
    )
    def test_describe_rule(self, rule, expected):
        assert describe(rule) == expected


class TestRawRuleText:
    """Tests for raw_rule_text function."""

    def test_raw_rule_text_strips_rrule_prefix(self):
        assert raw_rule_text("RRULE:FREQ=DAILY;COUNT=3") == "FREQ=DAILY;COUNT=3"

    def test_raw_rule_text_when_unserializable_value_then_renders_as_written(self):
        text = raw_rule_text(vRecur({"FREQ": ["WEEKLY"], "UNTIL": ["not-a-date"]}))

        assert "FREQ=WEEKLY" in text
        assert "not-a-date" in text


class TestRecurrenceTranslator:
    """Tests for RecurrenceTranslator class."""

    def test_translate_weekly_monday_describes_rule(self):
        translator = RecurrenceTranslator()

        result = translator.translate(vRecur.from_ical("FREQ=WEEKLY;INTERVAL=1;BYDAY=MO"), DTSTART)

        assert result.kind == RecurrenceKind.DESCRIBED
        assert "week" in result.text
        assert "Monday" in result.text
        assert not result.is_fallback

    def test_translate_when_until_unmappable_then_falls_back_to_raw_text(self):
        translator = RecurrenceTranslator()

        result = translator.translate(vRecur({"FREQ": ["WEEKLY"], "UNTIL": ["not-a-date"]}), DTSTART)

        assert result.kind == RecurrenceKind.RAW
        assert result.is_fallback
        assert result.text
        assert "WEEKLY" in result.text

    def test_translate_when_dateutil_rejects_rule_then_falls_back(self):
        translator = RecurrenceTranslator()

        # BYSETPOS=0 is outside the range dateutil accepts
        result = translator.translate({"FREQ": ["MONTHLY"], "BYSETPOS": [0]}, DTSTART)

        assert result.kind == RecurrenceKind.RAW
        assert "MONTHLY" in result.text

    def test_fallback_when_rule_text_empty_then_generic_label(self):
        assert RecurrenceTranslator().fallback("RRULE:").text == "Recurring"
