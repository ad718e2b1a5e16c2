"""Tests for the scheduling module.

Covers expression parsing, per-field calendar logic, matching,
next-trigger calculation, iteration, validation and presets.
"""

from datetime import datetime

import pytest

from cronplan.scheduling import (
    ALIASES,
    PRESETS,
    CronParseError,
    Dialect,
    FieldRole,
    ParseError,
    PartKind,
    Schedule,
    ScheduleIterator,
    get_preset,
    is_valid_expression,
    list_presets,
    parse,
    split_expression,
    validate_expression,
)
from cronplan.scheduling.fields import create_fields, ordinal


@pytest.fixture
def unix_fields():
    return {f.role: f for f in create_fields(Dialect.UNIX, 2024)}


@pytest.fixture
def quartz_fields():
    return {f.role: f for f in create_fields(Dialect.QUARTZ, 2024)}


# =============================================================================
# CronParseError Tests
# =============================================================================


class TestCronParseError:
    """Tests for CronParseError exception."""

    def test_error_message(self):
        """Test error message formatting."""
        error = CronParseError("Invalid expression", "* * * * * *", 5)
        assert "Invalid expression" in str(error)
        assert error.expression == "* * * * * *"
        assert error.position == 5

    def test_error_without_position(self):
        """Test error without position info."""
        error = CronParseError("Simple error")
        assert error.expression == ""
        assert error.position == -1

    def test_alias_and_base_class(self):
        """Test ParseError alias and ValueError base."""
        assert ParseError is CronParseError
        assert issubclass(CronParseError, ValueError)


# =============================================================================
# Field Domain Tests
# =============================================================================


class TestFieldDomains:
    """Tests for field bounds and labels."""

    def test_unix_domains(self, unix_fields):
        """Test UNIX bounds."""
        assert (unix_fields[FieldRole.MINUTE].lower, unix_fields[FieldRole.MINUTE].upper) == (0, 59)
        assert (unix_fields[FieldRole.HOUR].lower, unix_fields[FieldRole.HOUR].upper) == (0, 23)
        assert (unix_fields[FieldRole.DAY_OF_MONTH].lower, unix_fields[FieldRole.DAY_OF_MONTH].upper) == (1, 31)
        assert (unix_fields[FieldRole.MONTH].lower, unix_fields[FieldRole.MONTH].upper) == (1, 12)
        assert (unix_fields[FieldRole.DAY_OF_WEEK].lower, unix_fields[FieldRole.DAY_OF_WEEK].upper) == (0, 6)

    def test_quartz_day_of_week(self, quartz_fields):
        """Test QUARTZ numbers Sunday as 1."""
        dow = quartz_fields[FieldRole.DAY_OF_WEEK]
        assert (dow.lower, dow.upper) == (1, 7)
        assert dow.value_name(1) == "Sunday"
        assert dow.value_name(2) == "Monday"

    def test_year_domain(self, unix_fields):
        """Test year spans construction year plus 100."""
        year = unix_fields[FieldRole.YEAR]
        assert (year.lower, year.upper) == (2024, 2124)

    def test_field_ids(self, unix_fields):
        """Test fields take ids 1-6 in column order."""
        assert [unix_fields[role].id for role in FieldRole] == [1, 2, 3, 4, 5, 6]

    def test_value_names(self, unix_fields):
        """Test display text of literals."""
        assert unix_fields[FieldRole.MINUTE].value_name(0) == "1st"
        assert unix_fields[FieldRole.HOUR].value_name(0) == "12am"
        assert unix_fields[FieldRole.HOUR].value_name(11) == "11am"
        assert unix_fields[FieldRole.HOUR].value_name(12) == "12pm"
        assert unix_fields[FieldRole.HOUR].value_name(23) == "11pm"
        assert unix_fields[FieldRole.DAY_OF_MONTH].value_name(2) == "2nd"
        assert unix_fields[FieldRole.MONTH].value_name(12) == "December"
        assert unix_fields[FieldRole.DAY_OF_WEEK].value_name(0) == "Sunday"
        assert unix_fields[FieldRole.YEAR].value_name(2030) == "2030"

    def test_ordinal(self):
        """Test English ordinals."""
        assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 23, 101, 111)] == [
            "1st", "2nd", "3rd", "4th", "11th", "12th", "13th",
            "21st", "22nd", "23rd", "101st", "111th",
        ]

    def test_dialect_from_string(self):
        """Test dialect lookup."""
        assert Dialect.from_string("QUARTZ") is Dialect.QUARTZ
        assert Dialect.from_string(Dialect.UNIX) is Dialect.UNIX
        with pytest.raises(ValueError):
            Dialect.from_string("cobol")


# =============================================================================
# Parser Tests
# =============================================================================


class TestParserBasic:
    """Tests for parsing single columns."""

    def test_parse_wildcard(self, unix_fields):
        """Test * and ? parse to wildcards."""
        assert parse("*", unix_fields[FieldRole.MINUTE]).kind is PartKind.WILDCARD
        assert parse("?", unix_fields[FieldRole.DAY_OF_WEEK]).kind is PartKind.WILDCARD

    def test_parse_single_value(self, unix_fields):
        """Test a single literal."""
        part = parse("30", unix_fields[FieldRole.MINUTE])
        assert part.structure() == ("literal", 30)

    def test_parse_range(self, unix_fields):
        """Test a simple range."""
        part = parse("9-17", unix_fields[FieldRole.HOUR])
        assert part.structure() == ("range", ("literal", 9), ("literal", 17))

    def test_parse_step_from_start(self, unix_fields):
        """Test */15."""
        part = parse("*/15", unix_fields[FieldRole.MINUTE])
        assert part.structure() == ("increment", ("*",), ("literal", 15))

    def test_parse_step_in_range(self, unix_fields):
        """Test 10-30/5 splits on the slash first."""
        part = parse("10-30/5", unix_fields[FieldRole.MINUTE])
        assert part.structure() == (
            "increment",
            ("range", ("literal", 10), ("literal", 30)),
            ("literal", 5),
        )

    def test_parse_list(self, unix_fields):
        """Test a mixed list."""
        part = parse("1,5-7,*/20", unix_fields[FieldRole.MINUTE])
        assert part.kind is PartKind.COMPOUND
        assert part.to_cron() == "1,5-7,*/20"

    def test_parse_wraparound_range(self, unix_fields):
        """Test FRI-MON."""
        part = parse("FRI-MON", unix_fields[FieldRole.DAY_OF_WEEK])
        assert part.to_cron() == "5-1"


class TestParserClamping:
    """Tests for clamping out-of-range literals."""

    def test_above_upper(self, unix_fields):
        """Test values above the domain clamp to the upper bound."""
        assert parse("75", unix_fields[FieldRole.MINUTE]).value == 59
        assert parse("99", unix_fields[FieldRole.HOUR]).value == 23
        assert parse("40", unix_fields[FieldRole.DAY_OF_MONTH]).value == 31

    def test_below_lower(self, unix_fields):
        """Test values below the domain clamp to the lower bound."""
        assert parse("0", unix_fields[FieldRole.DAY_OF_MONTH]).value == 1
        assert parse("0", unix_fields[FieldRole.MONTH]).value == 1
        assert parse("0", create_fields(Dialect.QUARTZ, 2024)[4]).value == 1

    def test_year_keeps_past_years(self, unix_fields):
        """Test year literals are only clamped at zero."""
        assert parse("2015", unix_fields[FieldRole.YEAR]).value == 2015
        assert parse("3000", unix_fields[FieldRole.YEAR]).value == 3000

    def test_step_clamped(self, unix_fields):
        """Test oversized steps clamp into the domain."""
        part = parse("*/90", unix_fields[FieldRole.MINUTE])
        assert part.step.value == 59


class TestParserNames:
    """Tests for month and weekday names."""

    def test_month_names(self, unix_fields):
        """Test JAN-DEC, case-insensitive."""
        part = parse("jan-Mar", unix_fields[FieldRole.MONTH])
        assert part.to_cron() == "1-3"

    def test_unix_weekday_names(self, unix_fields):
        """Test SUN=0 under UNIX."""
        assert parse("SUN", unix_fields[FieldRole.DAY_OF_WEEK]).value == 0
        assert parse("MON-FRI", unix_fields[FieldRole.DAY_OF_WEEK]).to_cron() == "1-5"

    def test_quartz_weekday_names(self, quartz_fields):
        """Test SUN=1 under QUARTZ."""
        assert parse("SUN", quartz_fields[FieldRole.DAY_OF_WEEK]).value == 1
        assert parse("MON-FRI", quartz_fields[FieldRole.DAY_OF_WEEK]).to_cron() == "2-6"

    def test_names_only_where_supported(self, unix_fields):
        """Test names are rejected in numeric-only fields."""
        with pytest.raises(CronParseError):
            parse("JAN", unix_fields[FieldRole.HOUR])


class TestParserErrors:
    """Tests for malformed columns."""

    @pytest.mark.parametrize("text", ["abc", "", "1-*", "*-5", "-5", "1-5-7", "5/x", "*/0", "*/-1", "1,,2", "٣"])
    def test_invalid_tokens(self, unix_fields, text):
        """Test rejected tokens."""
        with pytest.raises(CronParseError):
            parse(text, unix_fields[FieldRole.MINUTE])

    def test_error_reports_column(self):
        """Test the failing column position is reported."""
        with pytest.raises(CronParseError) as exc_info:
            Schedule("0 9 x * *")
        assert exc_info.value.position == 2


class TestSplitExpression:
    """Tests for whole-expression splitting."""

    def test_five_and_six_columns(self):
        """Test both column counts are accepted."""
        assert len(split_expression("0 9 * * 1-5")) == 5
        assert len(split_expression("0 9 * * 1-5 2030")) == 6

    @pytest.mark.parametrize("expression", ["", "* * * *", "* * * * * * *"])
    def test_invalid_field_count(self, expression):
        """Test wrong column counts."""
        with pytest.raises(CronParseError, match="Invalid number of fields"):
            split_expression(expression)

    @pytest.mark.parametrize("alias", sorted(ALIASES))
    def test_aliases(self, alias):
        """Test aliases expand to six columns."""
        assert len(split_expression(alias)) == 6

    def test_alias_case_insensitive(self):
        """Test @DAILY."""
        assert Schedule("@DAILY").to_cron() == "0 0 * * * *"


# =============================================================================
# Field Calendar Logic Tests
# =============================================================================


class TestFieldAdvance:
    """Tests for test_or_advance and roll_parent_cycle."""

    def test_minute_advances_within_hour(self):
        """Test minute moves forward and clears seconds."""
        field = Schedule("30 * * * *").field(FieldRole.MINUTE)
        ok, cursor = field.test_or_advance(datetime(2024, 1, 15, 9, 10))
        assert ok
        assert cursor == datetime(2024, 1, 15, 9, 30)

    def test_minute_fails_without_mutation(self):
        """Test a passed minute reports failure and keeps the cursor."""
        field = Schedule("30 * * * *").field(FieldRole.MINUTE)
        start = datetime(2024, 1, 15, 9, 45)
        assert field.test_or_advance(start) == (False, start)
        assert field.roll_parent_cycle(start) == datetime(2024, 1, 15, 10, 0)

    def test_hour_roll(self):
        """Test hour rolls to the next day."""
        field = Schedule("0 9 * * *").field(FieldRole.HOUR)
        assert field.roll_parent_cycle(datetime(2024, 12, 31, 22, 5)) == datetime(2025, 1, 1)

    def test_day_of_month_beyond_month_length(self):
        """Test the 31st fails in February."""
        field = Schedule("0 0 31 * *").field(FieldRole.DAY_OF_MONTH)
        start = datetime(2024, 2, 10)
        assert field.test_or_advance(start) == (False, start)
        assert field.roll_parent_cycle(start) == datetime(2024, 3, 1)

    def test_day_of_month_roll_december(self):
        """Test December rolls into January of next year."""
        field = Schedule("0 0 1 * *").field(FieldRole.DAY_OF_MONTH)
        assert field.roll_parent_cycle(datetime(2024, 12, 15, 8, 0)) == datetime(2025, 1, 1)

    def test_month_advance_and_roll(self):
        """Test month advance resets the day."""
        field = Schedule("0 0 * 6 *").field(FieldRole.MONTH)
        assert field.test_or_advance(datetime(2024, 3, 15, 8)) == (True, datetime(2024, 6, 1))
        assert field.roll_parent_cycle(datetime(2024, 7, 15, 8)) == datetime(2025, 1, 1)

    def test_day_of_week_within_month(self):
        """Test advancing to next Monday inside the month."""
        field = Schedule("0 0 * * MON").field(FieldRole.DAY_OF_WEEK)
        ok, cursor = field.test_or_advance(datetime(2024, 1, 16, 10, 0))  # Tuesday
        assert ok
        assert cursor == datetime(2024, 1, 22)

    def test_day_of_week_crossing_month(self):
        """Test crossing a month boundary fails but keeps the moved cursor."""
        field = Schedule("0 0 * * MON").field(FieldRole.DAY_OF_WEEK)
        ok, cursor = field.test_or_advance(datetime(2024, 1, 30, 10, 0))  # Tuesday
        assert not ok
        assert cursor == datetime(2024, 2, 5)

    def test_day_of_week_numbering(self):
        """Test Sunday numbering in both dialects."""
        sunday = datetime(2024, 1, 14)
        assert Schedule().field(FieldRole.DAY_OF_WEEK).current_value(sunday) == 0
        assert Schedule(dialect="quartz").field(FieldRole.DAY_OF_WEEK).current_value(sunday) == 1

    def test_year_advance(self):
        """Test advancing to a future year."""
        field = Schedule("0 0 * * * 2030").field(FieldRole.YEAR)
        assert field.test_or_advance(datetime(2024, 5, 5, 5, 5)) == (True, datetime(2030, 1, 1))

    def test_year_passed(self):
        """Test a past year fails."""
        field = Schedule("0 0 * * * 2015").field(FieldRole.YEAR)
        start = datetime(2020, 1, 1)
        assert field.test_or_advance(start) == (False, start)


# =============================================================================
# Matching Tests
# =============================================================================


class TestScheduleMatching:
    """Tests for Schedule.matches."""

    def test_match_exact_time(self):
        """Test matching exact time."""
        schedule = Schedule("30 9 15 1 *")
        assert schedule.matches(datetime(2024, 1, 15, 9, 30))
        assert not schedule.matches(datetime(2024, 1, 15, 9, 31))

    def test_match_wildcard(self):
        """Test every minute matches."""
        assert Schedule("* * * * *").matches(datetime(2024, 7, 4, 13, 37))

    def test_match_step(self):
        """Test matching step values."""
        schedule = Schedule("*/15 * * * *")
        assert schedule.matches(datetime(2024, 1, 15, 9, 45))
        assert not schedule.matches(datetime(2024, 1, 15, 9, 50))

    def test_match_weekday(self):
        """Test matching weekdays."""
        schedule = Schedule("0 9 * * MON-FRI")
        assert schedule.matches(datetime(2024, 1, 15, 9, 0))  # Monday
        assert not schedule.matches(datetime(2024, 1, 13, 9, 0))  # Saturday

    def test_match_year(self):
        """Test matching the year column."""
        schedule = Schedule("0 0 1 1 * 2030")
        assert schedule.matches(datetime(2030, 1, 1))
        assert not schedule.matches(datetime(2031, 1, 1))


# =============================================================================
# Next Run Tests
# =============================================================================


class TestScheduleNext:
    """Tests for next-trigger calculation."""

    def test_next_simple(self):
        """Test next run later the same day."""
        schedule = Schedule("0 9 * * *")
        assert schedule.next_valid(datetime(2024, 1, 15, 8, 0)) == datetime(2024, 1, 15, 9, 0)

    def test_next_is_inclusive(self):
        """Test a matching reference is returned as is."""
        schedule = Schedule("0 9 * * *")
        assert schedule.next_valid(datetime(2024, 1, 15, 9, 0)) == datetime(2024, 1, 15, 9, 0)

    def test_next_same_hour(self):
        """Test next run within same hour."""
        schedule = Schedule("30 * * * *")
        assert schedule.next_valid(datetime(2024, 1, 15, 9, 0)) == datetime(2024, 1, 15, 9, 30)

    def test_next_crosses_day(self):
        """Test next run crossing day boundary."""
        schedule = Schedule("0 9 * * *")
        assert schedule.next_valid(datetime(2024, 1, 15, 10, 0)) == datetime(2024, 1, 16, 9, 0)

    def test_next_crosses_month(self):
        """Test next run crossing month boundary."""
        schedule = Schedule("0 9 1 * *")
        assert schedule.next_valid(datetime(2024, 1, 15, 10, 0)) == datetime(2024, 2, 1, 9, 0)

    def test_next_crosses_year(self):
        """Test next run crossing year boundary."""
        schedule = Schedule("0 0 1 1 *")
        assert schedule.next_valid(datetime(2024, 6, 15, 10, 0)) == datetime(2025, 1, 1, 0, 0)

    def test_next_specific_weekday(self):
        """Test next run on specific weekday."""
        schedule = Schedule("0 9 * * MON")
        assert schedule.next_valid(datetime(2024, 1, 16, 10, 0)) == datetime(2024, 1, 22, 9, 0)

    def test_next_defaults_to_now(self):
        """Test omitted reference uses the current time."""
        before = datetime.now().replace(second=0, microsecond=0)
        result = Schedule("* * * * *").next_valid()
        assert result is not None
        assert result >= before

    def test_next_n(self):
        """Test getting next n runs."""
        schedule = Schedule("0 * * * *")
        runs = schedule.next_n(5, datetime(2024, 1, 15, 9, 30))
        assert len(runs) == 5
        assert runs[0] == datetime(2024, 1, 15, 10, 0)
        assert runs[1] == datetime(2024, 1, 15, 11, 0)
        assert runs[4] == datetime(2024, 1, 15, 14, 0)

    def test_next_n_stops_when_exhausted(self):
        """Test next_n returns fewer results for a finite schedule."""
        schedule = Schedule("0 0 1 1 * 2030")
        assert schedule.next_n(3, datetime(2024, 1, 1)) == [datetime(2030, 1, 1)]


class TestScheduleIterator:
    """Tests for ScheduleIterator."""

    def test_iterator_basic(self):
        """Test basic iterator functionality."""
        schedule = Schedule("0 * * * *")
        results = list(schedule.iter(datetime(2024, 1, 15, 9, 30), limit=3))
        assert results == [
            datetime(2024, 1, 15, 10, 0),
            datetime(2024, 1, 15, 11, 0),
            datetime(2024, 1, 15, 12, 0),
        ]

    def test_iterator_no_limit(self):
        """Test iterator without limit (manual break)."""
        iterator = Schedule("0 0 1 * *").iter(datetime(2024, 1, 1))
        count = 0
        for _ in iterator:
            count += 1
            if count >= 5:
                break
        assert count == 5

    def test_iterator_with_limit(self):
        """Test iterator respects limit."""
        iterator = ScheduleIterator(Schedule("* * * * *"), datetime(2024, 1, 1), limit=10)
        results = list(iterator)
        assert len(results) == 10
        assert results[-1] == datetime(2024, 1, 1, 0, 9)


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Tests for validation helpers."""

    def test_valid_expression(self):
        """Test a valid expression has no errors."""
        assert validate_expression("0 9 * * MON-FRI") == []
        assert is_valid_expression("@hourly")

    def test_invalid_expression(self):
        """Test errors are reported as strings."""
        errors = validate_expression("0 9 * *")
        assert len(errors) == 1
        assert "Invalid number of fields" in errors[0]
        assert not is_valid_expression("0 ninety * * *")

    def test_quartz_dialect(self):
        """Test validation under QUARTZ."""
        assert is_valid_expression("0 9 ? * MON-FRI", Dialect.QUARTZ)


# =============================================================================
# Preset Tests
# =============================================================================


class TestPresets:
    """Tests for predefined schedules."""

    def test_all_presets_parse(self):
        """Test every preset builds a schedule."""
        for name in list_presets():
            assert isinstance(get_preset(name), Schedule)

    def test_get_preset_returns_fresh_schedule(self):
        """Test edits to one preset schedule do not leak."""
        first = get_preset("daily")
        first.add_child(first.field(FieldRole.HOUR).id, "12")
        assert get_preset("daily").to_cron() == "0 0 * * * *"

    def test_get_preset_case_insensitive(self):
        """Test case-insensitive lookup and misses."""
        assert get_preset("HOURLY").to_cron() == "0 * * * * *"
        assert get_preset("fortnightly") is None

    def test_weekday_presets_in_both_dialects(self):
        """Test named weekdays read the same under QUARTZ."""
        unix = get_preset("weekdays_9am")
        quartz = get_preset("weekdays_9am", Dialect.QUARTZ)
        after = datetime(2024, 1, 13, 12, 0)  # Saturday
        assert unix.next_valid(after) == quartz.next_valid(after) == datetime(2024, 1, 15, 9, 0)

    def test_preset_registry(self):
        """Test registry contents."""
        assert PRESETS["weekly"] == "0 0 * * SUN *"
        assert "quarterly" in PRESETS
