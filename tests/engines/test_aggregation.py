"""
Tests for the time entry aggregation engine.

Covers:
- Mapping entries onto the project date grid
- Dropping entries outside the range
- Lenient hour and date normalisation
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from timesheet_engines.aggregation import aggregate_entries, normalize_date, normalize_hours
from timesheet_engines.calendar import generate_date_range
from timesheet_kernel.domain.dtos import EntryInput, TimesheetEntry
from timesheet_kernel.exceptions import InvalidEntryDateError

DATES = generate_date_range(date(2024, 1, 1), date(2024, 1, 7))


class TestAggregateEntries:

    def test_grid_defaults_to_zero(self):
        result = aggregate_entries([], DATES)
        assert result.day_hours == {d: Decimal("0") for d in DATES}
        assert result.total_hours == Decimal("0")

    def test_entries_fill_their_dates(self):
        entries = [
            TimesheetEntry(date(2024, 1, 1), Decimal("8")),
            TimesheetEntry(date(2024, 1, 3), Decimal("6.5")),
        ]
        result = aggregate_entries(entries, DATES)

        assert result.day_hours[date(2024, 1, 1)] == Decimal("8")
        assert result.day_hours[date(2024, 1, 2)] == Decimal("0")
        assert result.day_hours[date(2024, 1, 3)] == Decimal("6.5")
        assert result.total_hours == Decimal("14.5")

    def test_out_of_range_entries_dropped(self, captured_logs):
        entries = [
            TimesheetEntry(date(2023, 12, 31), Decimal("4")),
            TimesheetEntry(date(2024, 1, 2), Decimal("3")),
        ]
        result = aggregate_entries(entries, DATES)

        assert result.dropped == (date(2023, 12, 31),)
        assert result.total_hours == Decimal("3")
        assert any(r["message"] == "entries_outside_range_dropped" for r in captured_logs())

    def test_raw_inputs_are_normalised(self):
        entries = [
            EntryInput("2024-01-02", "7.25"),
            EntryInput(datetime(2024, 1, 4, 17, 30, tzinfo=timezone.utc), 3),
            EntryInput("2024-01-05T00:00:00Z", None),
        ]
        result = aggregate_entries(entries, DATES)

        assert result.day_hours[date(2024, 1, 2)] == Decimal("7.25")
        assert result.day_hours[date(2024, 1, 4)] == Decimal("3")
        assert result.day_hours[date(2024, 1, 5)] == Decimal("0")

    def test_emits_engine_trace(self, captured_logs):
        aggregate_entries([], DATES)
        traces = [r for r in captured_logs() if r["message"] == "TIMESHEET_ENGINE_TRACE"]
        assert traces and traces[0]["engine_name"] == "aggregation"


class TestNormalizeHours:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, Decimal("0")),
            ("", Decimal("0")),
            ("  ", Decimal("0")),
            ("8", Decimal("8")),
            (" 7.5 ", Decimal("7.5")),
            (4, Decimal("4")),
            (2.5, Decimal("2.5")),
            (0.1, Decimal("0.1")),
            (Decimal("3.75"), Decimal("3.75")),
        ],
    )
    def test_values(self, raw, expected):
        assert normalize_hours(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "NaN", float("nan"), Decimal("Infinity"), [1]])
    def test_unparseable_is_zero_with_warning(self, raw, captured_logs):
        assert normalize_hours(raw) == Decimal("0")
        assert any(r["message"] == "hours_unparseable" for r in captured_logs())


class TestNormalizeDate:

    def test_date_passthrough(self):
        assert normalize_date(date(2024, 1, 1)) == date(2024, 1, 1)

    def test_datetime_time_is_stripped(self):
        assert normalize_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)

    def test_iso_string_with_time(self):
        assert normalize_date("2024-01-01T23:59:59.000Z") == date(2024, 1, 1)

    @pytest.mark.parametrize("raw", ["01/02/2024", "", None, 20240101])
    def test_unparseable_raises(self, raw):
        with pytest.raises(InvalidEntryDateError) as exc_info:
            normalize_date(raw)
        assert exc_info.value.code == "INVALID_ENTRY_DATE"
