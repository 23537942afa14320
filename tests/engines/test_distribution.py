"""
Tests for the weekly hours distribution engine.

Covers:
- Even split over the weekdays of a week
- Weekends and unplanned weeks stay at zero
- Partial weeks at the project edges
- Exact conservation of planned hours (property test)
- The "no plan" result
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from timesheet_engines.calendar import count_project_weeks, generate_date_range, is_weekday
from timesheet_engines.distribution import distribute_weekly_hours

MONDAY = date(2024, 1, 1)


class TestEvenDistribution:

    def test_forty_hours_over_a_full_week(self):
        """Mon-Fri project week with 40h planned: 8h per weekday, weekend 0."""
        dates = generate_date_range(MONDAY, MONDAY + timedelta(days=6))
        result = distribute_weekly_hours(dates, MONDAY, {1: Decimal("40")})

        assert result.has_plan is True
        for day in dates[:5]:
            assert result.day_hours[day] == Decimal("8")
        assert result.day_hours[date(2024, 1, 6)] == Decimal("0")
        assert result.day_hours[date(2024, 1, 7)] == Decimal("0")
        assert result.total_hours == Decimal("40")

    def test_every_date_has_a_value(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 20))
        result = distribute_weekly_hours(dates, MONDAY, {2: Decimal("10")})
        assert set(result.day_hours) == set(dates)

    def test_unplanned_week_is_zero(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 14))
        result = distribute_weekly_hours(dates, MONDAY, {2: Decimal("20")})

        assert all(result.day_hours[d] == Decimal("0") for d in dates[:7])
        assert result.day_hours[date(2024, 1, 8)] == Decimal("4")
        assert result.total_hours == Decimal("20")

    def test_zero_hours_week_is_zero(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 7))
        result = distribute_weekly_hours(dates, MONDAY, {1: Decimal("0")})
        assert result.total_hours == Decimal("0")
        assert result.has_plan is True


class TestPartialWeeks:

    def test_project_starting_midweek(self):
        """Week 1 of a Wednesday-start project has Wed, Thu, Fri, Mon, Tue."""
        start = date(2024, 1, 3)
        dates = generate_date_range(start, date(2024, 1, 9))
        result = distribute_weekly_hours(dates, start, {1: Decimal("25")})

        assert result.day_hours[date(2024, 1, 3)] == Decimal("5")
        assert result.day_hours[date(2024, 1, 8)] == Decimal("5")
        assert result.day_hours[date(2024, 1, 6)] == Decimal("0")

    def test_short_last_week_gets_the_full_week_hours(self):
        """A two-weekday tail week spreads its hours over the two days."""
        dates = generate_date_range(MONDAY, date(2024, 1, 9))
        result = distribute_weekly_hours(dates, MONDAY, {2: Decimal("10")})

        assert result.day_hours[date(2024, 1, 8)] == Decimal("5")
        assert result.day_hours[date(2024, 1, 9)] == Decimal("5")

    def test_weekend_only_week_cannot_be_placed(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 6))
        # Week 1 is Mon..Sat here; a plan for week 2 has no days at all.
        result = distribute_weekly_hours(dates, MONDAY, {2: Decimal("8")})

        assert result.unplaced_weeks == (2,)
        assert result.total_hours == Decimal("0")


class TestRemainder:

    def test_split_sums_to_week_hours(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 7))
        result = distribute_weekly_hours(dates, MONDAY, {1: Decimal("10")})

        weekday_values = [result.day_hours[d] for d in dates[:5]]
        assert sum(weekday_values) == Decimal("10")
        assert weekday_values[0] == Decimal("2")

    def test_last_weekday_absorbs_remainder(self):
        start = date(2024, 1, 3)  # Wednesday
        dates = generate_date_range(start, date(2024, 1, 5))
        result = distribute_weekly_hours(dates, start, {1: Decimal("10")})

        assert result.day_hours[date(2024, 1, 3)] == Decimal("3.333333")
        assert result.day_hours[date(2024, 1, 4)] == Decimal("3.333333")
        assert result.day_hours[date(2024, 1, 5)] == Decimal("3.333334")
        assert result.total_hours == Decimal("10")

    def test_tiny_week_never_goes_negative(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 7))
        result = distribute_weekly_hours(dates, MONDAY, {1: Decimal("0.000003")})

        assert [result.day_hours[d] for d in dates[:5]] == [
            Decimal("0"), Decimal("0"), Decimal("0"), Decimal("0"), Decimal("0.000003"),
        ]

    def test_share_rounds_down(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 3))
        result = distribute_weekly_hours(dates, MONDAY, {1: Decimal("20")})

        assert result.day_hours[date(2024, 1, 1)] == Decimal("6.666666")
        assert result.day_hours[date(2024, 1, 3)] == Decimal("6.666668")

    @given(hours=st.decimals(min_value=0, max_value=1, places=6, allow_nan=False, allow_infinity=False))
    def test_no_day_is_negative(self, hours):
        dates = generate_date_range(MONDAY, date(2024, 1, 7))
        result = distribute_weekly_hours(dates, MONDAY, {1: hours})

        assert all(value >= 0 for value in result.day_hours.values())
        assert result.total_hours == hours

    @given(
        offset=st.integers(min_value=0, max_value=6),
        span=st.integers(min_value=0, max_value=60),
        data=st.data(),
    )
    def test_planned_total_is_conserved(self, offset, span, data):
        start = MONDAY + timedelta(days=offset)
        end = start + timedelta(days=span)
        dates = generate_date_range(start, end)
        weeks = count_project_weeks(start, end)
        plan = data.draw(
            st.dictionaries(
                st.integers(min_value=1, max_value=weeks),
                st.decimals(min_value=0, max_value=200, places=2, allow_nan=False, allow_infinity=False),
                max_size=weeks,
            )
        )

        result = distribute_weekly_hours(dates, start, plan)

        placeable = sum(
            (hours for week, hours in plan.items() if week not in result.unplaced_weeks),
            Decimal("0"),
        )
        assert sum(result.day_hours.values()) == placeable
        assert result.total_hours == placeable
        assert all(result.day_hours[d] == 0 for d in dates if not is_weekday(d))


class TestNoPlan:

    def test_none_means_no_plan(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 7))
        result = distribute_weekly_hours(dates, MONDAY, None)

        assert result.has_plan is False
        assert result.day_hours == {}
        assert result.total_hours == Decimal("0")

    def test_empty_plan_is_a_plan(self):
        dates = generate_date_range(MONDAY, date(2024, 1, 7))
        result = distribute_weekly_hours(dates, MONDAY, {})
        assert result.has_plan is True
        assert result.total_hours == Decimal("0")
