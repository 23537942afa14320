"""
Tests for the daily cap rule.

Covers:
- The cross-project total against the cap
- Accumulation of every violating date
- Property: nothing over the cap passes
"""

from datetime import date
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from timesheet_engines.daily_cap import find_daily_cap_violations

JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)


class TestDailyCap:

    def test_within_cap(self):
        assert find_daily_cap_violations({JAN_1: Decimal("12")}, {JAN_1: Decimal("10")}) == []

    def test_exactly_at_cap_is_allowed(self):
        assert find_daily_cap_violations({JAN_1: Decimal("14")}, {JAN_1: Decimal("10")}) == []
        assert find_daily_cap_violations({JAN_1: Decimal("24")}, {}) == []

    def test_other_project_pushes_over(self):
        """10h elsewhere + 15h here on 2024-01-01 = 25h."""
        violations = find_daily_cap_violations({JAN_1: Decimal("15")}, {JAN_1: Decimal("10")})

        assert len(violations) == 1
        assert violations[0].code == "DAILY_CAP_EXCEEDED"
        assert violations[0].entry_date == JAN_1
        assert violations[0].total == Decimal("25")

    def test_all_violations_reported_in_date_order(self):
        violations = find_daily_cap_violations(
            {JAN_2: Decimal("20"), JAN_1: Decimal("20")},
            {JAN_1: Decimal("5"), JAN_2: Decimal("8")},
        )
        assert [v.entry_date for v in violations] == [JAN_1, JAN_2]

    def test_custom_cap(self):
        violations = find_daily_cap_violations({JAN_1: Decimal("9")}, {}, cap=Decimal("8"))
        assert violations[0].cap == Decimal("8")

    @given(
        proposed=st.decimals(min_value=0, max_value=24, places=2),
        other=st.decimals(min_value=0, max_value=48, places=2),
    )
    def test_violation_iff_total_over_cap(self, proposed, other):
        violations = find_daily_cap_violations({JAN_1: proposed}, {JAN_1: other})
        assert bool(violations) == (proposed + other > Decimal("24"))
