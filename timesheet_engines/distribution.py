"""
Weekly Hours Distribution Engine (``timesheet_engines.distribution``).

Responsibility
--------------
Spread a member's weekly planned hours evenly across the weekdays of each
project week, producing one planned value per calendar date of the range.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.

Invariants enforced
-------------------
* Weekends and weeks with no (or zero) planned hours get 0.
* Conservation: for every week that has at least one weekday inside the
  range, the per-day values sum exactly to the week's planned hours.  The
  last weekday of the week absorbs the rounding remainder.
* ``weekly_hours=None`` means "no plan" and yields ``has_plan=False``.

Failure modes
-------------
* Planned hours for a week with no weekday inside the range cannot be
  placed; they are dropped and logged at WARNING.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_DOWN, Decimal

from timesheet_engines.calendar import is_weekday, week_number
from timesheet_engines.tracer import traced_engine
from timesheet_kernel.logging_config import get_logger

logger = get_logger("engines.distribution")

ZERO = Decimal("0")

# Per-day planned hours are carried to six decimal places.
HOURS_QUANTUM = Decimal("0.000001")


@dataclass(frozen=True)
class PlannedHours:
    """Planned hours per date for one member."""
    day_hours: dict[date, Decimal] = field(default_factory=dict)
    total_hours: Decimal = ZERO
    has_plan: bool = False
    unplaced_weeks: tuple[int, ...] = ()


NO_PLAN = PlannedHours()


@traced_engine(
    "distribution", "1.0",
    fingerprint_fields=("project_start", "weekly_hours"),
)
def distribute_weekly_hours(
    date_range: Sequence[date],
    project_start: date,
    weekly_hours: Mapping[int, Decimal] | None,
) -> PlannedHours:
    """Distribute ``{week_number: hours}`` over the weekdays of ``date_range``.

    Args:
        date_range: Ascending project dates (see ``generate_date_range``).
        project_start: Day 1 of week 1.
        weekly_hours: Planned hours keyed by 1-based week number, or None
            when the member has no plan.

    Returns:
        PlannedHours with an entry for every date of ``date_range``.
    """
    if weekly_hours is None:
        return NO_PLAN

    # Pass 1: weekdays of each week that fall inside the range.
    weekdays_by_week: dict[int, list[date]] = defaultdict(list)
    for day in date_range:
        if is_weekday(day):
            weekdays_by_week[week_number(day, project_start)].append(day)

    day_hours = {day: ZERO for day in date_range}
    unplaced: list[int] = []

    # Pass 2: even share per weekday, rounded down so the remainder on the
    # last weekday is never negative.
    for week, hours in sorted(weekly_hours.items()):
        hours = Decimal(hours)
        if hours <= ZERO:
            continue
        days = weekdays_by_week.get(week)
        if not days:
            unplaced.append(week)
            continue
        share = (hours / max(len(days), 1)).quantize(HOURS_QUANTUM, rounding=ROUND_DOWN)
        for day in days[:-1]:
            day_hours[day] = share
        day_hours[days[-1]] = hours - share * (len(days) - 1)

    if unplaced:
        logger.warning(
            "planned_hours_unplaced",
            extra={"weeks": unplaced, "project_start": project_start},
        )

    return PlannedHours(
        day_hours=day_hours,
        total_hours=sum(day_hours.values(), ZERO),
        has_plan=True,
        unplaced_weeks=tuple(unplaced),
    )
