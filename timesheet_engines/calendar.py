"""
Project Calendar Engine (``timesheet_engines.calendar``).

Responsibility
--------------
Pure date arithmetic shared by every grid the reconciliation core builds:

* the inclusive, day-granular date range of a project,
* project-week indexing (week 1 = the first seven days from project start),
* weekday classification,
* week counting and the date bounds of a single project week.

Architecture position
---------------------
**Engines layer** -- ZERO I/O, ZERO clock reads.  Works on ``datetime.date``
only, so no time-of-day or timezone component can shift a day boundary.

Invariants enforced
-------------------
* ``len(generate_date_range(s, e)) == (e - s).days + 1``.
* The range is contiguous and strictly ascending.

Failure modes
-------------
* ``InvalidRangeError`` when start > end.
* ``InvalidWeekNumberError`` for a week outside ``1..count_project_weeks``.
* ``ValueError`` for a day before the project start (programming error).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from timesheet_engines.tracer import traced_engine
from timesheet_kernel.exceptions import InvalidRangeError, InvalidWeekNumberError

DAYS_PER_WEEK = 7

_ONE_DAY = timedelta(days=1)


@traced_engine("calendar", "1.0", fingerprint_fields=("start", "end"))
def generate_date_range(start: date, end: date) -> tuple[date, ...]:
    """Every calendar date from ``start`` to ``end`` inclusive."""
    if start > end:
        raise InvalidRangeError(start, end)
    days = (end - start).days + 1
    return tuple(start + timedelta(days=offset) for offset in range(days))


def format_dates(dates: Iterable[date]) -> list[str]:
    """Render dates as ``YYYY-MM-DD`` keys."""
    return [d.isoformat() for d in dates]


def week_number(day: date, project_start: date) -> int:
    """1-based project week containing ``day``."""
    if day < project_start:
        raise ValueError(f"{day} precedes project start {project_start}")
    return (day - project_start).days // DAYS_PER_WEEK + 1


def is_weekday(day: date) -> bool:
    """Monday through Friday."""
    return day.isoweekday() <= 5


def count_project_weeks(start: date, end: date) -> int:
    """Number of project weeks spanned by ``start..end`` (a partial week counts)."""
    if start > end:
        raise InvalidRangeError(start, end)
    days = (end - start).days + 1
    return -(-days // DAYS_PER_WEEK)


def week_date_range(project_start: date, project_end: date, week: int) -> tuple[date, date]:
    """First and last project day of ``week``; the last week is clipped at ``project_end``."""
    total_weeks = count_project_weeks(project_start, project_end)
    if week < 1 or week > total_weeks:
        raise InvalidWeekNumberError(week, total_weeks)
    first = project_start + timedelta(days=(week - 1) * DAYS_PER_WEEK)
    last = min(first + timedelta(days=DAYS_PER_WEEK) - _ONE_DAY, project_end)
    return first, last
