"""
Time Entry Aggregation Engine (``timesheet_engines.aggregation``).

Responsibility
--------------
Turn a member's stored (or submitted) entries into one actual-hours value
per date of the project range, plus the total.  Also owns the lenient
normalisation of raw cell values coming from clients.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.

Invariants enforced
-------------------
* Every date of the range appears in the result, defaulting to 0.
* Entries outside the range are dropped (and logged), never counted.
* Hours are ``Decimal``; floats are converted through ``str``.

Failure modes
-------------
* Unparseable or NaN hours normalise to 0 with a WARNING log.
* ``normalize_date`` raises ``InvalidEntryDateError`` for unparseable dates.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from timesheet_engines.tracer import traced_engine
from timesheet_kernel.exceptions import InvalidEntryDateError
from timesheet_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")

ZERO = Decimal("0")


@dataclass(frozen=True)
class ActualHours:
    """Recorded hours per date for one member."""
    day_hours: dict[date, Decimal] = field(default_factory=dict)
    total_hours: Decimal = ZERO
    dropped: tuple[date, ...] = ()


def normalize_hours(value: Any) -> Decimal:
    """Coerce a raw cell value to ``Decimal`` hours.

    None and blank strings are 0.  Anything that does not parse as a finite
    number is also 0, with a warning.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        logger.warning("hours_unparseable", extra={"raw_value": repr(value)})
        return ZERO
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            logger.warning("hours_unparseable", extra={"raw_value": value})
            return ZERO
    else:
        logger.warning("hours_unparseable", extra={"raw_value": repr(value)})
        return ZERO

    if not result.is_finite():
        logger.warning("hours_unparseable", extra={"raw_value": str(value)})
        return ZERO
    return result


def normalize_date(value: Any) -> date:
    """Coerce ``date``, ``datetime`` or an ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # "2024-01-01" or "2024-01-01T09:30:00Z": the calendar day is the prefix.
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise InvalidEntryDateError(value) from None
    raise InvalidEntryDateError(value)


@traced_engine("aggregation", "1.0")
def aggregate_entries(entries: Iterable[Any], date_range: Sequence[date]) -> ActualHours:
    """Map entries onto ``date_range``.

    Args:
        entries: Objects with ``entry_date`` and ``hours`` attributes
            (``TimesheetEntry`` or ``EntryInput``).  A later entry for the
            same date overwrites an earlier one.
        date_range: Ascending project dates.

    Returns:
        ActualHours with an entry for every date of ``date_range``.
    """
    day_hours = {day: ZERO for day in date_range}
    dropped: list[date] = []

    for entry in entries:
        day = normalize_date(entry.entry_date)
        if day not in day_hours:
            dropped.append(day)
            continue
        day_hours[day] = normalize_hours(entry.hours)

    if dropped:
        logger.warning(
            "entries_outside_range_dropped",
            extra={"dropped_dates": dropped, "count": len(dropped)},
        )

    return ActualHours(
        day_hours=day_hours,
        total_hours=sum(day_hours.values(), ZERO),
        dropped=tuple(dropped),
    )
