"""
Daily Cap Rule (``timesheet_engines.daily_cap``).

Responsibility
--------------
The cross-project daily limit: for one user and one calendar date, the hours
already recorded on every *other* timesheet plus the hours being saved must
not exceed the cap (24 by default).

Architecture position
---------------------
**Engines layer** -- pure.  The caller reads ``other_hours`` from storage
inside its write transaction and passes it in.

Invariants enforced
-------------------
* Every date of the batch is evaluated; violations are accumulated, not
  short-circuited.
* Result is ordered by date.

Failure modes
-------------
* Returns ``DailyCapExceededError`` instances; raising is the caller's job.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from timesheet_engines.tracer import traced_engine
from timesheet_kernel.exceptions import DailyCapExceededError

DEFAULT_DAILY_CAP = Decimal("24")


@traced_engine("daily_cap", "1.0", fingerprint_fields=("cap",))
def find_daily_cap_violations(
    proposed_hours: Mapping[date, Decimal],
    other_hours: Mapping[date, Decimal],
    cap: Decimal = DEFAULT_DAILY_CAP,
) -> list[DailyCapExceededError]:
    """Dates where other timesheets + proposed hours exceed ``cap``."""
    violations = []
    for day in sorted(proposed_hours):
        total = other_hours.get(day, Decimal("0")) + proposed_hours[day]
        if total > cap:
            violations.append(DailyCapExceededError(day, total, cap))
    return violations
