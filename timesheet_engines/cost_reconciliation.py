"""
Cost Reconciliation Engine (``timesheet_engines.cost_reconciliation``).

Responsibility
--------------
Build the planned-vs-actual row for one project member and the project
totals over all rows:

* actual hours per date and in total (aggregation engine),
* planned hours per date and in total (distribution engine),
* difference in hours and percent of plan,
* cost (actual hours x rate), planned cost, quote,
* a budget status derived from the percentage.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Composes ``aggregation`` and ``distribution``; storage access is the
reconciliation service's job.

Invariants enforced
-------------------
* No plan  -> planned_total_hours, difference_hours, difference_percentage,
  planned_amount and budget_status are all None.  Actual hours are still
  computed.
* difference_percentage is None unless planned_total_hours is non-zero.
* No costing row  -> rate 0, amount 0, quote None.
* Project totals are plain sums of the rows.

Failure modes
-------------
* None.  Entries outside the range are dropped by the aggregation engine.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from timesheet_engines.aggregation import aggregate_entries
from timesheet_engines.distribution import distribute_weekly_hours
from timesheet_engines.tracer import traced_engine
from timesheet_kernel.domain.dtos import Costing, ProjectMember, Timesheet
from timesheet_kernel.domain.lifecycle import TimesheetStatus

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT_QUANTUM = Decimal("0.01")

DEFAULT_OVER_THRESHOLD = Decimal("10")
DEFAULT_UNDER_THRESHOLD = Decimal("-10")


class BudgetStatus(str, Enum):
    """Actual hours relative to plan."""

    OVER = "over"
    UNDER = "under"
    ON_TRACK = "on_track"


@dataclass(frozen=True)
class MemberReconciliation:
    """One reconciled roster row."""
    user_id: UUID
    email: str
    role: str
    timesheet_id: UUID | None
    status: TimesheetStatus | None
    submitted_at: datetime | None
    day_hours: dict[date, Decimal]
    total_hours: Decimal
    planned_day_hours: dict[date, Decimal] = field(default_factory=dict)
    planned_total_hours: Decimal | None = None
    difference_hours: Decimal | None = None
    difference_percentage: Decimal | None = None
    budget_status: BudgetStatus | None = None
    rate: Decimal = ZERO
    amount: Decimal = ZERO
    quote_amount: Decimal | None = None
    planned_amount: Decimal | None = None

    @property
    def name(self) -> str:
        return self.email.split("@")[0]

    @property
    def has_plan(self) -> bool:
        return self.planned_total_hours is not None


@dataclass(frozen=True)
class ReconciliationTotals:
    """Project-level sums over all rows."""
    total_hours: Decimal = ZERO
    planned_total_hours: Decimal | None = None
    difference_hours: Decimal | None = None
    amount: Decimal = ZERO
    quote_amount: Decimal | None = None
    planned_amount: Decimal | None = None


def difference_percentage(actual: Decimal, planned: Decimal | None) -> Decimal | None:
    """(actual - planned) / planned x 100, rounded to cents of a percent."""
    if planned is None or planned == ZERO:
        return None
    pct = (actual - planned) / planned * HUNDRED
    return pct.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def classify_budget_status(
    percentage: Decimal | None,
    over_threshold: Decimal = DEFAULT_OVER_THRESHOLD,
    under_threshold: Decimal = DEFAULT_UNDER_THRESHOLD,
) -> BudgetStatus | None:
    """Strictly above ``over_threshold`` is OVER, strictly below ``under_threshold`` is UNDER."""
    if percentage is None:
        return None
    if percentage > over_threshold:
        return BudgetStatus.OVER
    if percentage < under_threshold:
        return BudgetStatus.UNDER
    return BudgetStatus.ON_TRACK


@traced_engine("cost_reconciliation", "1.0", fingerprint_fields=("project_start",))
def reconcile_member(
    member: ProjectMember,
    timesheet: Timesheet | None,
    date_range: Sequence[date],
    project_start: date,
    weekly_hours: Mapping[int, Decimal] | None,
    costing: Costing | None,
    over_threshold: Decimal = DEFAULT_OVER_THRESHOLD,
    under_threshold: Decimal = DEFAULT_UNDER_THRESHOLD,
) -> MemberReconciliation:
    """Planned-vs-actual row for ``member``.

    Args:
        member: Roster row (carries e-mail and role).
        timesheet: The member's timesheet for the project, or None.
        date_range: Ascending project dates.
        project_start: Day 1 of week 1.
        weekly_hours: The member's plan, or None when there is none.
        costing: The member's costing row, or None.
        over_threshold: Percentage above which the row is OVER.
        under_threshold: Percentage below which the row is UNDER.
    """
    entries = timesheet.entries if timesheet is not None else ()
    actual = aggregate_entries(entries, date_range)
    planned = distribute_weekly_hours(date_range, project_start, weekly_hours)

    rate = costing.rate_per_hour if costing is not None else ZERO
    quote = costing.quote_amount if costing is not None else None

    if planned.has_plan:
        planned_total: Decimal | None = planned.total_hours
        difference: Decimal | None = actual.total_hours - planned.total_hours
        planned_amount: Decimal | None = planned.total_hours * rate
    else:
        planned_total = difference = planned_amount = None

    pct = difference_percentage(actual.total_hours, planned_total)

    return MemberReconciliation(
        user_id=member.user_id,
        email=member.email,
        role=member.role_name,
        timesheet_id=timesheet.id if timesheet is not None else None,
        status=timesheet.status if timesheet is not None else None,
        submitted_at=timesheet.submitted_at if timesheet is not None else None,
        day_hours=actual.day_hours,
        total_hours=actual.total_hours,
        planned_day_hours=planned.day_hours,
        planned_total_hours=planned_total,
        difference_hours=difference,
        difference_percentage=pct,
        budget_status=classify_budget_status(pct, over_threshold, under_threshold),
        rate=rate,
        amount=actual.total_hours * rate,
        quote_amount=quote,
        planned_amount=planned_amount,
    )


def _sum_optional(values: list[Decimal | None]) -> Decimal | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present, ZERO)


def compute_totals(rows: Sequence[MemberReconciliation]) -> ReconciliationTotals:
    """Sum the rows.  Optional columns are None only when no row has a value."""
    return ReconciliationTotals(
        total_hours=sum((r.total_hours for r in rows), ZERO),
        planned_total_hours=_sum_optional([r.planned_total_hours for r in rows]),
        difference_hours=_sum_optional([r.difference_hours for r in rows]),
        amount=sum((r.amount for r in rows), ZERO),
        quote_amount=_sum_optional([r.quote_amount for r in rows]),
        planned_amount=_sum_optional([r.planned_amount for r in rows]),
    )
