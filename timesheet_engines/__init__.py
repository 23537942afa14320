"""
Module: timesheet_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    kernel services and ``timesheet_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import timesheet_kernel.domain, timesheet_kernel.exceptions and
    timesheet_kernel.logging_config only.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic for hours and money; floats are converted
      through ``str`` at the normalisation boundary.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` and emit
    TIMESHEET_ENGINE_TRACE records.

Usage:
    from timesheet_engines import generate_date_range, distribute_weekly_hours
    from timesheet_engines.cost_reconciliation import reconcile_member
"""

from timesheet_engines.aggregation import (
    ActualHours,
    aggregate_entries,
    normalize_date,
    normalize_hours,
)
from timesheet_engines.calendar import (
    count_project_weeks,
    format_dates,
    generate_date_range,
    is_weekday,
    week_date_range,
    week_number,
)
from timesheet_engines.cost_reconciliation import (
    BudgetStatus,
    MemberReconciliation,
    ReconciliationTotals,
    classify_budget_status,
    compute_totals,
    difference_percentage,
    reconcile_member,
)
from timesheet_engines.daily_cap import find_daily_cap_violations
from timesheet_engines.distribution import PlannedHours, distribute_weekly_hours
from timesheet_engines.tracer import traced_engine

__all__ = [
    "ActualHours",
    "BudgetStatus",
    "MemberReconciliation",
    "PlannedHours",
    "ReconciliationTotals",
    "aggregate_entries",
    "classify_budget_status",
    "compute_totals",
    "count_project_weeks",
    "difference_percentage",
    "distribute_weekly_hours",
    "find_daily_cap_violations",
    "format_dates",
    "generate_date_range",
    "is_weekday",
    "normalize_date",
    "normalize_hours",
    "reconcile_member",
    "traced_engine",
    "week_date_range",
    "week_number",
]
