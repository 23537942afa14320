"""
Timesheet lifecycle -- status enum and the transition table.

Responsibility:
    Defines the only legal status changes of a timesheet:

        DRAFT --submit--> SUBMITTED --approve--> APPROVED

    There is no path back from APPROVED, and SUBMITTED is reachable only
    from DRAFT.  Services consult ``TIMESHEET_TRANSITIONS`` before
    persisting any status change.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.
"""

from __future__ import annotations

from enum import Enum


class TimesheetStatus(str, Enum):
    """Timesheet lifecycle states."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"


TIMESHEET_TRANSITIONS: dict[TimesheetStatus, frozenset[TimesheetStatus]] = {
    TimesheetStatus.DRAFT: frozenset({TimesheetStatus.SUBMITTED}),
    TimesheetStatus.SUBMITTED: frozenset({TimesheetStatus.APPROVED}),
    TimesheetStatus.APPROVED: frozenset(),
}

# Statuses that count toward "every member has submitted".
COMPLETED_STATUSES: frozenset[TimesheetStatus] = frozenset({
    TimesheetStatus.SUBMITTED,
    TimesheetStatus.APPROVED,
})

# Entries may only be rewritten while the timesheet is owned by its user.
EDITABLE_STATUSES: frozenset[TimesheetStatus] = frozenset({TimesheetStatus.DRAFT})


def can_transition(current: TimesheetStatus, target: TimesheetStatus) -> bool:
    """Return True if ``current -> target`` is a legal transition."""
    return target in TIMESHEET_TRANSITIONS.get(current, frozenset())
