"""
Typed Exception Hierarchy for the Timesheet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the HTTP layer, report renderers, tests) must react to a rejected
save or a blocked approval precisely.  Every error therefore:
  1. Has its own class (catch by type, not by message).
  2. Carries a ``code`` class attribute (machine-readable, API-safe).
  3. Stores its context as attributes (date, total, pending users, ...).

Example:
    try:
        service.save_draft(project_id, entries, identity)
    except TimesheetValidationError as e:
        for violation in e.violations:
            api_error(code=violation.code, message=str(violation))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TimesheetKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidRangeError
    |   +-- CellOutOfRangeError
    |   +-- InvalidEntryDateError
    |   +-- EntryDateOutOfRangeError
    |   +-- DuplicateEntryDateError
    |   +-- DailyCapExceededError
    |   +-- InvalidWeekNumberError
    |   +-- NegativeAmountError
    |   +-- TimesheetValidationError   (batch of the above)
    |
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |
    +-- ApprovalError
    |   +-- IncompleteSubmissionError
    |   +-- EmptyRosterError
    |   +-- ApprovalRaceDetectedError
    |
    +-- NotFoundError
    |   +-- ProjectNotFoundError
    |   +-- TimesheetNotFoundError
    |   +-- UserNotFoundError
    |
    +-- AccessError
    |   +-- AccessDeniedError
    |   +-- NotProjectMemberError
    |
    +-- MembershipError
    |   +-- DuplicateMemberError
    |
    +-- StorageError                   (infrastructure, not user-facing detail)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                        | When Raised
------------|-----------------------------|-----------------------------------------
Validation  | INVALID_RANGE               | start date after end date
            | CELL_OUT_OF_RANGE           | entry hours outside [0, 24]
            | INVALID_ENTRY_DATE          | entry date cannot be parsed
            | ENTRY_DATE_OUT_OF_RANGE     | entry date outside project range
            | DUPLICATE_ENTRY_DATE        | same date twice in one batch
            | DAILY_CAP_EXCEEDED          | user's hours on a date exceed the cap
            | INVALID_WEEK_NUMBER         | plan week outside the project weeks
            | NEGATIVE_AMOUNT             | negative planned hours, rate or quote
            | TIMESHEET_VALIDATION_FAILED | one or more of the above in a batch
------------|-----------------------------|-----------------------------------------
Lifecycle   | INVALID_TRANSITION          | status change from the wrong state
------------|-----------------------------|-----------------------------------------
Approval    | INCOMPLETE_SUBMISSION       | a roster member has not submitted
            | EMPTY_ROSTER                | project has no members
            | APPROVAL_RACE_DETECTED      | conditional update hit fewer rows
------------|-----------------------------|-----------------------------------------
Not found   | PROJECT_NOT_FOUND           | project id unknown
            | TIMESHEET_NOT_FOUND         | timesheet id unknown
            | USER_NOT_FOUND              | user id unknown
------------|-----------------------------|-----------------------------------------
Access      | ACCESS_DENIED               | caller outside the project's org / owner
            | NOT_PROJECT_MEMBER          | caller not on the project roster
------------|-----------------------------|-----------------------------------------
Membership  | DUPLICATE_MEMBER            | user already on the roster
------------|-----------------------------|-----------------------------------------
Storage     | STORAGE_ERROR               | database failure (logged, generic)

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Domain errors are descriptive and user-facing.  ``StorageError`` is the
   one infrastructure error: it wraps the original ``SQLAlchemyError``
   (available as ``__cause__``) and its message stays generic.

2. Batch validation never short-circuits.  ``TimesheetValidationError``
   collects every violation of a save so the caller can fix all cells in
   one round trip.

3. "Already approved" is NOT an exception.  Approving a fully approved
   project is a successful no-op reported through ``ApprovalResult``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal


class TimesheetKernelError(Exception):
    """
    Base exception for all timesheet kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "TIMESHEET_KERNEL_ERROR"


# Validation exceptions


class ValidationError(TimesheetKernelError):
    """Base exception for input validation errors."""

    code: str = "VALIDATION_ERROR"


class InvalidRangeError(ValidationError):
    """Start date is after end date."""

    code: str = "INVALID_RANGE"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Invalid date range: start {start_date} is after end {end_date}"
        )


class CellOutOfRangeError(ValidationError):
    """Hours for a single cell are outside the allowed bounds."""

    code: str = "CELL_OUT_OF_RANGE"

    def __init__(
        self,
        entry_date: date | None,
        hours: Decimal,
        max_hours: Decimal = Decimal("24"),
    ):
        self.entry_date = entry_date
        self.hours = hours
        self.max_hours = max_hours
        super().__init__(
            f"Hours for {entry_date} must be between 0 and {max_hours} (got {hours})"
        )


class InvalidEntryDateError(ValidationError):
    """An entry date could not be parsed as a calendar date."""

    code: str = "INVALID_ENTRY_DATE"

    def __init__(self, raw_value: object):
        self.raw_value = raw_value
        super().__init__(f"Cannot parse entry date: {raw_value!r}")


class EntryDateOutOfRangeError(ValidationError):
    """Entry date falls outside the project's date range."""

    code: str = "ENTRY_DATE_OUT_OF_RANGE"

    def __init__(self, entry_date: date, start_date: date, end_date: date):
        self.entry_date = entry_date
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Date {entry_date} is outside project date range "
            f"{start_date}..{end_date}"
        )


class DuplicateEntryDateError(ValidationError):
    """The same date appears more than once in a single entry batch."""

    code: str = "DUPLICATE_ENTRY_DATE"

    def __init__(self, entry_date: date):
        self.entry_date = entry_date
        super().__init__(f"Date {entry_date} appears more than once in the batch")


class DailyCapExceededError(ValidationError):
    """
    A user's total hours on one calendar date exceed the daily cap.

    The total spans every project the user records time against.  Not
    retriable until the user reduces hours.
    """

    code: str = "DAILY_CAP_EXCEEDED"

    def __init__(self, entry_date: date, total: Decimal, cap: Decimal = Decimal("24")):
        self.entry_date = entry_date
        self.total = total
        self.cap = cap
        super().__init__(
            f"Total hours for {entry_date} exceeds {cap} hours ({total:.2f} hours)"
        )


class InvalidWeekNumberError(ValidationError):
    """Planned week number is outside the project's week span."""

    code: str = "INVALID_WEEK_NUMBER"

    def __init__(self, week_number: int, total_weeks: int):
        self.week_number = week_number
        self.total_weeks = total_weeks
        super().__init__(
            f"Week {week_number} is outside the project's weeks 1..{total_weeks}"
        )


class NegativeAmountError(ValidationError):
    """A planned hour, rate or quote value is negative."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field_name: str, value: Decimal):
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name} must not be negative (got {value})")


class TimesheetValidationError(ValidationError):
    """
    One or more entries of a batch failed validation.

    ``violations`` holds every individual error found in the batch, in
    batch order, so callers can report all of them at once.
    """

    code: str = "TIMESHEET_VALIDATION_FAILED"

    def __init__(self, violations: Sequence[ValidationError]):
        self.violations = tuple(violations)
        super().__init__(
            f"Validation failed with {len(self.violations)} error(s): "
            + "; ".join(str(v) for v in self.violations)
        )

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(v.code for v in self.violations)


# Lifecycle exceptions


class LifecycleError(TimesheetKernelError):
    """Base exception for timesheet state machine errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """Requested status change is not allowed from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, timesheet_id: str | None, from_status: str, to_status: str):
        self.timesheet_id = timesheet_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move timesheet {timesheet_id} from {from_status} to {to_status}"
        )


# Approval exceptions


class ApprovalError(TimesheetKernelError):
    """Base exception for project approval errors."""

    code: str = "APPROVAL_ERROR"


class IncompleteSubmissionError(ApprovalError):
    """
    Not every project member has submitted a timesheet.

    Approval is all-or-nothing; the whole operation is rejected and the
    pending roster is reported.
    """

    code: str = "INCOMPLETE_SUBMISSION"

    def __init__(
        self,
        project_id: str,
        total_members: int,
        submitted_count: int,
        approved_count: int,
        pending_users: Sequence[str],
    ):
        self.project_id = project_id
        self.total_members = total_members
        self.submitted_count = submitted_count
        self.approved_count = approved_count
        self.pending_users = tuple(pending_users)
        self.pending_count = len(self.pending_users)
        super().__init__(
            "Cannot approve: Not all project members have submitted their "
            f"timesheets. {self.pending_count} of {total_members} member(s) "
            "still need to submit."
        )


class EmptyRosterError(ApprovalError):
    """Project has no members, so there is nothing to approve."""

    code: str = "EMPTY_ROSTER"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"No members assigned to project {project_id}")


class ApprovalRaceDetectedError(ApprovalError):
    """
    The conditional SUBMITTED -> APPROVED update touched fewer rows than
    expected: another writer changed the timesheets first.
    """

    code: str = "APPROVAL_RACE_DETECTED"

    def __init__(self, project_id: str, expected_count: int, updated_count: int):
        self.project_id = project_id
        self.expected_count = expected_count
        self.updated_count = updated_count
        super().__init__(
            f"Approval of project {project_id} updated {updated_count} of "
            f"{expected_count} timesheet(s); a concurrent change was detected"
        )


# Not found exceptions


class NotFoundError(TimesheetKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class ProjectNotFoundError(NotFoundError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class TimesheetNotFoundError(NotFoundError):
    """Timesheet with given ID was not found."""

    code: str = "TIMESHEET_NOT_FOUND"

    def __init__(self, timesheet_id: str):
        self.timesheet_id = timesheet_id
        super().__init__(f"Timesheet not found: {timesheet_id}")


class UserNotFoundError(NotFoundError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


# Access exceptions


class AccessError(TimesheetKernelError):
    """Base exception for identity/scope violations."""

    code: str = "ACCESS_ERROR"


class AccessDeniedError(AccessError):
    """Caller may not act on this resource."""

    code: str = "ACCESS_DENIED"

    def __init__(self, user_id: str, resource: str, reason: str = "Insufficient permissions"):
        self.user_id = user_id
        self.resource = resource
        self.reason = reason
        super().__init__(f"{reason}: user {user_id} on {resource}")


class NotProjectMemberError(AccessError):
    """Caller is not assigned to the project."""

    code: str = "NOT_PROJECT_MEMBER"

    def __init__(self, user_id: str, project_id: str):
        self.user_id = user_id
        self.project_id = project_id
        super().__init__(f"User {user_id} is not assigned to project {project_id}")


# Membership exceptions


class MembershipError(TimesheetKernelError):
    """Base exception for roster maintenance errors."""

    code: str = "MEMBERSHIP_ERROR"


class DuplicateMemberError(MembershipError):
    """User is already a member of the project."""

    code: str = "DUPLICATE_MEMBER"

    def __init__(self, user_id: str, project_id: str):
        self.user_id = user_id
        self.project_id = project_id
        super().__init__(f"User {user_id} is already a member of project {project_id}")


# Infrastructure


class StorageError(TimesheetKernelError):
    """
    The storage layer failed.

    Distinct from the domain taxonomy: the original exception is chained
    as ``__cause__`` and logged; the message stays generic.
    """

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage failure during {operation}")
