"""
timesheet_services -- Package init and public API.

Responsibility:
    Read orchestration that composes the pure engines (timesheet_engines/)
    with kernel selectors.

Architecture position:
    Services -- outermost layer of the core.

        timesheet_services/ -> timesheet_engines/  (allowed)
        timesheet_services/ -> timesheet_kernel/   (allowed)
        timesheet_engines/  -> timesheet_services/ (FORBIDDEN)
        timesheet_kernel/   -> timesheet_services/ (FORBIDDEN)
"""

from timesheet_services.reconciliation_service import (
    ProjectReconciliation,
    ReconciliationService,
    SubmissionStatus,
    submission_status,
)

__all__ = [
    "ProjectReconciliation",
    "ReconciliationService",
    "SubmissionStatus",
    "submission_status",
]
