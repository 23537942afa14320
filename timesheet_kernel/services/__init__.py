"""Write-side services of the timesheet kernel."""

from timesheet_kernel.services.approval_service import (
    ApprovalOutcome,
    ApprovalResult,
    ApprovalService,
)
from timesheet_kernel.services.costing_service import CostingService
from timesheet_kernel.services.planning_service import PlanningService
from timesheet_kernel.services.project_service import ProjectService
from timesheet_kernel.services.timesheet_service import TimesheetService

__all__ = [
    "ApprovalOutcome",
    "ApprovalResult",
    "ApprovalService",
    "CostingService",
    "PlanningService",
    "ProjectService",
    "TimesheetService",
]
