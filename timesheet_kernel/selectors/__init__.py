"""Selectors for the timesheet kernel (read side)."""

from timesheet_kernel.selectors.planning_selector import PlanningSelector
from timesheet_kernel.selectors.project_selector import ApprovalQueueItem, ProjectSelector
from timesheet_kernel.selectors.timesheet_selector import TimesheetSelector

__all__ = [
    "ApprovalQueueItem",
    "PlanningSelector",
    "ProjectSelector",
    "TimesheetSelector",
]
