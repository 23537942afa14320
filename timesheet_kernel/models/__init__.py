"""
ORM models for the timesheet kernel.

Importing this package registers every table on ``Base.metadata``.
"""

from timesheet_kernel.models.user import UserModel
from timesheet_kernel.models.project import ProjectMemberModel, ProjectModel
from timesheet_kernel.models.timesheet import TimesheetEntryModel, TimesheetModel
from timesheet_kernel.models.planning import WeeklyPlanHoursModel, WeeklyPlanModel
from timesheet_kernel.models.costing import ProjectCostingModel

__all__ = [
    "UserModel",
    "ProjectModel",
    "ProjectMemberModel",
    "TimesheetModel",
    "TimesheetEntryModel",
    "WeeklyPlanModel",
    "WeeklyPlanHoursModel",
    "ProjectCostingModel",
]
