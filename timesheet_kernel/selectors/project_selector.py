"""
Project query selector.

Read-only access to projects, rosters and the approval queue.

Key design decisions:
- Rosters are ordered by e-mail so report rows come out in a stable order.
- The approval queue is organization-scoped unless the caller is a super
  admin.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select

from timesheet_kernel.domain.dtos import Project, ProjectMember
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.domain.lifecycle import TimesheetStatus
from timesheet_kernel.models.project import ProjectMemberModel, ProjectModel
from timesheet_kernel.models.timesheet import TimesheetModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ApprovalQueueItem:
    """A project with timesheets waiting for approval."""
    project: Project
    submitted_count: int


class ProjectSelector(BaseSelector):
    """Selector for project and roster queries."""

    def get_project(self, project_id: UUID) -> Project | None:
        project = self.session.get(ProjectModel, project_id)
        if project is None:
            return None
        return project.to_dto()

    def get_roster(self, project_id: UUID) -> list[ProjectMember]:
        """
        Get the project's members with their e-mails.

        Returns:
            List of ProjectMember ordered by e-mail.
        """
        members = self.session.execute(
            select(ProjectMemberModel)
            .join(UserModel, UserModel.id == ProjectMemberModel.user_id)
            .where(ProjectMemberModel.project_id == project_id)
            .order_by(UserModel.email)
        ).scalars().all()
        return [m.to_dto() for m in members]

    def is_member(self, project_id: UUID, user_id: UUID) -> bool:
        count = self.session.execute(
            select(func.count(ProjectMemberModel.id)).where(
                ProjectMemberModel.project_id == project_id,
                ProjectMemberModel.user_id == user_id,
            )
        ).scalar_one()
        return count > 0

    def approval_queue(self, identity: IdentityContext) -> list[ApprovalQueueItem]:
        """
        Projects in the caller's scope with at least one SUBMITTED timesheet.

        Returns:
            List of ApprovalQueueItem ordered by project title.
        """
        submitted = func.count(TimesheetModel.id).label("submitted_count")
        query = (
            select(ProjectModel, submitted)
            .join(TimesheetModel, TimesheetModel.project_id == ProjectModel.id)
            .where(TimesheetModel.status == TimesheetStatus.SUBMITTED.value)
            .group_by(ProjectModel.id)
            .order_by(ProjectModel.title)
        )
        if not identity.is_super_admin:
            query = query.where(ProjectModel.organization_id == identity.organization_id)

        rows = self.session.execute(query).all()
        return [
            ApprovalQueueItem(project=project.to_dto(), submitted_count=count)
            for project, count in rows
        ]
