"""
timesheet_kernel.services.project_service -- Projects and rosters.

Responsibility:
    Creates projects and maintains their rosters.  The roster is what the
    approval gate must cover, and what reconciliation reports on.

Invariants enforced:
    - start_date <= end_date.
    - One roster row per (project, user).

Failure modes:
    - InvalidRangeError on an inverted date range.
    - ProjectNotFoundError, UserNotFoundError, AccessDeniedError.
    - DuplicateMemberError when the user is already on the roster.
    - StorageError: database failure.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select

from timesheet_kernel.domain.dtos import Project, ProjectMember
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.exceptions import (
    AccessDeniedError,
    DuplicateMemberError,
    InvalidRangeError,
    UserNotFoundError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.models.project import ProjectMemberModel, ProjectModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.selectors.project_selector import ProjectSelector
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.project")


class ProjectService(BaseService):
    """Project creation and roster maintenance."""

    def create_project(
        self,
        title: str,
        start_date: date,
        end_date: date,
        identity: IdentityContext,
        organization_id: UUID | None = None,
        description: str | None = None,
    ) -> Project:
        """Create a project in ``organization_id`` (defaults to the caller's)."""
        if start_date > end_date:
            raise InvalidRangeError(start_date, end_date)
        org_id = organization_id if organization_id is not None else identity.organization_id
        if not identity.can_access_organization(org_id):
            raise AccessDeniedError(
                str(identity.user_id), f"organization {org_id}",
                reason="Not allowed to create projects",
            )

        with LogContext.bind(actor_id=str(identity.user_id)):
            with self._transaction("create_project"):
                project = ProjectModel(
                    organization_id=org_id,
                    title=title,
                    description=description,
                    start_date=start_date,
                    end_date=end_date,
                    updated_at=self._clock.now(),
                )
                self._session.add(project)
                self._session.flush()
                result = project.to_dto()

            logger.info(
                "project_created",
                extra={"project_id": str(result.id), "start_date": start_date, "end_date": end_date},
            )
            return result

    def get_project(self, project_id: UUID, identity: IdentityContext) -> Project:
        project = self._get_project(project_id)
        self._require_org_access(identity, project, "view project")
        return project.to_dto()

    def add_member(
        self,
        project_id: UUID,
        user_id: UUID,
        identity: IdentityContext,
        role_name: str = "MEMBER",
    ) -> ProjectMember:
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            with self._transaction("add_member"):
                project = self._get_project(project_id)
                self._require_org_access(identity, project, "manage roster")
                if self._session.get(UserModel, user_id) is None:
                    raise UserNotFoundError(str(user_id))
                if ProjectSelector(self._session).is_member(project_id, user_id):
                    raise DuplicateMemberError(str(user_id), str(project_id))

                member = ProjectMemberModel(
                    project_id=project_id,
                    user_id=user_id,
                    role_name=role_name,
                )
                self._session.add(member)
                self._session.flush()
                self._session.refresh(member)
                result = member.to_dto()

            logger.info("member_added", extra={"user_id": str(user_id), "role_name": role_name})
            return result

    def remove_member(
        self,
        project_id: UUID,
        user_id: UUID,
        identity: IdentityContext,
    ) -> bool:
        """Take the user off the roster.  Returns False if they were not on it."""
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            with self._transaction("remove_member"):
                project = self._get_project(project_id)
                self._require_org_access(identity, project, "manage roster")
                member = self._session.execute(
                    select(ProjectMemberModel).where(
                        ProjectMemberModel.project_id == project_id,
                        ProjectMemberModel.user_id == user_id,
                    )
                ).scalar_one_or_none()
                if member is not None:
                    self._session.delete(member)

            if member is None:
                return False
            logger.info("member_removed", extra={"user_id": str(user_id)})
            return True

    def get_roster(self, project_id: UUID, identity: IdentityContext) -> list[ProjectMember]:
        project = self._get_project(project_id)
        self._require_org_access(identity, project, "view roster")
        return ProjectSelector(self._session).get_roster(project_id)
