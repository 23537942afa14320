"""
timesheet_kernel.services.planning_service -- Weekly labor plan maintenance.

Responsibility:
    Replaces or removes a member's weekly plan.  A plan is a mapping of
    project week number to planned hours; weeks left out are 0.

Invariants enforced:
    - Week numbers lie in ``1..count_project_weeks(start, end)``.
    - Planned hours are >= 0.
    - A plan is replaced wholesale; there is no per-week history.

Failure modes:
    - ProjectNotFoundError, AccessDeniedError, NotProjectMemberError.
    - TimesheetValidationError: bad week numbers or negative hours.
    - StorageError: database failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from timesheet_engines.calendar import count_project_weeks
from timesheet_kernel.domain.dtos import WeeklyPlan
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.exceptions import (
    InvalidWeekNumberError,
    NegativeAmountError,
    NotProjectMemberError,
    TimesheetValidationError,
    ValidationError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.models.planning import WeeklyPlanHoursModel, WeeklyPlanModel
from timesheet_kernel.selectors.project_selector import ProjectSelector
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.planning")


class PlanningService(BaseService):
    """Weekly plan writes."""

    def set_weekly_plan(
        self,
        project_id: UUID,
        user_id: UUID,
        weekly_hours: Mapping[int, Decimal],
        identity: IdentityContext,
    ) -> WeeklyPlan:
        """Replace the member's plan with ``{week_number: hours}``."""
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            with self._transaction("set_weekly_plan"):
                project = self._get_project(project_id)
                self._require_org_access(identity, project, "edit plans")
                if not ProjectSelector(self._session).is_member(project_id, user_id):
                    raise NotProjectMemberError(str(user_id), str(project_id))

                total_weeks = count_project_weeks(project.start_date, project.end_date)
                violations: list[ValidationError] = []
                for week, hours in sorted(weekly_hours.items()):
                    if week < 1 or week > total_weeks:
                        violations.append(InvalidWeekNumberError(week, total_weeks))
                    if hours < 0:
                        violations.append(NegativeAmountError("planned_hours", hours))
                if violations:
                    raise TimesheetValidationError(violations)

                plan = self._find_plan(project_id, user_id)
                if plan is None:
                    plan = WeeklyPlanModel(project_id=project_id, user_id=user_id)
                    self._session.add(plan)
                # Old rows must be gone before new ones hit the (plan, week) key.
                plan.weeks.clear()
                self._session.flush()
                plan.weeks = [
                    WeeklyPlanHoursModel(week_number=week, hours=Decimal(hours))
                    for week, hours in sorted(weekly_hours.items())
                ]
                plan.updated_at = self._clock.now()
                self._session.flush()
                result = plan.to_dto()

            logger.info(
                "weekly_plan_saved",
                extra={"user_id": str(user_id), "weeks": len(result.weeks)},
            )
            return result

    def remove_weekly_plan(
        self,
        project_id: UUID,
        user_id: UUID,
        identity: IdentityContext,
    ) -> bool:
        """Delete the member's plan.  Returns False when there was none."""
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            with self._transaction("remove_weekly_plan"):
                project = self._get_project(project_id)
                self._require_org_access(identity, project, "edit plans")
                plan = self._find_plan(project_id, user_id)
                if plan is not None:
                    self._session.delete(plan)

            if plan is None:
                return False
            logger.info("weekly_plan_removed", extra={"user_id": str(user_id)})
            return True

    def _find_plan(self, project_id: UUID, user_id: UUID) -> WeeklyPlanModel | None:
        return self._session.execute(
            select(WeeklyPlanModel).where(
                WeeklyPlanModel.project_id == project_id,
                WeeklyPlanModel.user_id == user_id,
            )
        ).scalar_one_or_none()
