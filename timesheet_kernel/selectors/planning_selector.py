"""
Planning and costing query selector.

Read-only access to weekly plans and costing rows of a project.  A member
without a plan row has no entry in ``weekly_plans_for_project``; callers
treat that as "no plan", not as a zero plan.
"""

from uuid import UUID

from sqlalchemy import select

from timesheet_kernel.domain.dtos import Costing, WeeklyPlan
from timesheet_kernel.models.costing import ProjectCostingModel
from timesheet_kernel.models.planning import WeeklyPlanModel
from timesheet_kernel.selectors.base import BaseSelector


class PlanningSelector(BaseSelector):
    """Selector for weekly plans and costing."""

    def get_weekly_plan(self, project_id: UUID, user_id: UUID) -> WeeklyPlan | None:
        plan = self.session.execute(
            select(WeeklyPlanModel).where(
                WeeklyPlanModel.project_id == project_id,
                WeeklyPlanModel.user_id == user_id,
            )
        ).scalar_one_or_none()
        if plan is None:
            return None
        return plan.to_dto()

    def weekly_plans_for_project(self, project_id: UUID) -> dict[UUID, WeeklyPlan]:
        plans = self.session.execute(
            select(WeeklyPlanModel).where(WeeklyPlanModel.project_id == project_id)
        ).scalars().all()
        return {p.user_id: p.to_dto() for p in plans}

    def get_costing(self, project_id: UUID, user_id: UUID) -> Costing | None:
        costing = self.session.execute(
            select(ProjectCostingModel).where(
                ProjectCostingModel.project_id == project_id,
                ProjectCostingModel.user_id == user_id,
            )
        ).scalar_one_or_none()
        if costing is None:
            return None
        return costing.to_dto()

    def costings_for_project(self, project_id: UUID) -> dict[UUID, Costing]:
        costings = self.session.execute(
            select(ProjectCostingModel).where(ProjectCostingModel.project_id == project_id)
        ).scalars().all()
        return {c.user_id: c.to_dto() for c in costings}
