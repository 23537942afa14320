"""
Module: timesheet_kernel.models.planning
Responsibility: ORM persistence for weekly labor plans.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One plan per (project, user).
    - One row per (plan, week_number); week_number >= 1.
    - Planned hours are non-negative.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_kernel.db.base import TrackedBase, UUIDString
from timesheet_kernel.domain.dtos import WeeklyPlan


class WeeklyPlanModel(TrackedBase):
    """A (project, user) labor allocation with per-week planned hours."""

    __tablename__ = "weekly_plans"

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_weekly_plans_project_user"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )

    weeks: Mapped[list["WeeklyPlanHoursModel"]] = relationship(
        "WeeklyPlanHoursModel",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="WeeklyPlanHoursModel.week_number",
        lazy="selectin",
    )

    def to_dto(self) -> WeeklyPlan:
        return WeeklyPlan(
            project_id=self.project_id,
            user_id=self.user_id,
            weeks=tuple((w.week_number, Decimal(w.hours)) for w in self.weeks),
        )


class WeeklyPlanHoursModel(TrackedBase):
    """Planned hours for one project week."""

    __tablename__ = "weekly_plan_hours"

    __table_args__ = (
        UniqueConstraint("plan_id", "week_number", name="uq_weekly_plan_hours_week"),
        CheckConstraint("week_number >= 1", name="ck_weekly_plan_hours_week"),
        CheckConstraint("hours >= 0", name="ck_weekly_plan_hours_hours"),
    )

    plan_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("weekly_plans.id", ondelete="CASCADE"), nullable=False,
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    hours: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    plan: Mapped[WeeklyPlanModel] = relationship("WeeklyPlanModel", back_populates="weeks")
