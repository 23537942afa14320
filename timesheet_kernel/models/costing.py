"""
Module: timesheet_kernel.models.costing
Responsibility: ORM persistence for per-member project costing.
Architecture position: Kernel > Models.  May import from db/base.py only.

``amount`` is derived (actual hours x rate at the time the costing row was
last saved) and is never authoritative; reconciliation recomputes it.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase, UUIDString
from timesheet_kernel.domain.dtos import Costing


class ProjectCostingModel(TrackedBase):
    """Rate and quote for one (project, user)."""

    __tablename__ = "project_costings"

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_costings_project_user"),
        CheckConstraint("rate_per_hour >= 0", name="ck_project_costings_rate"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    rate_per_hour: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    quote_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def to_dto(self) -> Costing:
        return Costing(
            project_id=self.project_id,
            user_id=self.user_id,
            rate_per_hour=Decimal(self.rate_per_hour),
            quote_amount=Decimal(self.quote_amount) if self.quote_amount is not None else None,
            amount=Decimal(self.amount),
        )
