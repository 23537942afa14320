"""
Module: timesheet_kernel.models.timesheet
Responsibility: ORM persistence for timesheets and their day entries.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Exactly one timesheet per (project, user): UNIQUE(project_id, user_id).
    - Valid status values only (DB check constraint); the service layer
      enforces the transition table before any UPDATE.
    - Entry hours within [0, 24] (DB check constraint).
    - Entries belong to exactly one timesheet and are deleted with it.

Failure modes:
    - IntegrityError when two first saves race to create the same
      (project, user) timesheet; the save is retried once.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_kernel.db.base import TrackedBase, UUIDString
from timesheet_kernel.domain.dtos import Timesheet, TimesheetEntry
from timesheet_kernel.domain.lifecycle import TimesheetStatus


class TimesheetModel(TrackedBase):
    """
    Persistent timesheet.

    Guarantees:
        - Owned by the user while DRAFT; owned by an approver afterwards.
        - Immutable once APPROVED (no outgoing transition).
    """

    __tablename__ = "timesheets"

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_timesheets_project_user"),
        CheckConstraint(
            "status IN ('draft', 'submitted', 'approved')",
            name="ck_timesheets_valid_status",
        ),
        Index("ix_timesheets_project_status", "project_id", "status"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TimesheetStatus.DRAFT.value,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    entries: Mapped[list["TimesheetEntryModel"]] = relationship(
        "TimesheetEntryModel",
        back_populates="timesheet",
        cascade="all, delete-orphan",
        order_by="TimesheetEntryModel.entry_date",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Timesheet {self.id} project={self.project_id} status={self.status}>"

    @property
    def status_enum(self) -> TimesheetStatus:
        return TimesheetStatus(self.status)

    def to_dto(self) -> Timesheet:
        return Timesheet(
            id=self.id,
            project_id=self.project_id,
            user_id=self.user_id,
            status=TimesheetStatus(self.status),
            submitted_at=self.submitted_at,
            approved_at=self.approved_at,
            approved_by=self.approved_by,
            updated_at=self.updated_at,
            entries=tuple(e.to_dto() for e in self.entries),
        )


class TimesheetEntryModel(TrackedBase):
    """One (date, hours) cell of a timesheet."""

    __tablename__ = "timesheet_entries"

    __table_args__ = (
        CheckConstraint("hours >= 0 AND hours <= 24", name="ck_timesheet_entries_hours"),
        Index("ix_timesheet_entries_timesheet_date", "timesheet_id", "entry_date"),
        Index("ix_timesheet_entries_date", "entry_date"),
    )

    timesheet_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("timesheets.id", ondelete="CASCADE"), nullable=False,
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    timesheet: Mapped[TimesheetModel] = relationship("TimesheetModel", back_populates="entries")

    def to_dto(self) -> TimesheetEntry:
        return TimesheetEntry(entry_date=self.entry_date, hours=Decimal(self.hours))
