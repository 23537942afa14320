"""
Timesheet query selector.

Read-only access to timesheets and their entries, plus the cross-project
per-date hour totals the daily cap is checked against.

Invariants:
- Uses the caller's Session, so ``other_hours_by_date`` called inside a
  save transaction sees rows locked by that transaction.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from timesheet_kernel.domain.dtos import Timesheet, TimesheetEntry
from timesheet_kernel.domain.lifecycle import TimesheetStatus
from timesheet_kernel.models.timesheet import TimesheetEntryModel, TimesheetModel
from timesheet_kernel.selectors.base import BaseSelector


class TimesheetSelector(BaseSelector):
    """Selector for timesheet queries."""

    def get(self, timesheet_id: UUID) -> Timesheet | None:
        timesheet = self.session.get(TimesheetModel, timesheet_id)
        if timesheet is None:
            return None
        return timesheet.to_dto()

    def get_for_project_user(self, project_id: UUID, user_id: UUID) -> Timesheet | None:
        timesheet = self.session.execute(
            select(TimesheetModel).where(
                TimesheetModel.project_id == project_id,
                TimesheetModel.user_id == user_id,
            )
        ).scalar_one_or_none()
        if timesheet is None:
            return None
        return timesheet.to_dto()

    def list_for_project(self, project_id: UUID) -> dict[UUID, Timesheet]:
        """All timesheets of a project keyed by user id."""
        timesheets = self.session.execute(
            select(TimesheetModel).where(TimesheetModel.project_id == project_id)
        ).scalars().all()
        return {t.user_id: t.to_dto() for t in timesheets}

    def list_for_user(self, user_id: UUID) -> list[Timesheet]:
        """A user's timesheets across projects, most recently updated first."""
        timesheets = self.session.execute(
            select(TimesheetModel)
            .where(TimesheetModel.user_id == user_id)
            .order_by(TimesheetModel.updated_at.desc(), TimesheetModel.created_at.desc())
        ).scalars().all()
        return [t.to_dto() for t in timesheets]

    def approved_history(self, user_id: UUID) -> list[Timesheet]:
        """A user's APPROVED timesheets, most recently approved first."""
        timesheets = self.session.execute(
            select(TimesheetModel)
            .where(
                TimesheetModel.user_id == user_id,
                TimesheetModel.status == TimesheetStatus.APPROVED.value,
            )
            .order_by(TimesheetModel.approved_at.desc())
        ).scalars().all()
        return [t.to_dto() for t in timesheets]

    def entries(self, timesheet_id: UUID) -> tuple[TimesheetEntry, ...]:
        rows = self.session.execute(
            select(TimesheetEntryModel)
            .where(TimesheetEntryModel.timesheet_id == timesheet_id)
            .order_by(TimesheetEntryModel.entry_date)
        ).scalars().all()
        return tuple(r.to_dto() for r in rows)

    def other_hours_by_date(
        self,
        user_id: UUID,
        dates: Iterable[date],
        exclude_timesheet_id: UUID | None = None,
    ) -> dict[date, Decimal]:
        """
        Sum of the user's hours per date on every timesheet except one.

        Args:
            user_id: Whose hours to sum.
            dates: Dates of interest.
            exclude_timesheet_id: The timesheet being saved, if it exists.

        Returns:
            Mapping of date to hours; dates with no hours are absent.
        """
        wanted = sorted(set(dates))
        if not wanted:
            return {}

        query = (
            select(TimesheetEntryModel.entry_date, func.sum(TimesheetEntryModel.hours))
            .join(TimesheetModel, TimesheetModel.id == TimesheetEntryModel.timesheet_id)
            .where(
                TimesheetModel.user_id == user_id,
                TimesheetEntryModel.entry_date.in_(wanted),
            )
            .group_by(TimesheetEntryModel.entry_date)
        )
        if exclude_timesheet_id is not None:
            query = query.where(TimesheetModel.id != exclude_timesheet_id)

        return {
            day: Decimal(total)
            for day, total in self.session.execute(query).all()
            if total is not None
        }
