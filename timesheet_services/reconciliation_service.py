"""
timesheet_services.reconciliation_service -- Planned-vs-actual project view.

Responsibility:
    Builds the structure behind the approval screen and the project
    reports: the project's date grid, one reconciled row per roster
    member, the submission status of the roster and project totals.
    Rendering (spreadsheet, PDF) is a pure function over
    ``ProjectReconciliation.as_report_rows()`` and lives elsewhere.

Architecture position:
    Services -- read orchestration over kernel selectors and the pure
    engines.  Never writes; never commits.

Invariants enforced:
    - One row per roster member, in roster (e-mail) order.
    - Members without a weekly plan get ``None`` planned columns; their
      actual hours are still reported.
    - A failure reading plans degrades to "no plan" for every member and
      is logged; it is the only storage failure not propagated.

Failure modes:
    - ProjectNotFoundError, AccessDeniedError.
    - StorageError: database failure outside the plan read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from timesheet_engines.calendar import format_dates, generate_date_range
from timesheet_engines.cost_reconciliation import (
    MemberReconciliation,
    ReconciliationTotals,
    compute_totals,
    reconcile_member,
)
from timesheet_kernel.domain.dtos import Project, ProjectMember, Timesheet, WeeklyPlan
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.domain.lifecycle import COMPLETED_STATUSES, TimesheetStatus
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.selectors.planning_selector import PlanningSelector
from timesheet_kernel.selectors.project_selector import ProjectSelector
from timesheet_kernel.selectors.timesheet_selector import TimesheetSelector
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.reconciliation")


@dataclass(frozen=True)
class SubmissionStatus:
    """How far the roster is through submission.  "Submitted" includes APPROVED."""
    total_members: int
    submitted_count: int
    approved_count: int
    pending_count: int
    all_submitted: bool
    pending_users: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectReconciliation:
    """Everything the approval screen and the reports show for a project."""
    project: Project
    date_range: tuple[date, ...]
    rows: tuple[MemberReconciliation, ...]
    submission_status: SubmissionStatus
    totals: ReconciliationTotals

    @property
    def dates(self) -> list[str]:
        return format_dates(self.date_range)

    def as_report_rows(self) -> list[dict[str, Any]]:
        """Flatten the rows into plain dicts keyed by ``YYYY-MM-DD`` dates."""
        return [_report_row(row) for row in self.rows]


def _by_iso_date(values: dict[date, Any]) -> dict[str, Any]:
    return {day.isoformat(): value for day, value in values.items()}


def _report_row(row: MemberReconciliation) -> dict[str, Any]:
    return {
        "user_id": str(row.user_id),
        "name": row.name,
        "email": row.email,
        "role": row.role,
        "timesheet_id": str(row.timesheet_id) if row.timesheet_id else None,
        "status": row.status.value if row.status else None,
        "submitted_at": row.submitted_at,
        "day_hours": _by_iso_date(row.day_hours),
        "planned_day_hours": _by_iso_date(row.planned_day_hours),
        "total_hours": row.total_hours,
        "planned_total_hours": row.planned_total_hours,
        "difference_hours": row.difference_hours,
        "difference_percentage": row.difference_percentage,
        "budget_status": row.budget_status.value if row.budget_status else None,
        "rate": row.rate,
        "amount": row.amount,
        "quote_amount": row.quote_amount,
        "planned_amount": row.planned_amount,
    }


def submission_status(
    roster: list[ProjectMember],
    timesheets: dict[UUID, Timesheet],
) -> SubmissionStatus:
    submitted = approved = 0
    pending: list[str] = []
    for member in roster:
        timesheet = timesheets.get(member.user_id)
        if timesheet is not None and timesheet.status in COMPLETED_STATUSES:
            submitted += 1
            if timesheet.status == TimesheetStatus.APPROVED:
                approved += 1
        else:
            pending.append(member.email)
    return SubmissionStatus(
        total_members=len(roster),
        submitted_count=submitted,
        approved_count=approved,
        pending_count=len(pending),
        all_submitted=bool(roster) and not pending,
        pending_users=tuple(pending),
    )


class ReconciliationService(BaseService):
    """Composes selectors and engines into a ``ProjectReconciliation``."""

    def reconcile(self, project_id: UUID, identity: IdentityContext) -> ProjectReconciliation:
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            try:
                result = self._reconcile(project_id, identity)
            except SQLAlchemyError as exc:
                raise self._storage_failure("reconcile", exc) from exc

            logger.info(
                "project_reconciled",
                extra={
                    "member_count": len(result.rows),
                    "total_hours": result.totals.total_hours,
                    "all_submitted": result.submission_status.all_submitted,
                },
            )
            return result

    def _reconcile(self, project_id: UUID, identity: IdentityContext) -> ProjectReconciliation:
        project_model = self._get_project(project_id)
        self._require_org_access(identity, project_model, "view reconciliation")
        project = project_model.to_dto()

        roster = ProjectSelector(self._session).get_roster(project_id)
        timesheets = TimesheetSelector(self._session).list_for_project(project_id)
        plans = self._weekly_plans(project_id)
        costings = PlanningSelector(self._session).costings_for_project(project_id)

        date_range = generate_date_range(project.start_date, project.end_date)
        rows = tuple(
            reconcile_member(
                member,
                timesheets.get(member.user_id),
                date_range,
                project.start_date,
                plans[member.user_id].as_map() if member.user_id in plans else None,
                costings.get(member.user_id),
                over_threshold=self._config.budget_over_threshold_pct,
                under_threshold=self._config.budget_under_threshold_pct,
            )
            for member in roster
        )

        return ProjectReconciliation(
            project=project,
            date_range=date_range,
            rows=rows,
            submission_status=submission_status(roster, timesheets),
            totals=compute_totals(rows),
        )

    def _weekly_plans(self, project_id: UUID) -> dict[UUID, WeeklyPlan]:
        """Plans by user; an unreadable plan table means nobody has a plan."""
        try:
            with self._session.begin_nested():
                return PlanningSelector(self._session).weekly_plans_for_project(project_id)
        except SQLAlchemyError:
            logger.warning("planned_hours_unavailable", exc_info=True)
            return {}
