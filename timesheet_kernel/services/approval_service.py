"""
timesheet_kernel.services.approval_service -- Project-level bulk approval.

Responsibility:
    Releases a project's timesheets for billing.  Approval is all or
    nothing: either every SUBMITTED timesheet of the roster moves to
    APPROVED in one transaction, or none does.

Architecture position:
    Kernel > Services.  May import from domain/, models/, selectors/, db/.

Invariants enforced:
    - Every roster member must hold a SUBMITTED or APPROVED timesheet
      before anything is approved.
    - SUBMITTED -> APPROVED only; APPROVED is terminal.
    - The status change is a conditional UPDATE
      (``WHERE id IN (...) AND status = 'submitted'``).  A row count that
      differs from the number of ids rolls the transaction back.
    - A project whose timesheets are all APPROVED is a successful no-op.

Failure modes:
    - ProjectNotFoundError, AccessDeniedError.
    - EmptyRosterError: the project has no members.
    - IncompleteSubmissionError: pending members, with their e-mails.
    - ApprovalRaceDetectedError: a concurrent writer changed a timesheet
      between the check and the update.
    - StorageError: database failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select, update

from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.domain.lifecycle import COMPLETED_STATUSES, TimesheetStatus
from timesheet_kernel.exceptions import (
    ApprovalRaceDetectedError,
    EmptyRosterError,
    IncompleteSubmissionError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.models.timesheet import TimesheetModel
from timesheet_kernel.selectors.project_selector import ProjectSelector
from timesheet_kernel.selectors.timesheet_selector import TimesheetSelector
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.approval")


class ApprovalOutcome(str, Enum):
    """Result of a successful approval call."""

    APPROVED = "approved"
    ALREADY_APPROVED = "already_approved"


@dataclass(frozen=True)
class ApprovalResult:
    """What ``approve_project`` did."""
    project_id: UUID
    outcome: ApprovalOutcome
    approved_count: int = 0
    timesheet_ids: tuple[UUID, ...] = ()
    approved_at: datetime | None = None

    @property
    def changed(self) -> bool:
        return self.outcome == ApprovalOutcome.APPROVED


class ApprovalService(BaseService):
    """All-or-nothing approval of a project's submitted timesheets."""

    def approve_project(self, project_id: UUID, identity: IdentityContext) -> ApprovalResult:
        """
        Approve every SUBMITTED timesheet of the project.

        Preconditions:
            - Caller is a super admin or in the project's organization.
            - Every roster member has a SUBMITTED or APPROVED timesheet.

        Postconditions:
            - On APPROVED: every previously SUBMITTED timesheet of the
              project, including those of members removed since, is
              APPROVED with ``approved_at``/``approved_by`` set.
            - On ALREADY_APPROVED: nothing changed.
        """
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            with self._transaction("approve_project"):
                result = self._approve(project_id, identity)

            if result.changed:
                logger.info(
                    "project_approved",
                    extra={"approved_count": result.approved_count},
                )
            else:
                logger.info("project_already_approved")
            return result

    def _approve(self, project_id: UUID, identity: IdentityContext) -> ApprovalResult:
        project = self._get_project(project_id)
        self._require_org_access(identity, project, "approve timesheets")

        roster = ProjectSelector(self._session).get_roster(project_id)
        if not roster:
            raise EmptyRosterError(str(project_id))

        timesheets = TimesheetSelector(self._session).list_for_project(project_id)

        pending: list[str] = []
        submitted_count = approved_count = 0
        for member in roster:
            timesheet = timesheets.get(member.user_id)
            if timesheet is None or timesheet.status not in COMPLETED_STATUSES:
                pending.append(member.email)
            elif timesheet.status == TimesheetStatus.SUBMITTED:
                submitted_count += 1
            else:
                approved_count += 1

        if pending:
            logger.warning(
                "approval_blocked_incomplete",
                extra={"pending_users": pending, "total_members": len(roster)},
            )
            raise IncompleteSubmissionError(
                str(project_id),
                total_members=len(roster),
                submitted_count=submitted_count,
                approved_count=approved_count,
                pending_users=pending,
            )

        # Every SUBMITTED timesheet of the project, roster or not.
        submitted_ids = [
            t.id for t in timesheets.values() if t.status == TimesheetStatus.SUBMITTED
        ]
        if not submitted_ids:
            return ApprovalResult(project_id=project_id, outcome=ApprovalOutcome.ALREADY_APPROVED)

        self._verify_still_submitted(project_id, submitted_ids)

        now = self._clock.now()
        updated = self._session.execute(
            update(TimesheetModel)
            .where(
                TimesheetModel.id.in_(submitted_ids),
                TimesheetModel.status == TimesheetStatus.SUBMITTED.value,
            )
            .values(
                status=TimesheetStatus.APPROVED.value,
                approved_at=now,
                approved_by=identity.user_id,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        ).rowcount

        if updated != len(submitted_ids):
            self._race_detected(project_id, len(submitted_ids), updated)

        self._session.expire_all()
        return ApprovalResult(
            project_id=project_id,
            outcome=ApprovalOutcome.APPROVED,
            approved_count=updated,
            timesheet_ids=tuple(submitted_ids),
            approved_at=now,
        )

    def _verify_still_submitted(self, project_id: UUID, timesheet_ids: Sequence[UUID]) -> None:
        """Lock the rows and re-check their status inside the transaction."""
        locked = self._session.execute(
            select(TimesheetModel.id)
            .where(TimesheetModel.id.in_(timesheet_ids))
            .with_for_update()
        ).all()
        still_submitted = self._session.execute(
            select(func.count(TimesheetModel.id)).where(
                TimesheetModel.id.in_(timesheet_ids),
                TimesheetModel.status == TimesheetStatus.SUBMITTED.value,
            )
        ).scalar_one()
        if len(locked) != len(timesheet_ids) or still_submitted != len(timesheet_ids):
            self._race_detected(project_id, len(timesheet_ids), still_submitted)

    def _race_detected(self, project_id: UUID, expected: int, actual: int) -> None:
        logger.error(
            "approval_race_detected",
            extra={"expected_count": expected, "updated_count": actual},
        )
        raise ApprovalRaceDetectedError(str(project_id), expected, actual)
