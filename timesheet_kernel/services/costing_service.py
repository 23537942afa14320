"""
timesheet_kernel.services.costing_service -- Per-member rate and quote upserts.

Responsibility:
    Maintains the (project, user) costing rows.  On every save the derived
    ``amount`` is recomputed as the member's current actual hours times
    the rate.

Invariants enforced:
    - rate_per_hour >= 0 and quote_amount >= 0 (when given).
    - One costing row per (project, user); saving again updates it.
    - The whole batch is validated before any row is written.

Failure modes:
    - ProjectNotFoundError, AccessDeniedError.
    - NotProjectMemberError: a row for a user who is not on the roster.
    - TimesheetValidationError: negative rates or quotes.
    - StorageError: database failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from timesheet_kernel.domain.dtos import Costing, CostingUpdate
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.exceptions import (
    NegativeAmountError,
    NotProjectMemberError,
    TimesheetValidationError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.models.costing import ProjectCostingModel
from timesheet_kernel.selectors.project_selector import ProjectSelector
from timesheet_kernel.selectors.timesheet_selector import TimesheetSelector
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.costing")


class CostingService(BaseService):
    """Upserts of project costing rows."""

    def upsert_costing(
        self,
        project_id: UUID,
        updates: Sequence[CostingUpdate],
        identity: IdentityContext,
    ) -> list[Costing]:
        """
        Insert or update one costing row per update.

        Returns:
            The saved rows, in the order of ``updates``.
        """
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            with self._transaction("upsert_costing"):
                project = self._get_project(project_id)
                self._require_org_access(identity, project, "edit costing")
                self._validate(project_id, updates)

                timesheets = TimesheetSelector(self._session).list_for_project(project_id)
                saved = []
                for item in updates:
                    timesheet = timesheets.get(item.user_id)
                    actual = timesheet.total_hours if timesheet is not None else Decimal("0")
                    saved.append(self._upsert_one(project_id, item, actual))
                self._session.flush()
                result = [row.to_dto() for row in saved]

            logger.info("costing_saved", extra={"row_count": len(result)})
            return result

    def _validate(self, project_id: UUID, updates: Sequence[CostingUpdate]) -> None:
        roster = ProjectSelector(self._session)
        violations = []
        for item in updates:
            if not roster.is_member(project_id, item.user_id):
                raise NotProjectMemberError(str(item.user_id), str(project_id))
            if item.rate_per_hour < 0:
                violations.append(NegativeAmountError("rate_per_hour", item.rate_per_hour))
            if item.quote_amount is not None and item.quote_amount < 0:
                violations.append(NegativeAmountError("quote_amount", item.quote_amount))
        if violations:
            raise TimesheetValidationError(violations)

    def _upsert_one(
        self,
        project_id: UUID,
        item: CostingUpdate,
        actual_hours: Decimal,
    ) -> ProjectCostingModel:
        row = self._session.execute(
            select(ProjectCostingModel).where(
                ProjectCostingModel.project_id == project_id,
                ProjectCostingModel.user_id == item.user_id,
            )
        ).scalar_one_or_none()
        if row is None:
            row = ProjectCostingModel(project_id=project_id, user_id=item.user_id)
            self._session.add(row)

        row.rate_per_hour = item.rate_per_hour
        row.quote_amount = item.quote_amount
        row.amount = actual_hours * item.rate_per_hour
        row.updated_at = self._clock.now()
        return row
