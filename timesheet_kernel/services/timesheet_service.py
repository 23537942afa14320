"""
timesheet_kernel.services.timesheet_service -- Draft saves and submission.

Responsibility:
    Owns the user-facing half of the timesheet lifecycle:

        (none) --save_draft--> DRAFT --save_draft--> DRAFT --submit--> SUBMITTED

    A draft save replaces the timesheet's entries wholesale after the
    whole batch has been validated, including the cross-project daily cap.

Architecture position:
    Kernel > Services.  Reads through selectors, evaluates pure rules from
    ``timesheet_engines``, writes through the ORM models.

Invariants enforced:
    - Entries are only rewritten while the timesheet is DRAFT.
    - For any user and date, the hours over all of the user's timesheets
      never exceed ``daily_cap_hours`` after a successful save or submit.
    - Delete-then-reinsert of entries happens in one transaction.
    - DRAFT -> SUBMITTED is a conditional UPDATE on the current status.

Failure modes:
    - NotProjectMemberError: saving onto a project the caller is not on.
    - AccessDeniedError: submitting someone else's timesheet.
    - InvalidTransitionError: saving or submitting a non-DRAFT timesheet.
    - TimesheetValidationError: one or more invalid cells, dates outside
      the project, duplicate dates, or daily cap violations.
    - StorageError: database failure, or a write conflict that persists
      after ``save_conflict_retries`` retries.

Concurrency:
    Every save and submit first locks the caller's ``users`` row
    (SELECT ... FOR UPDATE, a no-op on SQLite) and only then reads the
    other timesheets' hours.  The row exists before the user's first
    timesheet does, so two concurrent saves by one user serialise even
    when both create a new timesheet on different projects.
    A conflict on the lazy (project, user) insert is retried.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from timesheet_engines.aggregation import normalize_date, normalize_hours
from timesheet_engines.daily_cap import find_daily_cap_violations
from timesheet_kernel.domain.dtos import EntryInput, Project, Timesheet
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.domain.lifecycle import (
    EDITABLE_STATUSES,
    TimesheetStatus,
    can_transition,
)
from timesheet_kernel.exceptions import (
    AccessDeniedError,
    CellOutOfRangeError,
    DailyCapExceededError,
    DuplicateEntryDateError,
    EntryDateOutOfRangeError,
    InvalidEntryDateError,
    InvalidTransitionError,
    NotProjectMemberError,
    TimesheetKernelError,
    TimesheetNotFoundError,
    TimesheetValidationError,
    ValidationError,
)
from timesheet_kernel.logging_config import LogContext, get_logger
from timesheet_kernel.models.timesheet import TimesheetEntryModel, TimesheetModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.selectors.project_selector import ProjectSelector
from timesheet_kernel.selectors.timesheet_selector import TimesheetSelector
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.timesheet")


class TimesheetService(BaseService):
    """Draft saves, submission and owner-scoped reads of timesheets."""

    # =========================================================================
    # Draft save
    # =========================================================================

    def save_draft(
        self,
        project_id: UUID,
        entries: Sequence[EntryInput],
        identity: IdentityContext,
    ) -> Timesheet:
        """
        Validate and store the caller's entries for a project.

        Creates the (project, user) timesheet on first save.

        Preconditions:
            - The caller is on the project roster.
            - The timesheet does not exist yet or is DRAFT.

        Postconditions:
            - The timesheet's entries are exactly the batch, ordered by date.
            - ``updated_at`` is the service clock's now.

        Raises:
            NotProjectMemberError, InvalidTransitionError,
            TimesheetValidationError, StorageError.
        """
        with LogContext.bind(actor_id=str(identity.user_id), project_id=str(project_id)):
            retries_left = self._config.save_conflict_retries
            attempt = 1
            while True:
                try:
                    model = self._save_draft_once(project_id, entries, identity)
                    self._session.commit()
                    break
                except TimesheetKernelError:
                    self._session.rollback()
                    raise
                except (IntegrityError, OperationalError) as exc:
                    if not retries_left:
                        raise self._storage_failure("save_draft", exc) from exc
                    self._session.rollback()
                    logger.warning(
                        "save_conflict_retry",
                        extra={"attempt": attempt, "error_type": type(exc).__name__},
                    )
                    retries_left -= 1
                    attempt += 1
                except SQLAlchemyError as exc:
                    raise self._storage_failure("save_draft", exc) from exc

            timesheet = model.to_dto()
            logger.info(
                "timesheet_saved",
                extra={
                    "timesheet_id": str(timesheet.id),
                    "entry_count": len(timesheet.entries),
                    "total_hours": timesheet.total_hours,
                    "attempt": attempt,
                },
            )
            return timesheet

    def _save_draft_once(
        self,
        project_id: UUID,
        entries: Sequence[EntryInput],
        identity: IdentityContext,
    ) -> TimesheetModel:
        project = self._get_project(project_id).to_dto()
        if not ProjectSelector(self._session).is_member(project_id, identity.user_id):
            raise NotProjectMemberError(str(identity.user_id), str(project_id))

        self._lock_user(identity.user_id)

        model = self._session.execute(
            select(TimesheetModel).where(
                TimesheetModel.project_id == project_id,
                TimesheetModel.user_id == identity.user_id,
            )
        ).scalar_one_or_none()

        if model is None:
            model = TimesheetModel(
                project_id=project_id,
                user_id=identity.user_id,
                status=TimesheetStatus.DRAFT.value,
                updated_at=self._clock.now(),
            )
            self._session.add(model)
            self._session.flush()
            logger.info("timesheet_created", extra={"timesheet_id": str(model.id)})
        elif model.status_enum not in EDITABLE_STATUSES:
            raise InvalidTransitionError(
                str(model.id), model.status, TimesheetStatus.DRAFT.value,
            )

        proposed = self._validate_batch(project, entries, identity.user_id, model.id)

        self._session.execute(
            delete(TimesheetEntryModel).where(TimesheetEntryModel.timesheet_id == model.id)
        )
        self._session.add_all([
            TimesheetEntryModel(timesheet_id=model.id, entry_date=day, hours=hours)
            for day, hours in sorted(proposed.items())
        ])
        model.updated_at = self._clock.now()
        self._session.flush()
        self._session.expire(model, ["entries"])
        return model

    def _lock_user(self, user_id: UUID) -> None:
        self._session.execute(
            select(UserModel.id).where(UserModel.id == user_id).with_for_update()
        ).all()

    def _validate_batch(
        self,
        project: Project,
        entries: Sequence[EntryInput],
        user_id: UUID,
        timesheet_id: UUID,
    ) -> dict[date, Decimal]:
        """Every problem of the batch, or the normalised ``{date: hours}``."""
        violations: list[ValidationError] = []
        proposed: dict[date, Decimal] = {}
        seen: set[date] = set()
        max_hours = self._config.max_cell_hours

        for entry in entries:
            try:
                day = normalize_date(entry.entry_date)
            except InvalidEntryDateError as exc:
                violations.append(exc)
                continue
            hours = normalize_hours(entry.hours)

            valid = True
            if not project.contains(day):
                violations.append(
                    EntryDateOutOfRangeError(day, project.start_date, project.end_date)
                )
                valid = False
            if hours < 0 or hours > max_hours:
                violations.append(CellOutOfRangeError(day, hours, max_hours))
                valid = False
            if day in seen:
                violations.append(DuplicateEntryDateError(day))
                valid = False
            seen.add(day)
            if valid:
                proposed[day] = hours

        violations.extend(self._cap_violations(user_id, proposed, timesheet_id))

        if violations:
            self._log_rejection(violations)
            raise TimesheetValidationError(violations)
        return proposed

    def _cap_violations(
        self,
        user_id: UUID,
        proposed: Mapping[date, Decimal],
        timesheet_id: UUID,
    ) -> list[DailyCapExceededError]:
        other = TimesheetSelector(self._session).other_hours_by_date(
            user_id, proposed.keys(), exclude_timesheet_id=timesheet_id,
        )
        return find_daily_cap_violations(proposed, other, self._config.daily_cap_hours)

    def _log_rejection(self, violations: Sequence[ValidationError]) -> None:
        capped = [v for v in violations if isinstance(v, DailyCapExceededError)]
        if capped:
            logger.warning(
                "daily_cap_exceeded",
                extra={
                    "dates": [v.entry_date for v in capped],
                    "totals": [v.total for v in capped],
                    "cap": self._config.daily_cap_hours,
                },
            )
        logger.warning(
            "timesheet_validation_failed",
            extra={"codes": [v.code for v in violations], "count": len(violations)},
        )

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(
        self,
        timesheet_id: UUID,
        identity: IdentityContext,
        entries: Sequence[EntryInput] | None = None,
    ) -> Timesheet:
        """
        Move the caller's DRAFT timesheet to SUBMITTED.

        When ``entries`` is given they are saved first exactly as
        ``save_draft`` would, in their own transaction.

        Raises:
            TimesheetNotFoundError, AccessDeniedError, InvalidTransitionError,
            TimesheetValidationError, StorageError.
        """
        with LogContext.bind(actor_id=str(identity.user_id), timesheet_id=str(timesheet_id)):
            existing = TimesheetSelector(self._session).get(timesheet_id)
            if existing is None:
                raise TimesheetNotFoundError(str(timesheet_id))
            if existing.user_id != identity.user_id:
                logger.warning("access_denied", extra={"action": "submit"})
                raise AccessDeniedError(
                    str(identity.user_id),
                    f"timesheet {timesheet_id}",
                    reason="Only the owner may submit",
                )

            if entries is not None:
                self.save_draft(existing.project_id, entries, identity)

            with self._transaction("submit"):
                model = self._submit_once(timesheet_id, identity)

            self._session.refresh(model)
            timesheet = model.to_dto()
            logger.info(
                "timesheet_submitted",
                extra={
                    "project_id": str(timesheet.project_id),
                    "total_hours": timesheet.total_hours,
                },
            )
            return timesheet

    def _submit_once(self, timesheet_id: UUID, identity: IdentityContext) -> TimesheetModel:
        self._lock_user(identity.user_id)
        model = self._session.get(TimesheetModel, timesheet_id)
        if model is None:
            raise TimesheetNotFoundError(str(timesheet_id))
        if not can_transition(model.status_enum, TimesheetStatus.SUBMITTED):
            raise InvalidTransitionError(
                str(timesheet_id), model.status, TimesheetStatus.SUBMITTED.value,
            )

        stored = {e.entry_date: Decimal(e.hours) for e in model.entries}
        violations = self._cap_violations(identity.user_id, stored, model.id)
        if violations:
            self._log_rejection(violations)
            raise TimesheetValidationError(violations)

        now = self._clock.now()
        result = self._session.execute(
            update(TimesheetModel)
            .where(
                TimesheetModel.id == timesheet_id,
                TimesheetModel.status == TimesheetStatus.DRAFT.value,
            )
            .values(
                status=TimesheetStatus.SUBMITTED.value,
                submitted_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._session.refresh(model)
            raise InvalidTransitionError(
                str(timesheet_id), model.status, TimesheetStatus.SUBMITTED.value,
            )
        return model

    # =========================================================================
    # Reads
    # =========================================================================

    def get_timesheet(self, timesheet_id: UUID, identity: IdentityContext) -> Timesheet:
        """Owner, super admin or same-organization reader only."""
        timesheet = TimesheetSelector(self._session).get(timesheet_id)
        if timesheet is None:
            raise TimesheetNotFoundError(str(timesheet_id))
        if timesheet.user_id != identity.user_id:
            self._require_org_access(identity, self._get_project(timesheet.project_id), "read timesheet")
        return timesheet

    def list_my_timesheets(self, identity: IdentityContext) -> list[Timesheet]:
        return TimesheetSelector(self._session).list_for_user(identity.user_id)
