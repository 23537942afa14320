"""
BaseService -- abstract base for all timesheet kernel services.

Responsibility:
    Provides the common constructor (session, clock, config), the
    transaction boundary helper every public write method uses, and the
    identity checks shared by the services.

Architecture position:
    Kernel > Services -- imperative shell around the pure engines.

Invariants enforced:
    - Each public write method owns its transaction: commit on success,
      rollback on any failure.
    - Domain errors propagate unchanged after rollback.
    - ``SQLAlchemyError`` is rolled back, logged with traceback as
      ``storage_failure`` and re-raised as ``StorageError`` chained to the
      original.

Failure modes:
    - ProjectNotFoundError when a project id is unknown.
    - AccessDeniedError when the caller is outside the project's
      organization and is not a super admin.
"""

from abc import ABC
from collections.abc import Generator
from contextlib import contextmanager
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timesheet_kernel.config import DEFAULT_CONFIG, KernelConfig
from timesheet_kernel.domain.clock import Clock, SystemClock
from timesheet_kernel.domain.identity import IdentityContext
from timesheet_kernel.exceptions import (
    AccessDeniedError,
    ProjectNotFoundError,
    StorageError,
)
from timesheet_kernel.logging_config import get_logger
from timesheet_kernel.models.project import ProjectModel

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and commits or
        rolls back once per public write method.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: KernelConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or DEFAULT_CONFIG

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Session, None, None]:
        """Commit on success; rollback and translate storage failures."""
        try:
            yield self._session
            self._session.commit()
        except SQLAlchemyError as exc:
            raise self._storage_failure(operation, exc) from exc
        except Exception:
            self._session.rollback()
            raise

    def _storage_failure(self, operation: str, exc: SQLAlchemyError) -> StorageError:
        """Roll back, log with traceback, and build the generic error."""
        self._session.rollback()
        logger.error(
            "storage_failure",
            extra={"operation": operation, "error_type": type(exc).__name__},
            exc_info=exc,
        )
        return StorageError(operation)

    def _get_project(self, project_id: UUID) -> ProjectModel:
        project = self._session.get(ProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    def _require_org_access(
        self,
        identity: IdentityContext,
        project: ProjectModel,
        action: str,
    ) -> None:
        if not identity.can_access_organization(project.organization_id):
            logger.warning(
                "access_denied",
                extra={"action": action, "project_id": str(project.id)},
            )
            raise AccessDeniedError(
                str(identity.user_id),
                f"project {project.id}",
                reason=f"Not allowed to {action}",
            )
