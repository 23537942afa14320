"""
Module: timesheet_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.  Selectors
    form the read side of the kernel: structured access to projects,
    timesheets, plans and costing without mutation capability.
Architecture position: Kernel > Selectors.  May import from db/, domain/ and
    models/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), session.delete(),
      session.commit() or session.flush().
    - Selectors return frozen DTOs, never ORM instances.
    - The caller owns the session and its transaction scope, so reads made
      inside a write transaction see that transaction's snapshot.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
