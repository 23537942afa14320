"""
Timesheet Domain DTOs (``timesheet_kernel.domain.dtos``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of the reconciliation core:
projects, roster members, timesheets and their entries, weekly plans and
costing rows.  ORM models convert to these at the storage boundary
(``to_dto()``); services and engines only ever see typed DTOs.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All hour/monetary fields use ``Decimal`` -- NEVER ``float``.
* ``Project`` rejects ``start_date > end_date``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from timesheet_kernel.domain.lifecycle import TimesheetStatus
from timesheet_kernel.exceptions import InvalidRangeError


@dataclass(frozen=True)
class Project:
    """A project whose calendar drives every date grid."""
    id: UUID
    organization_id: UUID | None
    title: str
    start_date: date
    end_date: date
    status: str = "active"
    description: str | None = None

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise InvalidRangeError(self.start_date, self.end_date)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class ProjectMember:
    """A (project, user, role) roster row."""
    project_id: UUID
    user_id: UUID
    role_name: str
    email: str = ""


@dataclass(frozen=True)
class EntryInput:
    """
    One raw cell of a draft save.

    ``entry_date`` and ``hours`` are accepted loosely (date / datetime /
    ISO string; Decimal / int / float / str / None) and normalized by the
    aggregation engine.
    """
    entry_date: Any
    hours: Any


@dataclass(frozen=True)
class TimesheetEntry:
    """A stored (date, hours) cell of a timesheet."""
    entry_date: date
    hours: Decimal


@dataclass(frozen=True)
class Timesheet:
    """A user's timesheet for one project."""
    id: UUID
    project_id: UUID
    user_id: UUID
    status: TimesheetStatus
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by: UUID | None = None
    updated_at: datetime | None = None
    entries: tuple[TimesheetEntry, ...] = field(default_factory=tuple)

    @property
    def total_hours(self) -> Decimal:
        return sum((e.hours for e in self.entries), Decimal("0"))


@dataclass(frozen=True)
class WeeklyPlan:
    """Planned hours per project week for one (project, user) allocation."""
    project_id: UUID
    user_id: UUID
    weeks: tuple[tuple[int, Decimal], ...] = field(default_factory=tuple)

    def as_map(self) -> dict[int, Decimal]:
        return dict(self.weeks)

    @property
    def total_hours(self) -> Decimal:
        return sum((h for _, h in self.weeks), Decimal("0"))


@dataclass(frozen=True)
class Costing:
    """Rate and quote for one (project, user); ``amount`` is derived."""
    project_id: UUID
    user_id: UUID
    rate_per_hour: Decimal = Decimal("0")
    quote_amount: Decimal | None = None
    amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class CostingUpdate:
    """Input row for a costing upsert."""
    user_id: UUID
    rate_per_hour: Decimal
    quote_amount: Decimal | None = None
