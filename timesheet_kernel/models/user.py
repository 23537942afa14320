"""
Module: timesheet_kernel.models.user
Responsibility: ORM persistence for users as seen by the reconciliation core.
Architecture position: Kernel > Models.  May import from db/base.py only.

User management itself lives outside this core; the table is read for the
roster (e-mails in pending lists) and is written only by tooling and tests.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase, UUIDString


class UserModel(TrackedBase):
    """A person who records time."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    organization_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True, index=True)
    is_super_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
