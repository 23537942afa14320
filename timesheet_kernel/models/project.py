"""
Module: timesheet_kernel.models.project
Responsibility: ORM persistence for projects and their rosters.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - start_date <= end_date (DB check constraint; the DTO re-checks).
    - One roster row per (project, user).

Failure modes:
    - IntegrityError on an inverted date range or a duplicate member.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timesheet_kernel.db.base import TrackedBase, UUIDString
from timesheet_kernel.domain.dtos import Project, ProjectMember
from timesheet_kernel.models.user import UserModel


class ProjectModel(TrackedBase):
    """
    A project with a fixed calendar.

    Maps to the ``Project`` DTO.  Every entry date and planned week of the
    project derives from ``start_date``..``end_date``.
    """

    __tablename__ = "projects"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_projects_date_range"),
    )

    organization_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")

    members: Mapped[list["ProjectMemberModel"]] = relationship(
        "ProjectMemberModel",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Project {self.title} {self.start_date}..{self.end_date}>"

    def to_dto(self) -> Project:
        return Project(
            id=self.id,
            organization_id=self.organization_id,
            title=self.title,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
            description=self.description,
        )


class ProjectMemberModel(TrackedBase):
    """A (project, user, role) roster row."""

    __tablename__ = "project_members"

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False, index=True,
    )
    role_name: Mapped[str] = mapped_column(String(100), nullable=False, default="MEMBER")

    project: Mapped[ProjectModel] = relationship("ProjectModel", back_populates="members")
    user: Mapped[UserModel] = relationship("UserModel", lazy="joined")

    def to_dto(self) -> ProjectMember:
        return ProjectMember(
            project_id=self.project_id,
            user_id=self.user_id,
            role_name=self.role_name,
            email=self.user.email if self.user is not None else "",
        )
