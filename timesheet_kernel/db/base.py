"""
Declarative base shared by every ORM model.

All tables get a uuid4 primary key stored as text, so the same schema runs
on PostgreSQL and SQLite.  Hours, rates and amounts are ``Decimal`` in
Python and ``NUMERIC(38, 9)`` in the database; floats never reach a column.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds ``created_at`` and ``updated_at``.

    Both default to the database clock.  Services that hold a ``Clock`` set
    ``updated_at`` themselves, which takes precedence over ``onupdate``.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
