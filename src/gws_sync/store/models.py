"""SQLAlchemy model for locally stored employees.

The ``employees`` table is owned by the host application.  The sync engine
creates rows for new directory users and updates tracked fields; it never
deletes rows (deletion goes through the directory event handler).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for gws-sync tables."""


class Employee(Base):
    """A local employee record, linked to a directory user by ``employee_id``.

    Attributes:
        id: Internal numeric primary key.
        employee_id: Directory external ID once linked (unique).
        name: Display name.
        email: Primary email address (unique).
        location: Office derived from the directory org unit, if mapped.
        projects: Project list (extension point, empty from sync).
    """

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    projects: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, employee_id={self.employee_id})>"
