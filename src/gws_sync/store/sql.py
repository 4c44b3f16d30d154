"""SQLAlchemy-backed employee store.

Every operation runs in its own short transaction.  Database errors are
rolled back and re-raised as :class:`~gws_sync.exceptions.StoreWriteError`
so the differencer can count them per record.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from gws_sync.exceptions import AmbiguousMatchError, StoreWriteError
from gws_sync.models.employee import EmployeeFields
from gws_sync.store.base import EmployeeStore
from gws_sync.store.models import Base, Employee

logger = logging.getLogger(__name__)

_WRITABLE_FIELDS = frozenset({"employee_id", "name", "email", "location", "projects"})


class SqlEmployeeStore(EmployeeStore):
    """Employee store on a SQLAlchemy session factory.

    Returned :class:`Employee` instances are detached from their session
    (``expire_on_commit=False``) and safe to read after the call returns.

    Args:
        session_factory: A :class:`sessionmaker` bound to the employee
            database.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_email_or_external_id(
        self, email: str, external_id: str
    ) -> Employee | None:
        """Return the employee whose email or ``employee_id`` matches.

        Both columns are unique, so at most two rows can match.  Two rows
        means the directory identity is split across different local
        employees; that is reported instead of silently picking one.

        Raises:
            AmbiguousMatchError: If email and external ID match different
                employees.
            StoreWriteError: On any database error.
        """
        stmt = select(Employee).where(
            or_(Employee.email == email, Employee.employee_id == external_id)
        )
        try:
            with self._session_factory() as session:
                matches = list(session.scalars(stmt))
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Employee lookup failed: {exc}") from exc

        if not matches:
            return None
        if len(matches) > 1:
            raise AmbiguousMatchError(email, external_id)
        return matches[0]

    def find_by_email(self, email: str) -> Employee | None:
        try:
            with self._session_factory() as session:
                return session.scalars(
                    select(Employee).where(Employee.email == email)
                ).first()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Employee lookup failed: {exc}") from exc

    def all(self) -> list[Employee]:
        """Return every stored employee ordered by internal ID."""
        try:
            with self._session_factory() as session:
                return list(session.scalars(select(Employee).order_by(Employee.id)))
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Employee listing failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, fields: EmployeeFields) -> Employee:
        employee = Employee(**fields.as_dict())
        try:
            with self._session_factory.begin() as session:
                session.add(employee)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Employee create failed: {exc}") from exc
        logger.debug("Created employee id=%s", employee.id)
        return employee

    def update(self, employee: Employee, fields: EmployeeFields | dict) -> Employee:
        """Apply *fields* to the stored row for *employee*.

        Args:
            employee: A previously loaded employee.
            fields: Either full :class:`EmployeeFields` or a partial
                ``dict`` of column values.

        Raises:
            StoreWriteError: If the row no longer exists or the write
                violates a constraint.
        """
        values = fields.as_dict() if isinstance(fields, EmployeeFields) else dict(fields)
        unknown = set(values) - _WRITABLE_FIELDS
        if unknown:
            raise StoreWriteError(f"Unknown employee fields: {sorted(unknown)}")

        try:
            with self._session_factory.begin() as session:
                stored = session.get(Employee, employee.id)
                if stored is None:
                    raise StoreWriteError(f"Employee id={employee.id} no longer exists")
                for name, value in values.items():
                    setattr(stored, name, value)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Employee update failed: {exc}") from exc
        logger.debug("Updated employee id=%s fields=%s", stored.id, sorted(values))
        return stored

    def delete(self, employee: Employee) -> None:
        try:
            with self._session_factory.begin() as session:
                stored = session.get(Employee, employee.id)
                if stored is not None:
                    session.delete(stored)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Employee delete failed: {exc}") from exc
        logger.debug("Deleted employee id=%s", employee.id)


def create_store(database_url: str, *, echo: bool = False) -> SqlEmployeeStore:
    """Build an engine for *database_url*, ensure tables exist, return a store.

    Args:
        database_url: SQLAlchemy URL, e.g. ``"sqlite:///employees.db"``.
        echo: Log emitted SQL (debugging aid).

    Returns:
        A ready :class:`SqlEmployeeStore`.
    """
    engine = create_engine(database_url, echo=echo)
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(engine, expire_on_commit=False)
    logger.info("Employee store ready (%s)", engine.url.render_as_string(hide_password=True))
    return SqlEmployeeStore(session_factory)
