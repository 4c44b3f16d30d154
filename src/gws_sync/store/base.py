"""Employee store interface (port) used by the sync engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gws_sync.models.employee import EmployeeFields
    from gws_sync.store.models import Employee


class EmployeeStore(ABC):
    """Keyed persistence for local employee records.

    Implementations raise :class:`~gws_sync.exceptions.StoreWriteError`
    when the underlying storage rejects an operation.
    """

    @abstractmethod
    def find_by_email_or_external_id(
        self, email: str, external_id: str
    ) -> Employee | None:
        """Return the employee matching *email* or *external_id*.

        Raises:
            AmbiguousMatchError: If the two keys match different employees.
        """

    @abstractmethod
    def find_by_email(self, email: str) -> Employee | None: ...

    @abstractmethod
    def create(self, fields: EmployeeFields) -> Employee: ...

    @abstractmethod
    def update(self, employee: Employee, fields: EmployeeFields | dict) -> Employee: ...

    @abstractmethod
    def delete(self, employee: Employee) -> None: ...
