"""Candidate employee fields derived from a directory user."""

from __future__ import annotations

from dataclasses import dataclass, field

# Fields compared when deciding whether an existing employee needs an update.
TRACKED_FIELDS: tuple[str, ...] = ("name", "email", "location", "employee_id")


@dataclass(frozen=True)
class EmployeeFields:
    """Field values the sync engine wants a local employee to hold.

    Attributes:
        employee_id: The directory external ID.
        name: Display name (``"Unknown User"`` when the directory has none).
        email: Primary email address.
        location: Office mapped from the org-unit path, or ``None``.
        projects: Project list; always empty when produced by a sync pass.
    """

    employee_id: str
    name: str
    email: str
    location: str | None = None
    projects: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        """Return the fields as a plain ``dict`` for store writes."""
        return {
            "employee_id": self.employee_id,
            "name": self.name,
            "email": self.email,
            "location": self.location,
            "projects": list(self.projects),
        }

    def changed_fields(self, current: object) -> list[str]:
        """List the tracked fields whose value differs on *current*.

        Args:
            current: Any object exposing the tracked field names as
                attributes (normally a stored :class:`Employee`).

        Returns:
            Names of tracked fields that differ, in :data:`TRACKED_FIELDS`
            order.  Empty when nothing changed.
        """
        return [
            name
            for name in TRACKED_FIELDS
            if getattr(current, name, None) != getattr(self, name)
        ]
