"""Derive local employee fields from directory data.

Shared by the differencer (sync passes) and the directory event handler so
both produce identical names and locations for the same user.
"""

from __future__ import annotations

from gws_sync.models.directory import RemoteUserRecord
from gws_sync.models.employee import EmployeeFields

UNKNOWN_USER_NAME = "Unknown User"

# Closed table: org units not listed here have no location.
ORG_UNIT_LOCATIONS: dict[str, str] = {
    "/一般": "General Office",
    "/営業": "Sales Office",
    "/開発": "Development Office",
    "/管理": "Admin Office",
    "/テスト": "Test Office",
}


def format_user_name(given_name: str | None, family_name: str | None) -> str:
    """Join given and family name, falling back to ``"Unknown User"``."""
    name = f"{given_name or ''} {family_name or ''}".strip()
    return name or UNKNOWN_USER_NAME


def map_location(org_unit_path: str | None) -> str | None:
    """Look up the office for *org_unit_path*; ``None`` when unmapped."""
    if org_unit_path is None:
        return None
    return ORG_UNIT_LOCATIONS.get(org_unit_path)


def build_employee_fields(record: RemoteUserRecord) -> EmployeeFields:
    """Candidate employee fields for a directory user.

    The caller must already have checked that the record has an email and
    an external ID.
    """
    return EmployeeFields(
        employee_id=record.external_id,
        name=format_user_name(record.given_name, record.family_name),
        email=record.primary_email,
        location=map_location(record.org_unit_path),
        projects=[],
    )
