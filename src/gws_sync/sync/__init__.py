"""Directory-to-employee synchronization engine."""

from __future__ import annotations

from gws_sync.sync.differ import Differencer
from gws_sync.sync.fields import (
    ORG_UNIT_LOCATIONS,
    build_employee_fields,
    format_user_name,
    map_location,
)
from gws_sync.sync.runner import SyncRunner

__all__ = [
    "ORG_UNIT_LOCATIONS",
    "Differencer",
    "SyncRunner",
    "build_employee_fields",
    "format_user_name",
    "map_location",
]
