"""Data models for gws-sync."""

from __future__ import annotations

from gws_sync.models.directory import RemoteUserRecord, UserPage
from gws_sync.models.employee import TRACKED_FIELDS, EmployeeFields
from gws_sync.models.sync import OutcomeKind, RecordOutcome, SyncRunReport

__all__ = [
    "TRACKED_FIELDS",
    "EmployeeFields",
    "OutcomeKind",
    "RecordOutcome",
    "RemoteUserRecord",
    "SyncRunReport",
    "UserPage",
]
