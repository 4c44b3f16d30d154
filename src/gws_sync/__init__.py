"""gws-sync: Google Workspace directory to employee database sync.

Reads users from the Workspace Directory API and creates or updates the
matching rows in a local employee store.  Full, incremental and keyed
passes are supported; per-record failures are counted, not fatal.
"""

from __future__ import annotations

from gws_sync.exceptions import AmbiguousMatchError, StoreWriteError, SyncFailure
from gws_sync.models.directory import RemoteUserRecord, UserPage
from gws_sync.models.employee import EmployeeFields
from gws_sync.models.sync import OutcomeKind, RecordOutcome, SyncRunReport
from gws_sync.sync.differ import Differencer
from gws_sync.sync.runner import SyncRunner

__version__ = "0.1.0"

__all__ = [
    "AmbiguousMatchError",
    "Differencer",
    "EmployeeFields",
    "OutcomeKind",
    "RecordOutcome",
    "RemoteUserRecord",
    "StoreWriteError",
    "SyncFailure",
    "SyncRunReport",
    "SyncRunner",
    "UserPage",
]
