"""Local employee persistence for gws-sync."""

from __future__ import annotations

from gws_sync.store.base import EmployeeStore
from gws_sync.store.models import Base, Employee
from gws_sync.store.sql import SqlEmployeeStore, create_store

__all__ = [
    "Base",
    "Employee",
    "EmployeeStore",
    "SqlEmployeeStore",
    "create_store",
]
