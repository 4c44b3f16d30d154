"""Apply directory change notifications to the employee store.

Handles the three user events pushed by the directory:

- ``user.created`` -- create the employee unless one already has the email.
- ``user.updated`` -- apply the name, email and location present in the
  payload to the employee found by email.
- ``user.deleted`` -- delete the employee found by email.  This is the only
  code path that removes employees.

Payload authenticity is the caller's concern; nothing here verifies
signatures.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from gws_sync.cache import DirectoryCache
from gws_sync.log import redact_email
from gws_sync.models.employee import EmployeeFields
from gws_sync.store.base import EmployeeStore
from gws_sync.sync.fields import format_user_name, map_location

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"


def handle_directory_event(
    event_type: str,
    user_data: dict[str, Any],
    store: EmployeeStore,
    user_email: str | None = None,
    cache: DirectoryCache | None = None,
    today: Callable[[], date] = date.today,
) -> str:
    """Apply one directory event.

    Args:
        event_type: ``"user.created"``, ``"user.updated"`` or
            ``"user.deleted"``.  Other values are logged and ignored.
        user_data: The Directory API user resource from the notification
            (may be partial for updates, empty for deletes).
        store: Employee persistence.
        user_email: Email the notification was about; used when the payload
            has no ``primaryEmail``.
        cache: Directory cache to invalidate after a write.
        today: Date source for generated employee IDs.

    Returns:
        A short description of what was done (``"created"``,
        ``"updated"``, ``"deleted"``, ``"exists"``, ``"unchanged"``,
        ``"not_found"``, ``"missing_email"`` or ``"ignored"``).

    Raises:
        StoreWriteError: If the store rejects the write.
    """
    if event_type == USER_CREATED:
        result = _handle_created(user_data, store, today)
    elif event_type == USER_UPDATED:
        result = _handle_updated(user_data, store, user_email)
    elif event_type == USER_DELETED:
        result = _handle_deleted(store, user_email or user_data.get("primaryEmail"))
    else:
        logger.warning("Unknown directory event type: %s", event_type)
        return "ignored"

    if cache is not None and result in {"created", "updated", "deleted"}:
        emails = {e for e in (user_data.get("primaryEmail"), user_email) if e}
        for email in sorted(emails):
            cache.invalidate_user(email)
        for domain in sorted({e.partition("@")[2] for e in emails} - {""}):
            cache.invalidate_domain(domain)

    return result


def generate_employee_id(email: str, on: date) -> str:
    """Fallback external ID ``USERNAME-YYYYMMDD`` for payloads without ``id``."""
    username = email.partition("@")[0]
    return f"{username}-{on:%Y%m%d}".upper()


def _handle_created(
    user_data: dict[str, Any], store: EmployeeStore, today: Callable[[], date]
) -> str:
    email = user_data.get("primaryEmail")
    if not email:
        logger.warning("No email found in user creation event")
        return "missing_email"

    existing = store.find_by_email(email)
    if existing is not None:
        logger.info("Employee already exists for new directory user %s", redact_email(email))
        return "exists"

    name = user_data.get("name") or {}
    fields = EmployeeFields(
        employee_id=user_data.get("id") or generate_employee_id(email, today()),
        name=format_user_name(name.get("givenName"), name.get("familyName")),
        email=email,
        location=map_location(user_data.get("orgUnitPath")),
        projects=[],
    )
    employee = store.create(fields)
    logger.info("Employee created from directory event (id=%s)", employee.id)
    return "created"


def _handle_updated(
    user_data: dict[str, Any], store: EmployeeStore, user_email: str | None
) -> str:
    email = user_data.get("primaryEmail") or user_email
    if not email:
        logger.warning("No email found in user update event")
        return "missing_email"

    # A changed primary email arrives in the payload; the old one is the key.
    lookup_email = user_email or email
    employee = store.find_by_email(lookup_email)
    if employee is None:
        logger.warning("Employee not found for directory update %s", redact_email(lookup_email))
        return "not_found"

    changes: dict[str, Any] = {}
    if "name" in user_data:
        name = user_data.get("name") or {}
        changes["name"] = format_user_name(name.get("givenName"), name.get("familyName"))
    if user_data.get("primaryEmail") and user_data["primaryEmail"] != employee.email:
        changes["email"] = user_data["primaryEmail"]
    if "orgUnitPath" in user_data:
        changes["location"] = map_location(user_data.get("orgUnitPath"))

    changes = {k: v for k, v in changes.items() if getattr(employee, k) != v}
    if not changes:
        return "unchanged"

    store.update(employee, changes)
    logger.info(
        "Employee updated from directory event (id=%s, fields=%s)",
        employee.id,
        ", ".join(sorted(changes)),
    )
    return "updated"


def _handle_deleted(store: EmployeeStore, email: str | None) -> str:
    if not email:
        logger.warning("No email found in user deletion event")
        return "missing_email"

    employee = store.find_by_email(email)
    if employee is None:
        logger.warning("Employee not found for directory deletion %s", redact_email(email))
        return "not_found"

    store.delete(employee)
    logger.info("Employee deleted from directory event (id=%s)", employee.id)
    return "deleted"
