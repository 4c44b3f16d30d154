"""Per-record reconciliation between a directory user and the employee store.

:class:`Differencer` classifies one :class:`RemoteUserRecord` and applies at
most one store write:

1. No email -> skipped.
2. No external ID -> skipped (logged as a warning).
3. Build candidate fields (name, location, empty project list).
4. Look up an employee by email or external ID.
5. Found -> update if any tracked field differs, otherwise skipped.
6. Not found -> create.
7. Store failures -> errored; the caller moves on to the next record.

Reconciliation is last-write-wins: a local edit to a tracked field is
overwritten by the next pass that sees the same directory user.
"""

from __future__ import annotations

import logging

from gws_sync.cache import DirectoryCache
from gws_sync.exceptions import StoreWriteError
from gws_sync.log import redact_email
from gws_sync.models.directory import RemoteUserRecord
from gws_sync.models.employee import EmployeeFields
from gws_sync.models.sync import RecordOutcome
from gws_sync.store.base import EmployeeStore
from gws_sync.sync.fields import build_employee_fields

logger = logging.getLogger(__name__)

SKIP_MISSING_EMAIL = "missing email"
SKIP_MISSING_ID = "missing external id"
SKIP_UNCHANGED = "unchanged"


class Differencer:
    """Create-or-update decision for single directory users.

    Args:
        store: Employee persistence.
        cache: Directory cache to invalidate after each write, if any.
        dry_run: Classify records without writing to the store.
    """

    def __init__(
        self,
        store: EmployeeStore,
        cache: DirectoryCache | None = None,
        dry_run: bool = False,
    ) -> None:
        self._store = store
        self._cache = cache
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def process(self, record: RemoteUserRecord) -> RecordOutcome:
        """Reconcile *record* with the store.

        Never raises for store-level failures; those come back as an
        ``ERRORED`` outcome.
        """
        email = record.primary_email
        if not email:
            return RecordOutcome.skipped(email, SKIP_MISSING_EMAIL)

        if not record.external_id:
            logger.warning("Directory user has no ID, skipping: %s", redact_email(email))
            return RecordOutcome.skipped(email, SKIP_MISSING_ID)

        fields = build_employee_fields(record)

        try:
            return self._apply(fields)
        except StoreWriteError as exc:
            logger.error("Failed to sync directory user %s: %s", redact_email(email), exc)
            return RecordOutcome.errored(email, str(exc))

    def _apply(self, fields: EmployeeFields) -> RecordOutcome:
        existing = self._store.find_by_email_or_external_id(fields.email, fields.employee_id)

        if existing is None:
            if not self._dry_run:
                employee = self._store.create(fields)
                self._invalidate(fields.email)
                logger.debug("Employee created from directory (id=%s)", employee.id)
            return RecordOutcome.created(fields.email)

        changed = fields.changed_fields(existing)
        if not changed:
            return RecordOutcome.skipped(fields.email, SKIP_UNCHANGED)

        if not self._dry_run:
            previous_email = existing.email
            # Only tracked fields are written; the project list stays host-owned.
            self._store.update(existing, {name: getattr(fields, name) for name in changed})
            self._invalidate(fields.email)
            if previous_email and previous_email != fields.email:
                self._invalidate(previous_email)
            logger.debug(
                "Employee updated from directory (id=%s, fields=%s)",
                existing.id,
                ", ".join(changed),
            )
        return RecordOutcome.updated(fields.email, changed)

    def _invalidate(self, email: str) -> None:
        if self._cache is None:
            return
        self._cache.invalidate_user(email)
        domain = email.partition("@")[2]
        if domain:
            self._cache.invalidate_domain(domain)
