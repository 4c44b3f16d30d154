"""Custom exceptions for the gws-sync engine.

Pass-level failures abort a sync run; store-level failures are caught per
record by the differencer and counted as errors.
"""

from __future__ import annotations


class SyncFailure(Exception):
    """Raised when a sync pass aborts on an unrecoverable directory error.

    Any statistics gathered before the abort are discarded.

    Attributes:
        domain: The Workspace domain being synced.
        cause: The underlying exception.
    """

    def __init__(self, domain: str, cause: BaseException) -> None:
        super().__init__(f"Sync of domain {domain!r} failed: {cause}")
        self.domain = domain
        self.cause = cause


class StoreWriteError(Exception):
    """Raised when the employee store rejects a lookup, create or update.

    Covers constraint violations and other persistence-layer failures.
    """


class AmbiguousMatchError(StoreWriteError):
    """Raised when an email and an external ID match two different employees.

    Attributes:
        email: The email that matched one employee.
        external_id: The external ID that matched another employee.
    """

    def __init__(self, email: str, external_id: str) -> None:
        super().__init__(
            f"Email and external ID {external_id!r} match different employees"
        )
        self.email = email
        self.external_id = external_id
