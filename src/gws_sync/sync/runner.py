"""Sync orchestrator for directory-to-employee passes.

:class:`SyncRunner` drives one pass at a time:

- :meth:`SyncRunner.run_full` -- every user in a domain, page by page.
- :meth:`SyncRunner.run_since` -- users modified at or after a timestamp.
- :meth:`SyncRunner.run_for_keys` -- an explicit list of emails, with a
  per-email result map.

Each record goes through the :class:`~gws_sync.sync.differ.Differencer`.
Partial failures are handled gracefully -- a failing record does not stop
the pass.  A directory failure while listing aborts the pass and raises
:class:`~gws_sync.exceptions.SyncFailure`; no partial report is returned.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime

from gws_sync.directory.base import DirectoryClient
from gws_sync.directory.exceptions import DirectoryAPIError
from gws_sync.exceptions import SyncFailure
from gws_sync.log import redact_email
from gws_sync.models.directory import RemoteUserRecord
from gws_sync.models.sync import RecordOutcome, SyncRunReport
from gws_sync.sync.differ import Differencer

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class SyncRunner:
    """Runs sync passes against one directory and one employee store.

    A runner holds no state between passes apart from :attr:`last_report`,
    which is replaced at the start of every pass.

    Args:
        directory: Source of directory users.
        differencer: Per-record reconciliation against the store.
        sleep: Blocking delay function used between pages.  Injectable so
            tests do not actually wait.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        differencer: Differencer,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._directory = directory
        self._differencer = differencer
        self._sleep = sleep
        self.last_report: SyncRunReport | None = None

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def run_full(
        self,
        domain: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        inter_batch_delay: float = 0.0,
    ) -> SyncRunReport:
        """Sync every user in *domain*.

        Args:
            domain: Workspace domain to read.
            batch_size: Users requested per page.
            inter_batch_delay: Seconds to wait between pages.  Only applied
                when another page follows.

        Returns:
            The finished report.

        Raises:
            SyncFailure: If the directory fails while listing users.
        """
        logger.info("Starting full sync for %s (batch size %d)", domain, batch_size)
        report = self._paginate(domain, batch_size, inter_batch_delay)
        self._log_summary("Full sync", domain, report)
        return report

    def run_since(
        self,
        domain: str,
        since: datetime | str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        inter_batch_delay: float = 0.0,
    ) -> SyncRunReport:
        """Sync users in *domain* modified at or after *since*.

        The filter is applied server-side.  Pagination is followed exactly
        as in :meth:`run_full` when the directory returns several pages.

        Args:
            domain: Workspace domain to read.
            since: Cutoff as a timezone-aware ``datetime`` or an RFC 3339
                string.

        Raises:
            SyncFailure: If the directory fails while listing users.
        """
        updated_min = since.isoformat() if isinstance(since, datetime) else since
        logger.info("Starting incremental sync for %s (since %s)", domain, updated_min)
        report = self._paginate(domain, batch_size, inter_batch_delay, updated_min=updated_min)
        self._log_summary("Incremental sync", domain, report)
        return report

    def run_for_keys(self, domain: str, emails: Iterable[str]) -> dict[str, str]:
        """Sync an explicit list of users, one lookup per email.

        A failed lookup is recorded for that email only; the remaining
        emails are still processed.  Aggregate counters for the pass are
        left in :attr:`last_report`.

        Args:
            domain: Workspace domain (used for logging).
            emails: Primary emails to sync.  Blank entries are ignored.

        Returns:
            ``{email: outcome}`` where outcome is ``"Created"``,
            ``"Updated"``, ``"Skipped: <reason>"``, ``"Failed: <cause>"``
            or ``"Error: <lookup failure>"``.
        """
        report = self._start()
        results: dict[str, str] = {}
        keys = [e.strip() for e in emails if e and e.strip()]

        logger.info("Starting keyed sync of %d user(s) for %s", len(keys), domain)

        for email in keys:
            try:
                record = self._directory.get_user(email)
            except Exception as exc:
                logger.error("Failed to fetch directory user %s: %s", redact_email(email), exc)
                results[email] = f"Error: {exc}"
                continue

            outcome = self._process(record, report)
            results[email] = outcome.describe()

        report.finish()
        self._log_summary("Keyed sync", domain, report)
        return results

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self) -> SyncRunReport:
        report = SyncRunReport()
        self.last_report = report
        return report

    def _paginate(
        self,
        domain: str,
        batch_size: int,
        inter_batch_delay: float,
        updated_min: str | None = None,
    ) -> SyncRunReport:
        report = self._start()
        page_token: str | None = None
        pages = 0

        while True:
            try:
                page = self._directory.list_users(
                    domain,
                    max_results=batch_size,
                    page_token=page_token,
                    updated_min=updated_min,
                )
            except DirectoryAPIError as exc:
                self.last_report = None
                logger.error(
                    "Sync of %s aborted after %d page(s) (%d record(s) processed): %s",
                    domain,
                    pages,
                    report.total_processed,
                    exc,
                )
                raise SyncFailure(domain, exc) from exc

            pages += 1
            for record in page.records:
                self._process(record, report)

            page_token = page.next_page_token
            if page_token is None:
                break

            if inter_batch_delay > 0:
                logger.debug("Waiting %.1fs before next page", inter_batch_delay)
                self._sleep(inter_batch_delay)

        report.finish()
        return report

    def _process(self, record: RemoteUserRecord, report: SyncRunReport) -> RecordOutcome:
        try:
            outcome = self._differencer.process(record)
        except Exception as exc:
            logger.exception(
                "Unexpected error syncing directory user %s",
                redact_email(record.primary_email),
            )
            outcome = RecordOutcome.errored(record.primary_email, str(exc))
        report.record(outcome)
        return outcome

    @staticmethod
    def _log_summary(label: str, domain: str, report: SyncRunReport) -> None:
        logger.info(
            "%s of %s complete: %d processed, %d created, %d updated, "
            "%d skipped, %d error(s) in %.1fs",
            label,
            domain,
            report.total_processed,
            report.created,
            report.updated,
            report.skipped,
            report.errors,
            report.duration_seconds,
        )
