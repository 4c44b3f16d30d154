"""Scheduled sync trigger.

:class:`ScheduledSync` is what a cron entry or job queue invokes once per
period (daily by default).  It picks the cutoff for incremental passes,
runs the pass, logs the outcome, and re-raises failures so the outer
scheduler can apply its own retry policy.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from gws_sync.checkpoint import CheckpointStore
from gws_sync.models.sync import SyncRunReport
from gws_sync.sync.runner import DEFAULT_BATCH_SIZE, SyncRunner

logger = logging.getLogger(__name__)

SYNC_TYPES: frozenset[str] = frozenset({"recent", "all"})

# Look-back window for incremental passes without an explicit cutoff.
DEFAULT_LOOKBACK = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScheduledSync:
    """One scheduled sync job.

    Attributes:
        domain: Workspace domain to sync.
        sync_type: ``"recent"`` (incremental) or ``"all"`` (full).
        options: Optional overrides: ``since`` (RFC 3339 cutoff),
            ``batch_size``, ``delay_between_batches``.
        checkpoints: Durable cutoff store.  When set, ``recent`` passes
            resume from the last successful pass instead of a fixed
            look-back, and successful passes advance the checkpoint.
        clock: Source of "now"; injectable for tests.
    """

    domain: str
    sync_type: str = "recent"
    options: dict[str, Any] = field(default_factory=dict)
    checkpoints: CheckpointStore | None = None
    clock: Callable[[], datetime] = _utcnow

    def __post_init__(self) -> None:
        if self.sync_type not in SYNC_TYPES:
            raise ValueError(f"Invalid sync type: {self.sync_type!r}")

    def run(self, runner: SyncRunner) -> SyncRunReport:
        """Execute the job with *runner*.

        Raises:
            SyncFailure: Propagated from the runner after logging.
        """
        started = self.clock()
        batch_size = int(self.options.get("batch_size", DEFAULT_BATCH_SIZE))
        delay = float(self.options.get("delay_between_batches", 0))

        logger.info(
            "Starting scheduled sync (domain=%s, type=%s)", self.domain, self.sync_type
        )

        try:
            if self.sync_type == "all":
                report = runner.run_full(self.domain, batch_size, delay)
            else:
                since = self.resolve_since(started)
                report = runner.run_since(self.domain, since, batch_size, delay)
        except Exception as exc:
            logger.error(
                "Scheduled sync failed (domain=%s, type=%s): %s",
                self.domain,
                self.sync_type,
                exc,
            )
            raise

        if self.checkpoints is not None:
            self.checkpoints.set(self.domain, started)

        logger.info("Scheduled sync completed: %s", report.to_dict())
        return report

    def resolve_since(self, now: datetime) -> str:
        """Pick the incremental cutoff as an RFC 3339 string.

        Precedence: explicit ``options["since"]``, then the stored
        checkpoint, then ``now - 24h``.
        """
        explicit = self.options.get("since")
        if explicit:
            return str(explicit)

        if self.checkpoints is not None:
            stored = self.checkpoints.get(self.domain)
            if stored is not None:
                return stored.isoformat()

        return (now - DEFAULT_LOOKBACK).isoformat()
