"""Data models for sync outcomes and run statistics.

- :class:`RecordOutcome` -- what happened to one directory user during a
  pass (created, updated, skipped with a reason, or errored with a cause).
- :class:`SyncRunReport` -- aggregated counters for one sync pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class OutcomeKind(str, Enum):
    """Classification of a single record processed by the differencer."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass(frozen=True)
class RecordOutcome:
    """Result of running one directory user through the differencer.

    Attributes:
        kind: The outcome classification.
        email: Email of the processed record (may be empty).
        reason: Why the record was skipped, for ``SKIPPED`` outcomes.
        error: Error message, for ``ERRORED`` outcomes.
        changed_fields: Tracked fields that differed, for ``UPDATED``
            outcomes.
    """

    kind: OutcomeKind
    email: str = ""
    reason: str | None = None
    error: str | None = None
    changed_fields: tuple[str, ...] = ()

    @classmethod
    def created(cls, email: str) -> RecordOutcome:
        return cls(OutcomeKind.CREATED, email=email)

    @classmethod
    def updated(cls, email: str, changed_fields: list[str]) -> RecordOutcome:
        return cls(OutcomeKind.UPDATED, email=email, changed_fields=tuple(changed_fields))

    @classmethod
    def skipped(cls, email: str, reason: str) -> RecordOutcome:
        return cls(OutcomeKind.SKIPPED, email=email, reason=reason)

    @classmethod
    def errored(cls, email: str, error: str) -> RecordOutcome:
        return cls(OutcomeKind.ERRORED, email=email, error=error)

    def describe(self) -> str:
        """Human-readable outcome, used in per-email result maps."""
        if self.kind is OutcomeKind.CREATED:
            return "Created"
        if self.kind is OutcomeKind.UPDATED:
            return "Updated"
        if self.kind is OutcomeKind.SKIPPED:
            return f"Skipped: {self.reason}"
        return f"Failed: {self.error}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncRunReport:
    """Counters for one sync pass.

    Scoped to a single runner invocation; nothing is aggregated across
    runs.

    Attributes:
        total_processed: Records handed to the differencer.
        created: Employees created.
        updated: Employees updated.
        skipped: Records skipped (missing email/ID, or no changes).
        errors: Records whose store write failed.
        start_time: When the pass started (UTC).
        end_time: When the pass finished, or ``None`` while running.
    """

    total_processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    start_time: datetime = field(default_factory=_utcnow)
    end_time: datetime | None = None

    def record(self, outcome: RecordOutcome) -> None:
        """Count one processed record."""
        self.total_processed += 1
        if outcome.kind is OutcomeKind.CREATED:
            self.created += 1
        elif outcome.kind is OutcomeKind.UPDATED:
            self.updated += 1
        elif outcome.kind is OutcomeKind.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def finish(self, end_time: datetime | None = None) -> None:
        """Stamp the end of the pass."""
        self.end_time = end_time or _utcnow()

    @property
    def duration_seconds(self) -> float:
        """Elapsed seconds between start and end (0.0 while running)."""
        if self.end_time is None:
            return 0.0
        return round((self.end_time - self.start_time).total_seconds(), 3)

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def to_dict(self) -> dict[str, object]:
        """Return the report as a JSON-friendly ``dict``."""
        return {
            "total_processed": self.total_processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
        }
