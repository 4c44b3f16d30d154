"""Request/response entry point for triggering a sync from an API layer.

:func:`sync_users` accepts a :class:`SyncUsersRequest`, runs the matching
pass, and always returns a :class:`SyncUsersResponse`: failures come back
as ``success=False`` with the error message instead of raising.  Field
names are camelCase on the wire (``syncType``, ``batchSize``, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from gws_sync.models.sync import SyncRunReport
from gws_sync.scheduled import DEFAULT_LOOKBACK
from gws_sync.sync.runner import DEFAULT_BATCH_SIZE, SyncRunner

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncUsersRequest(_CamelModel):
    """Input for :func:`sync_users`.

    Attributes:
        domain: Workspace domain to sync.
        sync_type: ``"recent"`` (default), ``"all"`` or ``"specific"``.
        batch_size: Page size for ``"all"`` passes.
        since: RFC 3339 cutoff for ``"recent"``; defaults to 24h ago.
        emails: Users to sync for ``"specific"`` (required there).
    """

    domain: str = Field(min_length=1)
    sync_type: Literal["recent", "all", "specific"] = "recent"
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1, le=500)
    since: str | None = None
    emails: list[str] | None = None

    @model_validator(mode="after")
    def _emails_required_for_specific(self) -> SyncUsersRequest:
        if self.sync_type == "specific" and not self.emails:
            raise ValueError("Emails are required for specific sync")
        return self


class SyncStats(_CamelModel):
    total_processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    duration_seconds: float = 0.0

    @classmethod
    def from_report(cls, report: SyncRunReport) -> SyncStats:
        return cls(
            total_processed=report.total_processed,
            created=report.created,
            updated=report.updated,
            skipped=report.skipped,
            errors=report.errors,
            duration_seconds=report.duration_seconds,
        )


class SyncUsersResponse(_CamelModel):
    """Output of :func:`sync_users`.

    Attributes:
        success: Whether the pass completed.
        stats: Counters of the pass (zeroed with ``errors=1`` on failure).
        message: ``"Sync completed successfully"`` or the error message.
        results: Per-email outcomes for ``"specific"`` passes.
    """

    success: bool
    stats: SyncStats
    message: str
    results: dict[str, str] | None = None


def sync_users(
    request: SyncUsersRequest | dict,
    runner: SyncRunner,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> SyncUsersResponse:
    """Run the sync described by *request* and report the outcome.

    Args:
        request: A request model or its camelCase ``dict`` form.
        runner: The runner to execute the pass with.
        clock: Source of "now" for the default ``since`` cutoff.

    Returns:
        The response; never raises for validation or sync failures.
    """
    try:
        if not isinstance(request, SyncUsersRequest):
            request = SyncUsersRequest.model_validate(request)

        results: dict[str, str] | None = None
        if request.sync_type == "all":
            report = runner.run_full(request.domain, request.batch_size)
        elif request.sync_type == "recent":
            since = request.since or (clock() - DEFAULT_LOOKBACK).isoformat()
            report = runner.run_since(request.domain, since)
        else:
            results = runner.run_for_keys(request.domain, request.emails or [])
            report = runner.last_report or SyncRunReport()

        return SyncUsersResponse(
            success=True,
            stats=SyncStats.from_report(report),
            message="Sync completed successfully",
            results=results,
        )
    except (ValidationError, ValueError) as exc:
        logger.warning("Rejected sync request: %s", exc)
        return _failure(str(exc))
    except Exception as exc:
        logger.error("Sync request failed: %s", exc)
        return _failure(str(exc))


def _failure(message: str) -> SyncUsersResponse:
    return SyncUsersResponse(success=False, stats=SyncStats(errors=1), message=message)
