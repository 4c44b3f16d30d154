"""Console output for sync passes.

Renders a :class:`~gws_sync.models.sync.SyncRunReport` as a statistics
table, the per-email result map of a keyed pass as a list, and the
directory API metrics collected by :class:`~gws_sync.monitoring.ApiMonitor`.

The ``format_*`` functions return strings; the matching ``print_*``
functions write them to stdout.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from gws_sync.models.sync import SyncRunReport

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH
_LABEL_WIDTH = 16


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_report(report: SyncRunReport, *, domain: str | None = None, dry_run: bool = False) -> str:
    """Render a report as a statistics table.

    Args:
        report: The finished report.
        domain: Domain shown in the banner, if given.
        dry_run: Mark the output as a dry run (nothing was written).

    Returns:
        A multi-line string ready for console display.
    """
    lines: list[str] = []

    title = "  GOOGLE WORKSPACE USER SYNC"
    if domain:
        title += f" ({domain})"
    lines.append(_SEPARATOR)
    lines.append(title)
    if dry_run:
        lines.append("  [DRY RUN] No changes were written")
    lines.append(_SEPARATOR)

    rows = [
        ("Total Processed", str(report.total_processed)),
        ("Created", str(report.created)),
        ("Updated", str(report.updated)),
        ("Skipped", str(report.skipped)),
        ("Errors", str(report.errors)),
        ("Duration", f"{report.duration_seconds:.2f}s"),
    ]
    lines.append(f"  {'Metric':<{_LABEL_WIDTH}} Count")
    lines.append(f"  {'-' * _LABEL_WIDTH} {'-' * 10}")
    for label, value in rows:
        lines.append(f"  {label:<{_LABEL_WIDTH}} {value}")

    lines.append("")
    lines.append(_status_line(report.errors))
    lines.append(_SEPARATOR)

    return "\n".join(lines)


def format_key_results(results: dict[str, str]) -> str:
    """Render the ``{email: outcome}`` map of a keyed pass.

    Args:
        results: Result map from
            :meth:`~gws_sync.sync.runner.SyncRunner.run_for_keys`.

    Returns:
        One line per email, or a notice when the map is empty.
    """
    if not results:
        return "  No users were synced."

    width = max(len(email) for email in results)
    return "\n".join(f"  {email:<{width}}  {outcome}" for email, outcome in results.items())


def print_report(report: SyncRunReport, *, domain: str | None = None, dry_run: bool = False) -> None:
    """Format and print a report to stdout."""
    sys.stdout.write(format_report(report, domain=domain, dry_run=dry_run) + "\n")


def print_key_results(results: dict[str, str]) -> None:
    """Format and print a keyed result map to stdout."""
    sys.stdout.write("Sync results:\n" + format_key_results(results) + "\n")


def format_metrics(metrics: dict[str, Any]) -> str:
    """Render an :meth:`ApiMonitor.metrics` snapshot.

    Args:
        metrics: Snapshot with ``methods``, ``cache`` and ``errors`` keys.

    Returns:
        One section per non-empty key, or a notice when no call was made.
    """
    methods = metrics.get("methods") or {}
    cache = metrics.get("cache") or {}
    errors = metrics.get("errors") or {}

    if not (methods or cache or errors):
        return "  No directory API calls were recorded."

    lines: list[str] = []
    if methods:
        lines.append("API calls:")
        for name, stats in methods.items():
            lines.append(
                f"  {name}: {stats['count']} call(s), avg {stats['avg_ms']:.2f}ms "
                f"(min {stats['min_ms']:.2f}ms, max {stats['max_ms']:.2f}ms)"
            )
    if cache:
        lines.append("Cache performance:")
        for kind, stats in cache.items():
            lookups = stats["hits"] + stats["misses"]
            hit_rate = stats["hits"] / lookups * 100 if lookups else 0.0
            lines.append(
                f"  {kind}: {stats['hits']} hit(s), {stats['misses']} miss(es), "
                f"{hit_rate:.1f}% hit rate"
            )
    if errors:
        lines.append("Errors:")
        for operation, count in errors.items():
            lines.append(f"  {operation}: {count} error(s)")

    return "\n".join(lines)


def print_metrics(metrics: dict[str, Any], *, as_json: bool = False) -> None:
    """Print a metrics snapshot to stdout, as a table or as indented JSON."""
    if as_json:
        sys.stdout.write(json.dumps(metrics, indent=2, sort_keys=True) + "\n")
        return
    sys.stdout.write("Directory API metrics:\n" + format_metrics(metrics) + "\n")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _status_line(errors: int) -> str:
    if errors > 0:
        return f"  WARNING: {errors} error(s) occurred during sync. Check logs for details."
    return "  Sync completed successfully!"
