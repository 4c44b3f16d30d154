"""Call timing, cache and error metrics for directory operations.

:class:`ApiMonitor` keeps per-method duration statistics, logs calls slower
than a threshold, and counts cache hits/misses and errors.  Metrics live in
memory for the lifetime of the monitor instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class MethodStats:
    """Duration statistics (milliseconds) for one API method."""

    count: int = 0
    total_ms: float = 0.0
    min_ms: float | None = None
    max_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    def add(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        self.max_ms = max(self.max_ms, duration_ms)
        self.min_ms = duration_ms if self.min_ms is None else min(self.min_ms, duration_ms)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0


@dataclass
class ApiMonitor:
    """Collects metrics about directory API usage.

    Attributes:
        slow_request_threshold_ms: Calls at or above this duration are
            logged as warnings.
    """

    slow_request_threshold_ms: float = 2000.0
    methods: dict[str, MethodStats] = field(default_factory=dict)
    cache: dict[str, CacheStats] = field(default_factory=dict)
    errors: dict[str, int] = field(default_factory=dict)

    def track_api_call(self, method: str, duration_ms: float, subject: str | None = None) -> None:
        """Record the duration of one API call.

        Args:
            method: API method name (e.g. ``"list_users"``).
            duration_ms: Elapsed wall time in milliseconds.
            subject: Domain or (redacted) email the call was about.
        """
        self.methods.setdefault(method, MethodStats()).add(duration_ms)

        if duration_ms >= self.slow_request_threshold_ms:
            logger.warning(
                "Slow directory API call: %s took %.0fms (threshold %.0fms, subject=%s)",
                method,
                duration_ms,
                self.slow_request_threshold_ms,
                subject or "-",
            )

    def track_cache_event(self, kind: str, hit: bool) -> None:
        stats = self.cache.setdefault(kind, CacheStats())
        if hit:
            stats.hits += 1
        else:
            stats.misses += 1

    def log_error(self, operation: str, exc: BaseException) -> None:
        self.errors[operation] = self.errors.get(operation, 0) + 1
        logger.error("Directory operation %s failed: %s", operation, exc)

    def metrics(self) -> dict[str, object]:
        """Return a JSON-friendly snapshot of all collected metrics."""
        return {
            "methods": {
                name: {
                    "count": s.count,
                    "avg_ms": round(s.avg_ms, 2),
                    "min_ms": round(s.min_ms or 0.0, 2),
                    "max_ms": round(s.max_ms, 2),
                }
                for name, s in self.methods.items()
            },
            "cache": {
                name: {"hits": s.hits, "misses": s.misses} for name, s in self.cache.items()
            },
            "errors": dict(self.errors),
        }
