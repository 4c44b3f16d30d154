"""Durable per-domain cutoff for incremental syncs.

Without a checkpoint, each incremental pass looks back a fixed window from
the current time, so a pass that never ran (scheduler down, job failed)
leaves a gap.  :class:`CheckpointStore` keeps the start time of the last
successful pass per domain in a small JSON file; the next pass resumes from
there.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class CheckpointStore:
    """JSON-file store mapping domain -> last successful sync start.

    Args:
        path: Location of the checkpoint file.  Created on first save.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, domain: str) -> datetime | None:
        """Return the stored cutoff for *domain*, or ``None``."""
        raw = self._load().get(domain)
        if raw is None:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning("Ignoring malformed checkpoint for %s: %r", domain, raw)
            return None

    def set(self, domain: str, cutoff: datetime) -> None:
        """Persist *cutoff* for *domain*, replacing the file atomically."""
        data = self._load()
        data[domain] = cutoff.isoformat()

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self._path)
        logger.info("Checkpoint for %s saved (%s)", domain, data[domain])

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable checkpoint file %s, starting fresh: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Checkpoint file %s is not a JSON object, starting fresh", self._path)
            return {}
        return data
