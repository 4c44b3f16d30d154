"""Wire the sync engine together from :class:`~gws_sync.config.Settings`.

The CLI and any long-running host build their runner through
:func:`build_sync_service`, which returns a :class:`SyncService` bundling
the runner with the cache, monitor and checkpoint store it was built with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gws_sync.cache import DirectoryCache
from gws_sync.checkpoint import CheckpointStore
from gws_sync.config import Settings
from gws_sync.directory.auth import get_directory_credentials
from gws_sync.directory.client import GoogleDirectoryClient
from gws_sync.monitoring import ApiMonitor
from gws_sync.store.sql import SqlEmployeeStore, create_store
from gws_sync.sync.differ import Differencer
from gws_sync.sync.runner import SyncRunner

logger = logging.getLogger(__name__)


@dataclass
class SyncService:
    """A ready-to-use runner plus the collaborators it shares.

    Attributes:
        settings: The settings the service was built from.
        runner: Runner for full, incremental and keyed passes.
        store: The employee store the runner writes to.
        cache: Directory cache shared by the client and the differencer.
        monitor: Metrics collected from directory calls.
        checkpoints: Durable per-domain cutoffs, or ``None`` when disabled.
        directory: The directory client the runner reads from.  ``None``
            only when the service is assembled by hand.
    """

    settings: Settings
    runner: SyncRunner
    store: SqlEmployeeStore
    cache: DirectoryCache
    monitor: ApiMonitor
    checkpoints: CheckpointStore | None = None
    directory: GoogleDirectoryClient | None = None


def build_sync_service(settings: Settings, *, dry_run: bool = False) -> SyncService:
    """Build the directory client, store and runner described by *settings*.

    Args:
        settings: Loaded application settings.
        dry_run: Classify records without writing to the store.

    Returns:
        The assembled :class:`SyncService`.

    Raises:
        ConfigError: If the credentials file is missing or malformed.
        DirectoryAuthError: If the credentials are rejected.
    """
    credentials = get_directory_credentials(
        credentials_path=Path(settings.credentials_path),
        admin_email=settings.admin_email,
        token_path=Path(settings.token_path),
    )

    cache = DirectoryCache(
        user_ttl=settings.cache_user_ttl,
        default_ttl=settings.cache_default_ttl,
    )
    monitor = ApiMonitor(slow_request_threshold_ms=settings.slow_request_threshold_ms)
    directory = GoogleDirectoryClient(credentials=credentials, cache=cache, monitor=monitor)

    store = create_store(settings.database_url)
    differencer = Differencer(store, cache=cache, dry_run=dry_run)
    runner = SyncRunner(directory, differencer)

    checkpoints = None
    if settings.checkpoint_path:
        checkpoints = CheckpointStore(settings.checkpoint_path)

    logger.debug("Sync service built (%r, dry_run=%s)", settings, dry_run)
    return SyncService(
        settings=settings,
        runner=runner,
        store=store,
        cache=cache,
        monitor=monitor,
        checkpoints=checkpoints,
        directory=directory,
    )
