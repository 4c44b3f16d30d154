"""Google Admin SDK Directory client for user reads.

Provides :class:`GoogleDirectoryClient`, a thin wrapper around the
``admin``/``directory_v1`` service resource that:

- returns validated :class:`~gws_sync.models.directory.RemoteUserRecord`
  instances instead of raw ``dict`` resources,
- serves repeated reads from an optional :class:`~gws_sync.cache.DirectoryCache`,
- reports call timings and failures to an optional
  :class:`~gws_sync.monitoring.ApiMonitor`.

All API calls are wrapped with the
:func:`~gws_sync.directory.exceptions.with_retry` decorator for automatic
retry on transient failures.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from google.auth.credentials import Credentials
from googleapiclient.discovery import build

from gws_sync.cache import DirectoryCache
from gws_sync.directory.exceptions import with_retry
from gws_sync.directory.user_mapper import map_directory_user, map_user_list_response
from gws_sync.log import redact_email
from gws_sync.models.directory import RemoteUserRecord, UserPage
from gws_sync.monitoring import ApiMonitor

logger = logging.getLogger(__name__)

_DEFAULT_MAX_RESULTS = 100
# The Directory API rejects maxResults above this value.
_MAX_RESULTS_LIMIT = 500


class GoogleDirectoryClient:
    """Read-only client for Workspace directory users.

    Args:
        credentials: Credentials carrying the directory scope (see
            :func:`~gws_sync.directory.auth.get_directory_credentials`).
        service: Optional pre-built ``googleapiclient`` service resource.
            If ``None``, one is built from *credentials*.  Pass a mock here
            in tests.
        cache: Optional cache for ``get_user`` and ``list_users`` results.
        monitor: Optional metrics collector.
    """

    def __init__(
        self,
        credentials: Credentials,
        service: Any | None = None,
        cache: DirectoryCache | None = None,
        monitor: ApiMonitor | None = None,
    ) -> None:
        self._credentials = credentials
        self._service = service or build(
            "admin", "directory_v1", credentials=credentials, cache_discovery=False
        )
        self._cache = cache
        self._monitor = monitor

    # ------------------------------------------------------------------
    # Credential refresh hook (used by @with_retry on 401)
    # ------------------------------------------------------------------

    def _refresh_credentials(self) -> None:
        """Refresh the credentials and rebuild the service resource."""
        from google.auth.transport.requests import Request

        self._credentials.refresh(Request())
        self._service = build(
            "admin", "directory_v1", credentials=self._credentials, cache_discovery=False
        )
        logger.info("Credentials refreshed and directory service rebuilt")

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    @with_retry()
    def list_users(
        self,
        domain: str,
        *,
        max_results: int = _DEFAULT_MAX_RESULTS,
        page_token: str | None = None,
        query: str | None = None,
        org_unit_path: str | None = None,
        updated_min: str | None = None,
    ) -> UserPage:
        """Fetch one page of users in *domain*.

        Args:
            domain: Workspace domain, e.g. ``"example.com"``.
            max_results: Page size (clamped to 1..500).
            page_token: Continuation token from the previous page.
            query: Directory search query (``users.list`` ``query`` syntax).
            org_unit_path: Restrict to one organizational unit.  Sent as an
                ``orgUnitPath='...'`` query clause.
            updated_min: RFC 3339 timestamp; only users modified at or after
                it are returned.

        Returns:
            The mapped page of users and its continuation token.
        """
        params: dict[str, Any] = {
            "domain": domain,
            "projection": "full",
            "orderBy": "email",
            "maxResults": max(1, min(max_results, _MAX_RESULTS_LIMIT)),
        }
        if page_token:
            params["pageToken"] = page_token

        clauses = [c for c in (query, _org_unit_clause(org_unit_path)) if c]
        if clauses:
            params["query"] = " ".join(clauses)
        if updated_min:
            params["updatedMin"] = updated_min

        if self._cache is not None:
            cached = self._cache.get_user_list(domain, params)
            self._track_cache("list_users", cached is not None)
            if cached is not None:
                return cached

        response = self._execute(
            "list_users", domain, self._service.users().list(**params)
        )
        page = map_user_list_response(response)

        if self._cache is not None:
            self._cache.set_user_list(domain, params, page)

        logger.debug(
            "Listed %d user(s) in %s (more pages: %s)",
            len(page.records),
            domain,
            page.next_page_token is not None,
        )
        return page

    def search_users(
        self, domain: str, query: str, max_results: int = _DEFAULT_MAX_RESULTS
    ) -> UserPage:
        """First page of users in *domain* matching *query*."""
        return self.list_users(domain, max_results=max_results, query=query)

    def list_users_by_org_unit(
        self, domain: str, org_unit_path: str, max_results: int = _DEFAULT_MAX_RESULTS
    ) -> UserPage:
        """First page of users in one organizational unit."""
        return self.list_users(domain, max_results=max_results, org_unit_path=org_unit_path)

    def list_recently_modified_users(
        self,
        domain: str,
        updated_min: str,
        page_token: str | None = None,
        max_results: int = _DEFAULT_MAX_RESULTS,
    ) -> UserPage:
        """One page of users modified at or after *updated_min*."""
        return self.list_users(
            domain,
            max_results=max_results,
            page_token=page_token,
            updated_min=updated_min,
        )

    # ------------------------------------------------------------------
    # Single user
    # ------------------------------------------------------------------

    @with_retry()
    def get_user(self, email: str) -> RemoteUserRecord:
        """Fetch one user by primary email (or alias / user ID).

        Raises:
            DirectoryNotFoundError: If the user does not exist.
        """
        if self._cache is not None:
            record, hit = self._cache.remember_user(email, lambda: self._fetch_user(email))
            self._track_cache("get_user", hit)
            return record
        return self._fetch_user(email)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fetch_user(self, email: str) -> RemoteUserRecord:
        request = self._service.users().get(userKey=email, projection="full")
        return map_directory_user(self._execute("get_user", redact_email(email), request))

    def _execute(self, method: str, subject: str, request: Any) -> dict:
        """Execute *request*, reporting timing and failures to the monitor."""
        started = time.monotonic()
        try:
            return request.execute()
        except Exception as exc:
            if self._monitor is not None:
                self._monitor.log_error(method, exc)
            raise
        finally:
            if self._monitor is not None:
                elapsed_ms = (time.monotonic() - started) * 1000
                self._monitor.track_api_call(method, elapsed_ms, subject)

    def _track_cache(self, kind: str, hit: bool) -> None:
        if self._monitor is not None:
            self._monitor.track_cache_event(kind, hit)


def _org_unit_clause(org_unit_path: str | None) -> str | None:
    if not org_unit_path:
        return None
    escaped = org_unit_path.replace("'", "\\'")
    return f"orgUnitPath='{escaped}'"
