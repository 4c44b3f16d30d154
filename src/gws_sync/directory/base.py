"""Read contract the sync engine needs from a user directory."""

from __future__ import annotations

from typing import Protocol

from gws_sync.models.directory import RemoteUserRecord, UserPage


class DirectoryClient(Protocol):
    """Paginated read access to a remote user directory.

    Errors surface as :class:`~gws_sync.directory.exceptions.DirectoryAPIError`
    carrying the upstream message.
    """

    def list_users(
        self,
        domain: str,
        *,
        max_results: int = 100,
        page_token: str | None = None,
        query: str | None = None,
        org_unit_path: str | None = None,
        updated_min: str | None = None,
    ) -> UserPage: ...

    def get_user(self, email: str) -> RemoteUserRecord: ...
