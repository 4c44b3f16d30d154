"""Google Workspace directory integration for gws-sync."""

from __future__ import annotations

from gws_sync.directory.auth import get_directory_credentials
from gws_sync.directory.base import DirectoryClient
from gws_sync.directory.client import GoogleDirectoryClient
from gws_sync.directory.user_mapper import map_directory_user, map_user_list_response

__all__ = [
    "DirectoryClient",
    "GoogleDirectoryClient",
    "get_directory_credentials",
    "map_directory_user",
    "map_user_list_response",
]
