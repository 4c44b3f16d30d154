"""Map Directory API user resources to :class:`RemoteUserRecord`.

The Admin SDK ``users`` resource is a loosely shaped ``dict``; this is the
single place where its keys are read.  Only the fields the sync engine
tracks are kept:

- **id** -> ``external_id``
- **primaryEmail** -> ``primary_email``
- **name.givenName / name.familyName** -> ``given_name`` / ``family_name``
- **orgUnitPath** -> ``org_unit_path``
- **suspended** -> ``suspended``
- **lastModifiedTime**, else **creationTime** -> ``last_modified``
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from gws_sync.models.directory import RemoteUserRecord, UserPage

logger = logging.getLogger(__name__)


def map_directory_user(user: dict[str, Any]) -> RemoteUserRecord:
    """Convert one Directory API user resource into a record.

    Missing keys are tolerated; an unparseable timestamp is dropped with a
    debug log rather than failing the record.

    Args:
        user: A ``users`` resource dict as returned by ``users().get()`` or
            inside ``users().list()["users"]``.

    Returns:
        The corresponding :class:`RemoteUserRecord`.
    """
    name = user.get("name") or {}

    return RemoteUserRecord(
        external_id=user.get("id") or "",
        primary_email=user.get("primaryEmail") or "",
        given_name=name.get("givenName") or "",
        family_name=name.get("familyName") or "",
        org_unit_path=user.get("orgUnitPath"),
        suspended=bool(user.get("suspended", False)),
        last_modified=_parse_timestamp(
            user.get("lastModifiedTime") or user.get("creationTime")
        ),
    )


def map_user_list_response(response: dict[str, Any]) -> UserPage:
    """Convert a ``users().list()`` response into a :class:`UserPage`.

    Args:
        response: The raw list response.  ``users`` may be absent when the
            page is empty.

    Returns:
        The page of mapped records and its continuation token.
    """
    users = response.get("users") or []
    return UserPage(
        records=[map_directory_user(u) for u in users],
        next_page_token=response.get("nextPageToken"),
    )


def _parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp such as ``2024-05-01T09:30:00.000Z``."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable directory timestamp %r", value)
        return None
