"""In-process TTL cache for directory reads.

Caches single-user lookups by email and ``users.list`` pages by domain plus
request options.  Writes to the employee store invalidate entries per user
and per domain; invalidation is not tied to the store transaction.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

_USER_PREFIX = "user:"
_DOMAIN_PREFIX = "domain:"


class DirectoryCache:
    """Key/value cache with per-entry expiry.

    Args:
        user_ttl: Seconds a cached user stays valid.
        default_ttl: Seconds a cached list page stays valid.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        user_ttl: float = 3600,
        default_ttl: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._user_ttl = user_ttl
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, email: str) -> Any | None:
        return self._get(f"{_USER_PREFIX}{email.lower()}")

    def set_user(self, email: str, value: Any) -> None:
        self._set(f"{_USER_PREFIX}{email.lower()}", value, self._user_ttl)

    def remember_user(self, email: str, loader: Callable[[], Any]) -> tuple[Any, bool]:
        """Return the cached user for *email*, loading it on a miss.

        Returns:
            ``(value, hit)`` where *hit* tells whether the cache answered.
        """
        cached = self.get_user(email)
        if cached is not None:
            return cached, True
        value = loader()
        self.set_user(email, value)
        return value, False

    def invalidate_user(self, email: str) -> None:
        self._entries.pop(f"{_USER_PREFIX}{email.lower()}", None)

    # ------------------------------------------------------------------
    # User lists
    # ------------------------------------------------------------------

    def get_user_list(self, domain: str, options: dict[str, Any]) -> Any | None:
        return self._get(self._list_key(domain, options))

    def set_user_list(self, domain: str, options: dict[str, Any], value: Any) -> None:
        self._set(self._list_key(domain, options), value, self._default_ttl)

    def invalidate_domain(self, domain: str) -> None:
        prefix = f"{_DOMAIN_PREFIX}{domain.lower()}:"
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cached page(s) for %s", len(stale), domain)

    def flush(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _list_key(domain: str, options: dict[str, Any]) -> str:
        digest = hashlib.sha1(
            json.dumps(options, sort_keys=True, default=str).encode("utf-8")
        ).hexdigest()
        return f"{_DOMAIN_PREFIX}{domain.lower()}:list:{digest}"

    def _get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def _set(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = (self._clock() + ttl, value)
