"""Custom exceptions and retry logic for Google Directory API operations.

Defines a hierarchy of directory-specific exceptions and a ``@with_retry``
decorator that turns every failure a Directory call can raise into one of
them.  A call can fail in three layers:

- ``googleapiclient`` returns an ``HttpError`` carrying the API status.
- ``google-auth`` raises ``RefreshError`` when the service-account or
  delegated token is rejected, and ``TransportError`` when the token
  endpoint cannot be reached.
- ``httplib2`` raises ``HttpLib2Error`` subclasses (``ServerNotFoundError``
  and friends) or plain socket errors when the API host is unreachable.

Exception hierarchy::

    DirectoryAPIError           (base for all Directory API errors)
    +-- DirectoryAuthError      (401 / 403 and credential failures)
    +-- DirectoryRateLimitError (HTTP 429 rate-limit responses)
    +-- DirectoryNotFoundError  (HTTP 404 on get/delete)
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, TypeVar

import httplib2
from google.auth import exceptions as auth_exceptions
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------


class DirectoryAPIError(Exception):
    """Base exception for Google Directory API errors.

    A sync pass that hits one of these while listing users is aborted.

    Attributes:
        status_code: HTTP status code from the API, or ``None`` if the
            error did not originate from an HTTP response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DirectoryAuthError(DirectoryAPIError):
    """Raised when Directory API authentication or authorization fails.

    Covers HTTP 401/403 responses, rejected service-account or delegated
    tokens (``status_code`` is ``None`` then), and unusable credential
    files.
    """

    def __init__(
        self,
        message: str = "Directory authentication failed",
        status_code: int | None = 401,
    ) -> None:
        super().__init__(message, status_code=status_code)


class DirectoryRateLimitError(DirectoryAPIError):
    """Raised when the Directory API returns HTTP 429 (rate limit exceeded)."""

    def __init__(self, message: str = "Directory API rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class DirectoryNotFoundError(DirectoryAPIError):
    """Raised when a directory user does not exist (HTTP 404)."""

    def __init__(self, message: str = "Directory resource not found") -> None:
        super().__init__(message, status_code=404)


# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------

_DEFAULT_MAX_RETRIES = 3
_DEFAULT_BASE_DELAY = 1.0  # seconds

# Everything a Directory call can raise below our own exception types.
_CALL_FAILURES = (
    HttpError,
    auth_exceptions.GoogleAuthError,
    httplib2.HttpLib2Error,
    OSError,
)


class _Action(Enum):
    BACKOFF = "backoff"
    REFRESH = "refresh"
    FAIL = "fail"


def _classify_http_error(error: HttpError) -> tuple[DirectoryAPIError, _Action]:
    status = error.resp.status

    if status == 404:
        return DirectoryNotFoundError(str(error)), _Action.FAIL
    if status == 429:
        return DirectoryRateLimitError(str(error)), _Action.BACKOFF
    if status == 401:
        return DirectoryAuthError(str(error), status_code=401), _Action.REFRESH
    if status == 403:
        # Missing admin privilege or delegation scope.
        return DirectoryAuthError(str(error), status_code=403), _Action.FAIL
    if status >= 500:
        return DirectoryAPIError(str(error), status_code=status), _Action.BACKOFF
    return DirectoryAPIError(str(error), status_code=status), _Action.FAIL


def _classify(exc: BaseException) -> tuple[DirectoryAPIError, _Action]:
    """Map a low-level failure to a directory exception and what to do next.

    Args:
        exc: An exception from :data:`_CALL_FAILURES`.

    Returns:
        ``(error, action)``.  *error* is raised once retries are over;
        *action* says whether to back off, refresh credentials, or stop.
    """
    if isinstance(exc, HttpError):
        return _classify_http_error(exc)
    if isinstance(exc, auth_exceptions.TransportError):
        return DirectoryAPIError(f"Token endpoint unreachable: {exc}"), _Action.BACKOFF
    if isinstance(exc, auth_exceptions.GoogleAuthError):
        return (
            DirectoryAuthError(f"Directory credentials rejected: {exc}", status_code=None),
            _Action.FAIL,
        )
    return DirectoryAPIError(f"Network error: {exc}"), _Action.BACKOFF


def _refresh_owner(args: Sequence[Any]) -> None:
    """Call ``_refresh_credentials`` on the decorated method's instance."""
    owner = args[0] if args else None
    refresh = getattr(owner, "_refresh_credentials", None)
    if not callable(refresh):
        logger.warning("Auth expired (401) and no credential refresh is available")
        return

    logger.warning("Auth expired (401), refreshing directory credentials")
    try:
        refresh()
    except Exception as refresh_exc:
        logger.error("Token refresh failed: %s", refresh_exc)
        raise DirectoryAuthError(f"Token refresh failed: {refresh_exc}") from refresh_exc


def _exhausted(error: DirectoryAPIError, exc: BaseException, max_retries: int) -> DirectoryAPIError:
    if error.status_code is None:
        return DirectoryAPIError(f"Network error after {max_retries} retries: {exc}")
    return error


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------


def with_retry(
    max_retries: int = _DEFAULT_MAX_RETRIES,
    base_delay: float = _DEFAULT_BASE_DELAY,
) -> Callable[[F], F]:
    """Decorator that retries Directory API calls on transient failures.

    Retry policy:
    - **HTTP 429** and **5xx**: exponential backoff, up to *max_retries*.
    - **Network errors** (``OSError``, ``httplib2.HttpLib2Error``,
      ``google.auth.exceptions.TransportError``): exponential backoff, up
      to *max_retries*, then :class:`DirectoryAPIError`.
    - **HTTP 401**: refresh credentials via ``self._refresh_credentials()``
      (if available), retry once.
    - **Rejected credentials** (``RefreshError`` and other
      ``GoogleAuthError``): raise :class:`DirectoryAuthError` immediately.
    - **HTTP 403**: raise :class:`DirectoryAuthError` immediately.
    - **HTTP 404**: raise :class:`DirectoryNotFoundError` immediately.
    - Other HTTP errors: raise :class:`DirectoryAPIError` immediately.

    Nothing outside the :class:`DirectoryAPIError` hierarchy escapes a
    decorated call for these failure types.

    Args:
        max_retries: Maximum number of backoff retries.  Defaults to 3.
        base_delay: Initial backoff delay in seconds.  Doubled on each
            subsequent retry.  Defaults to 1.0.

    Returns:
        A decorator that wraps the target function with retry logic.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            backoffs = 0
            refreshed = False

            while True:
                try:
                    return func(*args, **kwargs)
                except _CALL_FAILURES as exc:
                    error, action = _classify(exc)

                    if action is _Action.REFRESH and not refreshed:
                        refreshed = True
                        _refresh_owner(args)
                        continue

                    if action is _Action.BACKOFF:
                        if backoffs < max_retries:
                            delay = base_delay * (2**backoffs)
                            backoffs += 1
                            logger.warning(
                                "Directory call %s failed (%s), retrying in %.1fs (attempt %d/%d)",
                                func.__name__,
                                error.status_code or "network",
                                delay,
                                backoffs,
                                max_retries,
                            )
                            time.sleep(delay)
                            continue
                        error = _exhausted(error, exc, max_retries)

                    if isinstance(error, DirectoryNotFoundError):
                        logger.info("Directory resource not found (404): %s", exc)
                    else:
                        logger.error("Directory call %s failed: %s", func.__name__, error)
                    raise error from exc

        return wrapper  # type: ignore[return-value]

    return decorator
