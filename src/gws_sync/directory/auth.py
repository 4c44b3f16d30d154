"""Credentials for the Google Admin SDK Directory API.

Two kinds of credential files are supported:

- **Service-account key** (``"type": "service_account"``) -- the normal
  production setup.  The key must have domain-wide delegation; the
  configured Workspace administrator is impersonated via
  ``with_subject``.
- **OAuth client secrets** (``"installed"`` / ``"web"``) -- a desktop flow
  for running the sync as an administrator from a workstation.  The user
  token is cached on disk and refreshed between runs.

Usage::

    from gws_sync.directory.auth import get_directory_credentials

    creds = get_directory_credentials(
        credentials_path=Path("service-account.json"),
        admin_email="admin@example.com",
    )
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from google.auth.credentials import Credentials as BaseCredentials
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gws_sync.config import ConfigError
from gws_sync.directory.exceptions import DirectoryAuthError

logger = logging.getLogger(__name__)

SCOPES: list[str] = [
    "https://www.googleapis.com/auth/admin.directory.user.readonly",
]
"""OAuth 2.0 scopes required to read directory users."""


def get_directory_credentials(
    credentials_path: Path | str,
    admin_email: str,
    token_path: Path | str = "token.json",
) -> BaseCredentials:
    """Obtain credentials able to call the Directory API.

    Args:
        credentials_path: Service-account key or OAuth client secrets file.
        admin_email: Administrator to impersonate (service accounts only).
        token_path: Cached user token location (OAuth client secrets only).

    Returns:
        Credentials carrying the directory scope.

    Raises:
        ConfigError: If the admin email is empty or the credentials file is
            missing, unreadable, or not a recognised credential format.
            Raised before any API call is attempted.
        DirectoryAuthError: If the key is present but Google's auth library
            rejects it.
    """
    credentials_path = Path(credentials_path)

    if not admin_email:
        raise ConfigError("Google Workspace admin email not configured")

    info = _read_credentials_file(credentials_path)

    if info.get("type") == "service_account":
        return _service_account_credentials(info, admin_email)

    if "installed" in info or "web" in info:
        return _installed_app_credentials(credentials_path, Path(token_path))

    raise ConfigError(
        f"Unrecognised credentials file format at {credentials_path}: "
        "expected a service-account key or OAuth client secrets"
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_credentials_file(credentials_path: Path) -> dict:
    if not credentials_path.is_file():
        msg = f"Credentials file not found or unreadable at {credentials_path}"
        logger.error(msg)
        raise ConfigError(msg)

    try:
        return json.loads(credentials_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read credentials file {credentials_path}: {exc}") from exc


def _service_account_credentials(info: dict, admin_email: str) -> BaseCredentials:
    """Build delegated service-account credentials for *admin_email*."""
    try:
        creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, KeyError) as exc:
        raise DirectoryAuthError(f"Invalid service-account key: {exc}") from exc

    logger.info("Using service account %s acting as admin", info.get("client_email", "?"))
    return creds.with_subject(admin_email)


def _installed_app_credentials(credentials_path: Path, token_path: Path) -> Credentials:
    """Cached token, then refresh, then the browser flow."""
    creds = _load_cached_token(token_path)

    if creds is not None and creds.valid:
        logger.info("Loaded valid cached token from %s", token_path)
        return creds

    if creds is not None and creds.expired and creds.refresh_token:
        logger.info("Cached token expired, attempting refresh")
        refreshed = _refresh_token(creds)
        if refreshed is not None:
            _save_token(refreshed, token_path)
            return refreshed
        logger.warning("Token refresh failed, falling back to browser flow")

    logger.info("Starting browser-based OAuth flow")
    flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes=SCOPES)
    creds = flow.run_local_server(port=0)
    _save_token(creds, token_path)
    logger.info("New credentials obtained and saved to %s", token_path)
    return creds


def _load_cached_token(token_path: Path) -> Credentials | None:
    if not token_path.exists():
        logger.info("No cached token found at %s", token_path)
        return None

    try:
        return Credentials.from_authorized_user_file(str(token_path), SCOPES)
    except (json.JSONDecodeError, ValueError, KeyError) as exc:
        logger.warning("Failed to parse cached token at %s: %s", token_path, exc)
        return None


def _refresh_token(creds: Credentials) -> Credentials | None:
    try:
        creds.refresh(Request())
        logger.info("Token refresh succeeded")
        return creds
    except Exception as exc:
        logger.warning("Token refresh failed: %s", exc)
        return None


def _save_token(creds: Credentials, token_path: Path) -> None:
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    logger.info("Token saved to %s", token_path)
