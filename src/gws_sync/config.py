"""Configuration loading for gws-sync.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        credentials_path: Path to the service-account key (or OAuth client
            secrets) JSON file.
        admin_email: Workspace administrator impersonated by the service
            account.
        token_path: Cached OAuth token location (installed-app flow only).
        database_url: SQLAlchemy URL of the employee database.
        batch_size: Directory page size for full passes.
        delay_seconds: Pause between directory pages.
        cache_user_ttl: Seconds a fetched user stays cached.
        cache_default_ttl: Seconds a listed page stays cached.
        slow_request_threshold_ms: Directory calls slower than this are
            logged as warnings.
        checkpoint_path: JSON file holding per-domain sync checkpoints, or
            ``None`` to disable checkpointing.
        log_level: Logging level (default ``"INFO"``).
    """

    credentials_path: str
    admin_email: str
    token_path: str = "token.json"
    database_url: str = "sqlite:///employees.db"
    batch_size: int = 100
    delay_seconds: float = 1.0
    cache_user_ttl: int = 3600
    cache_default_ttl: int = 1800
    slow_request_threshold_ms: float = 2000.0
    checkpoint_path: str | None = None
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Settings(credentials_path='***', "
            f"admin_email={self.admin_email!r}, "
            f"database_url={self.database_url!r}, "
            f"batch_size={self.batch_size!r}, "
            f"delay_seconds={self.delay_seconds!r}, "
            f"checkpoint_path={self.checkpoint_path!r}, "
            f"log_level={self.log_level!r})"
        )


# Optional variables: env var -> (field name, converter).
_OPTIONAL: dict[str, tuple[str, type]] = {
    "GOOGLE_WORKSPACE_TOKEN_PATH": ("token_path", str),
    "EMPLOYEE_DATABASE_URL": ("database_url", str),
    "SYNC_BATCH_SIZE": ("batch_size", int),
    "SYNC_DELAY_SECONDS": ("delay_seconds", float),
    "CACHE_USER_TTL": ("cache_user_ttl", int),
    "CACHE_DEFAULT_TTL": ("cache_default_ttl", int),
    "SLOW_REQUEST_THRESHOLD_MS": ("slow_request_threshold_ms", float),
    "SYNC_CHECKPOINT_PATH": ("checkpoint_path", str),
    "LOG_LEVEL": ("log_level", str),
}


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any required environment variable is missing,
            empty, or whitespace-only (the message names **all** missing
            variables), or if a numeric setting cannot be parsed or is
            negative.
    """
    load_dotenv()

    required = {
        "GOOGLE_WORKSPACE_CREDENTIALS_PATH": "credentials_path",
        "GOOGLE_WORKSPACE_ADMIN_EMAIL": "admin_email",
    }

    values: dict[str, object] = {}
    missing: list[str] = []

    for env_var, field_name in required.items():
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            missing.append(env_var)
        else:
            values[field_name] = raw.strip()

    if missing:
        names = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {names}")

    for env_var, (field_name, converter) in _OPTIONAL.items():
        raw = os.environ.get(env_var, "").strip()
        if not raw:
            continue
        try:
            value = converter(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_var}: {raw!r}") from exc
        if isinstance(value, (int, float)) and value < 0:
            raise ConfigError(f"{env_var} must not be negative, got {raw!r}")
        values[field_name] = value

    if values.get("batch_size") == 0:
        raise ConfigError("SYNC_BATCH_SIZE must be at least 1")

    return Settings(**values)  # type: ignore[arg-type]
