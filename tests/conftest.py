"""Shared fixtures for gws-sync tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

from gws_sync.models.directory import RemoteUserRecord
from gws_sync.store.sql import SqlEmployeeStore, create_store


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required environment variables to valid defaults.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("gws_sync.config.load_dotenv", lambda *_a, **_kw: None)
    env_vars = {
        "GOOGLE_WORKSPACE_CREDENTIALS_PATH": "/secrets/service-account.json",
        "GOOGLE_WORKSPACE_ADMIN_EMAIL": "admin@example.com",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    for key in (
        "GOOGLE_WORKSPACE_TOKEN_PATH",
        "EMPLOYEE_DATABASE_URL",
        "SYNC_BATCH_SIZE",
        "SYNC_DELAY_SECONDS",
        "CACHE_USER_TTL",
        "CACHE_DEFAULT_TTL",
        "SLOW_REQUEST_THRESHOLD_MS",
        "SYNC_CHECKPOINT_PATH",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all gws-sync-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("gws_sync.config.load_dotenv", lambda *_a, **_kw: None)
    for key in (
        "GOOGLE_WORKSPACE_CREDENTIALS_PATH",
        "GOOGLE_WORKSPACE_ADMIN_EMAIL",
        "GOOGLE_WORKSPACE_TOKEN_PATH",
        "EMPLOYEE_DATABASE_URL",
        "SYNC_BATCH_SIZE",
        "SYNC_DELAY_SECONDS",
        "SYNC_CHECKPOINT_PATH",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def store() -> SqlEmployeeStore:
    """Return an employee store backed by a fresh in-memory SQLite database."""
    return create_store("sqlite://")


@pytest.fixture()
def make_record():
    """Factory for :class:`RemoteUserRecord` with sensible defaults."""

    def _make(
        external_id: str = "u-1",
        primary_email: str = "jane.doe@example.com",
        given_name: str = "Jane",
        family_name: str = "Doe",
        org_unit_path: str | None = "/営業",
        **extra: object,
    ) -> RemoteUserRecord:
        return RemoteUserRecord(
            external_id=external_id,
            primary_email=primary_email,
            given_name=given_name,
            family_name=family_name,
            org_unit_path=org_unit_path,
            **extra,
        )

    return _make


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
