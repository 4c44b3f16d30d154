"""Tests for per-record reconciliation.

Test matrix:

| Test | Scenario | Expected |
|---|---|---|
| test_new_user_created | No local match | CREATED, row written |
| test_second_pass_skips_unchanged | Same record twice | SKIPPED "unchanged", no write |
| test_missing_email_skipped | primary_email="" | SKIPPED, store untouched |
| test_missing_external_id_skipped | external_id="" | SKIPPED, store untouched |
| test_location_change_detected | Org unit moved | UPDATED, changed=[location] |
| test_email_change_matched_by_external_id | New email, same ID | UPDATED, one row |
| test_store_failure_is_errored | create() raises | ERRORED, no exception |
| test_ambiguous_match_is_errored | Email and ID on two rows | ERRORED |
| test_dry_run_never_writes | dry_run=True | Classified, store unchanged |
| test_writes_invalidate_cache | Create / update | User and domain entries dropped |
"""

from __future__ import annotations

from unittest.mock import MagicMock, create_autospec

import pytest

from gws_sync.cache import DirectoryCache
from gws_sync.exceptions import StoreWriteError
from gws_sync.models.sync import OutcomeKind
from gws_sync.store.base import EmployeeStore
from gws_sync.store.sql import SqlEmployeeStore
from gws_sync.sync.differ import (
    SKIP_MISSING_EMAIL,
    SKIP_MISSING_ID,
    SKIP_UNCHANGED,
    Differencer,
)


class TestCreateOrSkip:
    """New users are created once; repeat passes are no-ops."""

    def test_new_user_created(self, store: SqlEmployeeStore, make_record) -> None:
        outcome = Differencer(store).process(make_record())

        assert outcome.kind is OutcomeKind.CREATED
        employee = store.find_by_email("jane.doe@example.com")
        assert employee is not None
        assert employee.employee_id == "u-1"
        assert employee.name == "Jane Doe"
        assert employee.location == "Sales Office"
        assert employee.projects == []

    def test_second_pass_skips_unchanged(self, store: SqlEmployeeStore, make_record) -> None:
        differ = Differencer(store)
        differ.process(make_record())

        outcome = differ.process(make_record())

        assert outcome.kind is OutcomeKind.SKIPPED
        assert outcome.reason == SKIP_UNCHANGED
        assert len(store.all()) == 1

    def test_unknown_user_name_fallback(self, store: SqlEmployeeStore, make_record) -> None:
        Differencer(store).process(make_record(given_name="", family_name=""))

        employee = store.find_by_email("jane.doe@example.com")
        assert employee is not None
        assert employee.name == "Unknown User"

    def test_unmapped_org_unit_has_no_location(
        self, store: SqlEmployeeStore, make_record
    ) -> None:
        Differencer(store).process(make_record(org_unit_path="/Contractors"))

        employee = store.find_by_email("jane.doe@example.com")
        assert employee is not None
        assert employee.location is None


class TestSkips:
    """Records without identity are skipped without touching the store."""

    def test_missing_email_skipped(self, make_record) -> None:
        store = create_autospec(EmployeeStore, instance=True)

        outcome = Differencer(store).process(make_record(primary_email=""))

        assert outcome.kind is OutcomeKind.SKIPPED
        assert outcome.reason == SKIP_MISSING_EMAIL
        store.find_by_email_or_external_id.assert_not_called()

    def test_missing_external_id_skipped(self, make_record) -> None:
        store = create_autospec(EmployeeStore, instance=True)

        outcome = Differencer(store).process(make_record(external_id=""))

        assert outcome.kind is OutcomeKind.SKIPPED
        assert outcome.reason == SKIP_MISSING_ID
        store.find_by_email_or_external_id.assert_not_called()
        store.create.assert_not_called()


class TestUpdates:
    """Tracked-field differences produce a single update."""

    def test_location_change_detected(self, store: SqlEmployeeStore, make_record) -> None:
        differ = Differencer(store)
        differ.process(make_record(org_unit_path="/一般"))

        outcome = differ.process(make_record(org_unit_path="/開発"))

        assert outcome.kind is OutcomeKind.UPDATED
        assert outcome.changed_fields == ("location",)
        employee = store.find_by_email("jane.doe@example.com")
        assert employee is not None
        assert employee.location == "Development Office"

    def test_email_change_matched_by_external_id(
        self, store: SqlEmployeeStore, make_record
    ) -> None:
        differ = Differencer(store)
        differ.process(make_record())

        outcome = differ.process(make_record(primary_email="jane.smith@example.com"))

        assert outcome.kind is OutcomeKind.UPDATED
        assert "email" in outcome.changed_fields
        assert [e.email for e in store.all()] == ["jane.smith@example.com"]

    def test_update_keeps_projects(self, store: SqlEmployeeStore, make_record) -> None:
        differ = Differencer(store)
        differ.process(make_record())
        employee = store.find_by_email("jane.doe@example.com")
        store.update(employee, {"projects": ["apollo"]})

        differ.process(make_record(given_name="Janet"))

        employee = store.find_by_email("jane.doe@example.com")
        assert employee.name == "Janet Doe"
        assert employee.projects == ["apollo"]

    def test_local_edit_overwritten(self, store: SqlEmployeeStore, make_record) -> None:
        """Reconciliation is last-write-wins on tracked fields."""
        differ = Differencer(store)
        differ.process(make_record())
        employee = store.find_by_email("jane.doe@example.com")
        store.update(employee, {"name": "Locally Renamed"})

        outcome = differ.process(make_record())

        assert outcome.kind is OutcomeKind.UPDATED
        assert store.find_by_email("jane.doe@example.com").name == "Jane Doe"


class TestErrors:
    """Store failures are counted, never raised."""

    def test_store_failure_is_errored(self, make_record) -> None:
        store = create_autospec(EmployeeStore, instance=True)
        store.find_by_email_or_external_id.return_value = None
        store.create.side_effect = StoreWriteError("disk full")

        outcome = Differencer(store).process(make_record())

        assert outcome.kind is OutcomeKind.ERRORED
        assert outcome.error == "disk full"

    def test_ambiguous_match_is_errored(self, store: SqlEmployeeStore, make_record) -> None:
        differ = Differencer(store)
        differ.process(make_record())
        differ.process(make_record(external_id="u-2", primary_email="john@example.com"))

        outcome = differ.process(make_record(external_id="u-2"))

        assert outcome.kind is OutcomeKind.ERRORED
        assert len(store.all()) == 2


class TestDryRun:
    """Dry runs classify without writing."""

    def test_dry_run_never_writes(self, store: SqlEmployeeStore, make_record) -> None:
        differ = Differencer(store, dry_run=True)

        created = differ.process(make_record())

        assert created.kind is OutcomeKind.CREATED
        assert store.all() == []

    def test_dry_run_reports_update(self, store: SqlEmployeeStore, make_record) -> None:
        Differencer(store).process(make_record())

        outcome = Differencer(store, dry_run=True).process(make_record(org_unit_path="/管理"))

        assert outcome.kind is OutcomeKind.UPDATED
        assert store.find_by_email("jane.doe@example.com").location == "Sales Office"


class TestCacheInvalidation:
    """Writes drop the affected user and domain entries."""

    @pytest.fixture()
    def cache(self) -> MagicMock:
        return create_autospec(DirectoryCache, instance=True)

    def test_create_invalidates(self, store: SqlEmployeeStore, cache: MagicMock, make_record) -> None:
        Differencer(store, cache=cache).process(make_record())

        cache.invalidate_user.assert_called_once_with("jane.doe@example.com")
        cache.invalidate_domain.assert_called_once_with("example.com")

    def test_email_change_invalidates_both(
        self, store: SqlEmployeeStore, cache: MagicMock, make_record
    ) -> None:
        differ = Differencer(store, cache=cache)
        differ.process(make_record())
        cache.reset_mock()

        differ.process(make_record(primary_email="jane.smith@example.com"))

        invalidated = {c.args[0] for c in cache.invalidate_user.call_args_list}
        assert invalidated == {"jane.smith@example.com", "jane.doe@example.com"}

    def test_skip_does_not_invalidate(
        self, store: SqlEmployeeStore, cache: MagicMock, make_record
    ) -> None:
        differ = Differencer(store, cache=cache)
        differ.process(make_record())
        cache.reset_mock()

        differ.process(make_record())

        cache.invalidate_user.assert_not_called()
