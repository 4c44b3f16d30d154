"""Tests for the Google Directory client.

Covers :class:`~gws_sync.directory.client.GoogleDirectoryClient` request
building, response mapping, caching and monitoring.  The service resource is
a ``MagicMock`` so no HTTP traffic happens.

Test matrix:

| Test | Scenario | Expected |
|---|---|---|
| test_list_users_request_params | Default call | domain/projection/orderBy/maxResults sent |
| test_list_users_page_token_and_updated_min | Token + cutoff | pageToken and updatedMin sent |
| test_list_users_clamps_max_results | 1000 requested | maxResults=500 |
| test_list_users_org_unit_query | org unit filter | orgUnitPath clause in query |
| test_list_users_maps_page | Two users + token | UserPage with records and token |
| test_list_users_served_from_cache | Same call twice | One API call, cache hit tracked |
| test_get_user_maps_record | users().get | RemoteUserRecord returned |
| test_get_user_cached | Same email twice | One API call |
| test_get_user_not_found | HTTP 404 | DirectoryNotFoundError |
| test_monitor_records_calls | Any call | Duration tracked per method |
| test_monitor_records_errors | HTTP 400 | Error counted |
| test_refresh_credentials_rebuilds_service | 401 hook | refresh() + build() |
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError
from httplib2 import Response

from gws_sync.cache import DirectoryCache
from gws_sync.directory.client import GoogleDirectoryClient
from gws_sync.directory.exceptions import DirectoryAPIError, DirectoryNotFoundError
from gws_sync.monitoring import ApiMonitor

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _http_error(status: int) -> HttpError:
    return HttpError(Response({"status": str(status)}), b"simulated error")


def _list_kwargs(service: MagicMock) -> dict:
    return service.users.return_value.list.call_args.kwargs


@pytest.fixture()
def client(mock_credentials: MagicMock, mock_service: MagicMock) -> GoogleDirectoryClient:
    mock_service.users.return_value.list.return_value.execute.return_value = {"users": []}
    return GoogleDirectoryClient(credentials=mock_credentials, service=mock_service)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestListUsers:
    """Tests for list_users and its convenience wrappers."""

    def test_list_users_request_params(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        client.list_users("example.com")

        assert _list_kwargs(mock_service) == {
            "domain": "example.com",
            "projection": "full",
            "orderBy": "email",
            "maxResults": 100,
        }

    def test_list_users_page_token_and_updated_min(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        client.list_users(
            "example.com",
            max_results=50,
            page_token="tok-2",
            updated_min="2024-06-01T00:00:00+00:00",
        )

        kwargs = _list_kwargs(mock_service)
        assert kwargs["maxResults"] == 50
        assert kwargs["pageToken"] == "tok-2"
        assert kwargs["updatedMin"] == "2024-06-01T00:00:00+00:00"

    def test_list_users_clamps_max_results(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        client.list_users("example.com", max_results=1000)

        assert _list_kwargs(mock_service)["maxResults"] == 500

    def test_list_users_org_unit_query(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        client.list_users_by_org_unit("example.com", "/開発")

        assert _list_kwargs(mock_service)["query"] == "orgUnitPath='/開発'"

    def test_search_users_combines_query(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        client.search_users("example.com", "givenName:Jane*")

        assert _list_kwargs(mock_service)["query"] == "givenName:Jane*"

    def test_list_recently_modified_users(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        client.list_recently_modified_users("example.com", "2024-06-01T00:00:00Z")

        assert _list_kwargs(mock_service)["updatedMin"] == "2024-06-01T00:00:00Z"

    def test_list_users_maps_page(
        self,
        client: GoogleDirectoryClient,
        mock_service: MagicMock,
        make_directory_user,
    ) -> None:
        mock_service.users.return_value.list.return_value.execute.return_value = {
            "users": [make_directory_user(), make_directory_user(id="2", primaryEmail="b@example.com")],
            "nextPageToken": "tok-2",
        }

        page = client.list_users("example.com")

        assert [r.primary_email for r in page.records] == [
            "jane.doe@example.com",
            "b@example.com",
        ]
        assert page.next_page_token == "tok-2"

    def test_list_users_served_from_cache(
        self, mock_credentials: MagicMock, mock_service: MagicMock
    ) -> None:
        mock_service.users.return_value.list.return_value.execute.return_value = {"users": []}
        monitor = ApiMonitor()
        client = GoogleDirectoryClient(
            mock_credentials, service=mock_service, cache=DirectoryCache(), monitor=monitor
        )

        client.list_users("example.com")
        client.list_users("example.com")

        assert mock_service.users.return_value.list.return_value.execute.call_count == 1
        assert monitor.cache["list_users"].hits == 1
        assert monitor.cache["list_users"].misses == 1

    def test_list_users_different_pages_not_shared(
        self, mock_credentials: MagicMock, mock_service: MagicMock
    ) -> None:
        mock_service.users.return_value.list.return_value.execute.return_value = {"users": []}
        client = GoogleDirectoryClient(mock_credentials, service=mock_service, cache=DirectoryCache())

        client.list_users("example.com")
        client.list_users("example.com", page_token="tok-2")

        assert mock_service.users.return_value.list.return_value.execute.call_count == 2


# ---------------------------------------------------------------------------
# Single user
# ---------------------------------------------------------------------------


class TestGetUser:
    """Tests for get_user."""

    def test_get_user_maps_record(
        self,
        client: GoogleDirectoryClient,
        mock_service: MagicMock,
        make_directory_user,
    ) -> None:
        mock_service.users.return_value.get.return_value.execute.return_value = (
            make_directory_user()
        )

        record = client.get_user("jane.doe@example.com")

        mock_service.users.return_value.get.assert_called_once_with(
            userKey="jane.doe@example.com", projection="full"
        )
        assert record.external_id == "108234567890"

    def test_get_user_cached(
        self, mock_credentials: MagicMock, mock_service: MagicMock, make_directory_user
    ) -> None:
        mock_service.users.return_value.get.return_value.execute.return_value = (
            make_directory_user()
        )
        client = GoogleDirectoryClient(mock_credentials, service=mock_service, cache=DirectoryCache())

        first = client.get_user("jane.doe@example.com")
        second = client.get_user("Jane.Doe@example.com")

        assert first == second
        assert mock_service.users.return_value.get.return_value.execute.call_count == 1

    def test_get_user_not_found(
        self, client: GoogleDirectoryClient, mock_service: MagicMock
    ) -> None:
        mock_service.users.return_value.get.return_value.execute.side_effect = _http_error(404)

        with pytest.raises(DirectoryNotFoundError):
            client.get_user("ghost@example.com")


# ---------------------------------------------------------------------------
# Monitoring and credential refresh
# ---------------------------------------------------------------------------


class TestMonitoring:
    """Calls are reported to the monitor."""

    def test_monitor_records_calls(
        self, mock_credentials: MagicMock, mock_service: MagicMock
    ) -> None:
        mock_service.users.return_value.list.return_value.execute.return_value = {"users": []}
        monitor = ApiMonitor()
        client = GoogleDirectoryClient(mock_credentials, service=mock_service, monitor=monitor)

        client.list_users("example.com")

        assert monitor.methods["list_users"].count == 1

    def test_monitor_records_errors(
        self, mock_credentials: MagicMock, mock_service: MagicMock
    ) -> None:
        mock_service.users.return_value.list.return_value.execute.side_effect = _http_error(400)
        monitor = ApiMonitor()
        client = GoogleDirectoryClient(mock_credentials, service=mock_service, monitor=monitor)

        with pytest.raises(DirectoryAPIError):
            client.list_users("example.com")

        assert monitor.errors == {"list_users": 1}


class TestRefreshCredentials:
    """The 401 hook refreshes and rebuilds the service."""

    def test_refresh_credentials_rebuilds_service(
        self, mock_credentials: MagicMock, mock_service: MagicMock
    ) -> None:
        client = GoogleDirectoryClient(mock_credentials, service=mock_service)
        rebuilt = MagicMock()

        with patch("gws_sync.directory.client.build", return_value=rebuilt) as mock_build:
            client._refresh_credentials()

        mock_credentials.refresh.assert_called_once()
        mock_build.assert_called_once_with(
            "admin", "directory_v1", credentials=mock_credentials, cache_discovery=False
        )
        assert client._service is rebuilt

    def test_builds_service_when_not_given(self, mock_credentials: MagicMock) -> None:
        with patch("gws_sync.directory.client.build") as mock_build:
            GoogleDirectoryClient(mock_credentials)

        mock_build.assert_called_once_with(
            "admin", "directory_v1", credentials=mock_credentials, cache_discovery=False
        )
