"""Unit tests for RestBackend."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import httpx
import pytest

from studentdir.directory import BackendError, DuplicateEmailError, NewStudent, StudentStatus
from studentdir.directory.backends import RestBackend

ENDPOINT = "https://project.example.co/rest/v1/manual_students"


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock HTTP client."""
    return MagicMock()


@pytest.fixture
def backend(mock_client: MagicMock) -> RestBackend:
    """Create a RestBackend instance with mocked client."""
    backend = RestBackend(
        base_url="https://project.example.co/",
        api_key="anon-key",
        access_token="admin-token",
    )
    backend._client = mock_client
    return backend


def _row(**overrides: object) -> dict:
    row = {
        "id": "8d3c1a5e-0000-4000-8000-000000000001",
        "name": "Ana Silva",
        "email": "ana@example.com",
        "notes": None,
        "added_by": "admin1",
        "added_at": "2026-03-15T12:00:00+00:00",
        "status": "active",
        "created_at": "2026-03-15T12:00:00.123+00:00",
        "updated_at": "2026-03-15T12:00:00.123+00:00",
    }
    row.update(overrides)
    return row


def _mock_response(
    status_code: int = 200,
    json_data: object = None,
    headers: dict | None = None,
    text: str = "",
) -> MagicMock:
    """Create a mock HTTP response."""
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.json.return_value = json_data
    response.headers = headers or {}
    response.text = text
    return response


def _call(mock_client: MagicMock) -> tuple[str, str, dict]:
    args, kwargs = mock_client.request.call_args
    return args[0], args[1], kwargs


@pytest.mark.unit
class TestClientSetup:
    """Tests for client construction."""

    def test_headers_carry_injected_credentials(self) -> None:
        """apikey and bearer token come from the constructor."""
        backend = RestBackend(base_url="https://p.example.co", api_key="anon", access_token="jwt")
        try:
            assert backend.client.headers["apikey"] == "anon"
            assert backend.client.headers["Authorization"] == "Bearer jwt"
        finally:
            backend.close()

    def test_bearer_falls_back_to_api_key(self) -> None:
        """Without an access token the API key is the bearer."""
        backend = RestBackend(base_url="https://p.example.co", api_key="anon")
        try:
            assert backend.client.headers["Authorization"] == "Bearer anon"
        finally:
            backend.close()

    def test_endpoint(self, backend: RestBackend) -> None:
        """Table endpoint under /rest/v1."""
        assert backend.endpoint == ENDPOINT


@pytest.mark.unit
class TestInsert:
    """Tests for insert."""

    def test_insert_returns_record(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Posts the row and parses the representation."""
        mock_client.request.return_value = _mock_response(201, [_row()])

        record = backend.insert(NewStudent("Ana Silva", "ana@example.com", "admin1"))

        assert record is not None
        assert record.email == "ana@example.com"
        assert record.status is StudentStatus.ACTIVE
        assert record.added_at == datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
        method, url, kwargs = _call(mock_client)
        assert method == "POST"
        assert url == ENDPOINT
        assert kwargs["json"][0]["status"] == "active"
        assert kwargs["headers"]["Prefer"] == "return=representation"

    def test_insert_empty_representation(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """None when the backend returns no rows."""
        mock_client.request.return_value = _mock_response(201, [])

        assert backend.insert(NewStudent("Ana", "ana@example.com", "admin1")) is None

    def test_insert_conflict_is_duplicate(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """Unique violation becomes DuplicateEmailError."""
        mock_client.request.return_value = _mock_response(
            409,
            {
                "code": "23505",
                "message": "duplicate key value violates unique constraint",
                "details": "Key (email)=(ana@example.com) already exists.",
            },
        )

        with pytest.raises(DuplicateEmailError):
            backend.insert(NewStudent("Ana", "ana@example.com", "admin1"))

    def test_insert_other_conflict_is_backend_error(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """A 409 from another constraint is not a duplicate email."""
        mock_client.request.return_value = _mock_response(
            409,
            {
                "code": "23503",
                "message": "insert or update violates foreign key constraint",
                "details": "Key (added_by)=(admin1) is not present.",
            },
            text='{"code":"23503"}',
        )

        with pytest.raises(BackendError) as exc_info:
            backend.insert(NewStudent("Ana", "ana@example.com", "admin1"))

        assert not isinstance(exc_info.value, DuplicateEmailError)
        assert "409" in str(exc_info.value)

    def test_error_body_credentials_redacted(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """Tokens echoed by the server do not reach the error message."""
        mock_client.request.return_value = _mock_response(
            401, {"message": "bad jwt"}, text='{"hint": "Bearer admin-token rejected"}'
        )

        with pytest.raises(BackendError) as exc_info:
            backend.list_all()

        assert "admin-token" not in str(exc_info.value)

    def test_insert_server_error(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Other failures are BackendError."""
        mock_client.request.return_value = _mock_response(
            500, {"message": "boom"}, text='{"message":"boom"}'
        )

        with pytest.raises(BackendError) as exc_info:
            backend.insert(NewStudent("Ana", "ana@example.com", "admin1"))

        assert "500" in str(exc_info.value)


@pytest.mark.unit
class TestFindByEmail:
    """Tests for find_by_email."""

    def test_found(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Single object requested with email and status filters."""
        mock_client.request.return_value = _mock_response(200, _row())

        record = backend.find_by_email("ana@example.com", status=StudentStatus.ACTIVE)

        assert record is not None
        assert record.name == "Ana Silva"
        _, _, kwargs = _call(mock_client)
        assert kwargs["params"]["email"] == "eq.ana@example.com"
        assert kwargs["params"]["status"] == "eq.active"
        assert kwargs["headers"]["Accept"] == "application/vnd.pgrst.object+json"

    def test_no_rows_returns_none(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """PGRST116 means not found, not a fault."""
        mock_client.request.return_value = _mock_response(
            406, {"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows"}
        )

        assert backend.find_by_email("nobody@example.com") is None

    def test_zero_rows_details(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """The usual PostgREST 'no rows' reply is not found."""
        mock_client.request.return_value = _mock_response(
            406, {"code": "PGRST116", "details": "The result contains 0 rows"}
        )

        assert backend.find_by_email("nobody@example.com") is None

    def test_several_rows_raises(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """PGRST116 for several rows is a fault, not a miss."""
        mock_client.request.return_value = _mock_response(
            406, {"code": "PGRST116", "details": "Results contain 2 rows"}
        )

        with pytest.raises(BackendError):
            backend.find_by_email("ana@example.com")

    def test_other_error_raises(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Any other error is a BackendError."""
        mock_client.request.return_value = _mock_response(401, {"code": "PGRST301"})

        with pytest.raises(BackendError):
            backend.find_by_email("ana@example.com")

    def test_transport_error_raises(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Connection failures are a BackendError."""
        mock_client.request.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(BackendError):
            backend.find_by_email("ana@example.com")


@pytest.mark.unit
class TestQueries:
    """Tests for list_all and search."""

    def test_list_all_orders_by_added_at(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """Requests newest first and parses rows."""
        mock_client.request.return_value = _mock_response(
            200, [_row(id="2", email="b@example.com"), _row(id="1")]
        )

        records = backend.list_all()

        assert [r.id for r in records] == ["2", "1"]
        _, _, kwargs = _call(mock_client)
        assert kwargs["params"]["order"] == "added_at.desc"

    def test_search_builds_or_filter(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Case-insensitive match on name or email."""
        mock_client.request.return_value = _mock_response(200, [_row()])

        records = backend.search("ana")

        assert len(records) == 1
        _, _, kwargs = _call(mock_client)
        assert kwargs["params"]["or"] == '(name.ilike."*ana*",email.ilike."*ana*")'
        assert kwargs["params"]["order"] == "added_at.desc"

    def test_search_quotes_reserved_characters(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """Commas and quotes cannot break out of the filter."""
        mock_client.request.return_value = _mock_response(200, [])

        backend.search('a,b"c')

        _, _, kwargs = _call(mock_client)
        assert kwargs["params"]["or"] == '(name.ilike."*a,b\\"c*",email.ilike."*a,b\\"c*")'

    def test_malformed_rows_raise(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Rows missing fields are a BackendError."""
        mock_client.request.return_value = _mock_response(200, [{"id": "1"}])

        with pytest.raises(BackendError):
            backend.list_all()


@pytest.mark.unit
class TestWrites:
    """Tests for delete and set_status."""

    def test_delete(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """DELETE filtered by id."""
        mock_client.request.return_value = _mock_response(204)

        backend.delete("abc")

        method, _, kwargs = _call(mock_client)
        assert method == "DELETE"
        assert kwargs["params"] == {"id": "eq.abc"}

    def test_delete_error(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """Failed delete is a BackendError."""
        mock_client.request.return_value = _mock_response(500, text="error")

        with pytest.raises(BackendError):
            backend.delete("abc")

    def test_set_status(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """PATCH with the new status only."""
        mock_client.request.return_value = _mock_response(204)

        backend.set_status("abc", StudentStatus.INACTIVE)

        method, _, kwargs = _call(mock_client)
        assert method == "PATCH"
        assert kwargs["params"] == {"id": "eq.abc"}
        assert kwargs["json"] == {"status": "inactive"}


@pytest.mark.unit
class TestCount:
    """Tests for count."""

    def test_count_reads_content_range(
        self, backend: RestBackend, mock_client: MagicMock
    ) -> None:
        """Total comes from Content-Range."""
        mock_client.request.return_value = _mock_response(
            200, headers={"content-range": "0-24/312"}
        )

        assert backend.count(status=StudentStatus.ACTIVE) == 312
        method, _, kwargs = _call(mock_client)
        assert method == "HEAD"
        assert kwargs["headers"]["Prefer"] == "count=exact"
        assert kwargs["params"]["status"] == "eq.active"

    def test_count_empty_table(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """'*/0' is zero."""
        mock_client.request.return_value = _mock_response(200, headers={"content-range": "*/0"})

        assert backend.count() == 0

    def test_count_added_since_in_utc(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """added_since is sent as an ISO timestamp."""
        mock_client.request.return_value = _mock_response(206, headers={"content-range": "*/5"})

        backend.count(added_since=datetime(2026, 3, 1, tzinfo=UTC))

        _, _, kwargs = _call(mock_client)
        assert kwargs["params"]["added_at"] == "gte.2026-03-01T00:00:00+00:00"

    def test_count_missing_header(self, backend: RestBackend, mock_client: MagicMock) -> None:
        """No Content-Range is a BackendError."""
        mock_client.request.return_value = _mock_response(200)

        with pytest.raises(BackendError):
            backend.count()
