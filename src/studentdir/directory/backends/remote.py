"""RestBackend - Student storage on a hosted PostgREST-compatible backend."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from studentdir.directory.exceptions import BackendError, DuplicateEmailError
from studentdir.directory.models import NewStudent, StudentRecord, StudentStatus
from studentdir.logging import scrub

logger = logging.getLogger("studentdir.directory.remote")

# PostgREST error code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"
# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def _quote(value: str) -> str:
    """Quote a value for use inside a PostgREST logic-tree filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _ilike_pattern(query: str) -> str:
    # '*' is the PostgREST wildcard; LIKE's own wildcards are matched literally
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"*{escaped}*"


class RestBackend:
    """Student storage on a hosted backend-as-a-service.

    Speaks the PostgREST dialect over HTTPS. The table is expected to declare a
    unique constraint on email.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        table: str = "manual_students",
    ) -> None:
        """Initialize the backend.

        Args:
            base_url: Project URL of the hosted backend (without /rest/v1)
            api_key: Public API key sent as the apikey header
            access_token: Bearer token of the signed-in administrator. The API
                key is used when omitted.
            table: Table holding the student records
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.table = table
        self._client: httpx.Client | None = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client for the REST API."""
        if self._client is None:
            self._client = httpx.Client(
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.access_token or self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request to the table endpoint.

        Raises:
            BackendError: If the request cannot be sent
        """
        try:
            return self.client.request(
                method, self.endpoint, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {self.table} failed: {e}") from e

    @staticmethod
    def _error_body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _error_code(self, response: httpx.Response) -> str | None:
        code = self._error_body(response).get("code")
        return str(code) if code is not None else None

    def _is_duplicate_email(self, response: httpx.Response) -> bool:
        body = self._error_body(response)
        if str(body.get("code")) != UNIQUE_VIOLATION_CODE:
            return False
        text = f"{body.get('message') or ''} {body.get('details') or ''}"
        return "email" in text.lower()

    def _fail(self, response: httpx.Response, action: str) -> BackendError:
        detail = scrub(response.text)
        logger.error("%s failed: %s - %s", action, response.status_code, detail)
        return BackendError(f"Failed to {action}: {response.status_code} - {detail}")

    def _rows(self, response: httpx.Response, action: str) -> list[StudentRecord]:
        if not response.is_success:
            raise self._fail(response, action)
        try:
            return [StudentRecord.from_row(row) for row in response.json() or []]
        except (ValueError, KeyError, TypeError) as e:
            raise BackendError(f"Malformed response to {action}: {e}") from e

    def insert(self, student: NewStudent) -> StudentRecord | None:
        row = {
            "name": student.name,
            "email": student.email,
            "notes": student.notes,
            "added_by": student.added_by,
            "status": StudentStatus.ACTIVE.value,
        }
        response = self._request(
            "POST", json=[row], headers={"Prefer": "return=representation"}
        )
        if self._is_duplicate_email(response):
            raise DuplicateEmailError(f"Email '{student.email}' is already registered")
        records = self._rows(response, "insert student")
        return records[0] if records else None

    def find_by_email(
        self, email: str, status: StudentStatus | None = None
    ) -> StudentRecord | None:
        params = {"select": "*", "email": f"eq.{email}"}
        if status is not None:
            params["status"] = f"eq.{status.value}"
        response = self._request("GET", params=params, headers={"Accept": SINGLE_OBJECT})
        if response.status_code == 406 and self._error_code(response) == NO_ROWS_CODE:
            # PGRST116 is also returned for several rows; only zero rows is "not found"
            details = str(self._error_body(response).get("details") or "")
            if not details or "0 rows" in details:
                return None
            raise BackendError(f"Several students share the email '{email}': {details}")
        if not response.is_success:
            raise self._fail(response, f"look up '{email}'")
        try:
            return StudentRecord.from_row(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise BackendError(f"Malformed student row for '{email}': {e}") from e

    def list_all(self) -> list[StudentRecord]:
        response = self._request("GET", params={"select": "*", "order": "added_at.desc"})
        return self._rows(response, "list students")

    def search(self, query: str) -> list[StudentRecord]:
        pattern = _quote(_ilike_pattern(query))
        params = {
            "select": "*",
            "or": f"(name.ilike.{pattern},email.ilike.{pattern})",
            "order": "added_at.desc",
        }
        response = self._request("GET", params=params)
        return self._rows(response, f"search students for '{query}'")

    def delete(self, student_id: str) -> None:
        response = self._request("DELETE", params={"id": f"eq.{student_id}"})
        if not response.is_success:
            raise self._fail(response, f"delete student '{student_id}'")

    def set_status(self, student_id: str, status: StudentStatus) -> None:
        response = self._request(
            "PATCH", params={"id": f"eq.{student_id}"}, json={"status": status.value}
        )
        if not response.is_success:
            raise self._fail(response, f"set status of student '{student_id}'")

    def count(
        self,
        status: StudentStatus | None = None,
        added_since: datetime | None = None,
    ) -> int:
        params = {"select": "id"}
        if status is not None:
            params["status"] = f"eq.{status.value}"
        if added_since is not None:
            params["added_at"] = f"gte.{added_since.astimezone(UTC).isoformat()}"
        response = self._request("HEAD", params=params, headers={"Prefer": "count=exact"})
        if not response.is_success:
            raise self._fail(response, "count students")
        return self._parse_count(response.headers.get("content-range"))

    @staticmethod
    def _parse_count(content_range: str | None) -> int:
        """Read the total from a Content-Range header such as '0-24/312' or '*/0'."""
        if not content_range or "/" not in content_range:
            raise BackendError(f"Missing count in Content-Range: {content_range!r}")
        total = content_range.rsplit("/", 1)[1]
        if not total.isdigit():
            raise BackendError(f"Unexpected count in Content-Range: {content_range!r}")
        return int(total)
