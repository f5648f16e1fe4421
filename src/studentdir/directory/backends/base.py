"""Storage backend interface for the student directory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from datetime import datetime

    from studentdir.directory.models import NewStudent, StudentRecord, StudentStatus


class StudentBackend(Protocol):
    """Interface every storage backend implements.

    Storage faults are raised as BackendError. A unique-constraint violation
    on insert is raised as DuplicateEmailError. Emails passed in are already
    normalized.
    """

    def insert(self, student: NewStudent) -> StudentRecord | None:
        """Persist a new active student and return it as stored."""
        ...

    def find_by_email(
        self, email: str, status: StudentStatus | None = None
    ) -> StudentRecord | None:
        """Return the student with this email, or None when there is none."""
        ...

    def list_all(self) -> list[StudentRecord]:
        """All students, most recently added first."""
        ...

    def search(self, query: str) -> list[StudentRecord]:
        """Case-insensitive substring match on name or email, newest first."""
        ...

    def delete(self, student_id: str) -> None:
        """Delete a student by ID. Unknown IDs are a no-op."""
        ...

    def set_status(self, student_id: str, status: StudentStatus) -> None:
        """Overwrite the status of a student."""
        ...

    def count(
        self,
        status: StudentStatus | None = None,
        added_since: datetime | None = None,
    ) -> int:
        """Count students matching the optional filters."""
        ...

    def close(self) -> None:
        """Release connections held by the backend."""
        ...
