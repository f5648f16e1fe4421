"""StudentDirectory - Main API for manually-added students."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studentdir.directory.exceptions import (
    BackendError,
    DuplicateEmailError,
    InvalidStudentDataError,
    PersistenceError,
)
from studentdir.directory.models import (
    NewStudent,
    StudentRecord,
    StudentStats,
    StudentStatus,
    normalize_email,
    start_of_month,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from studentdir.directory.backends.base import StudentBackend
    from studentdir.integrations.notifications import WelcomeNotifier
    from studentdir.integrations.purchases import PurchaseVerifier

logger = logging.getLogger("studentdir.directory")


class StudentDirectory:
    """Main API for the manual student directory.

    Write operations (add, remove, status update) raise on storage faults.
    Read operations (list, search, lookup, stats) log the fault and return an
    empty or zeroed result instead, so an empty answer can also mean the
    backend is down. Welcome emails never affect the outcome of an add.
    """

    def __init__(
        self,
        backend: StudentBackend,
        verifier: PurchaseVerifier | None = None,
        notifier: WelcomeNotifier | None = None,
        month_start: Callable[[], datetime] = start_of_month,
    ) -> None:
        """Initialize the directory.

        Args:
            backend: Storage backend holding the student records
            verifier: Purchase-verification collaborator (optional)
            notifier: Welcome-email collaborator (optional)
            month_start: Returns the start of the current month for stats
        """
        self._backend = backend
        self._verifier = verifier
        self._notifier = notifier
        self._month_start = month_start

    @property
    def backend(self) -> StudentBackend:
        return self._backend

    def close(self) -> None:
        """Close the backend and any collaborator that holds a connection."""
        self._backend.close()
        for collaborator in (self._verifier, self._notifier):
            close = getattr(collaborator, "close", None)
            if close is not None:
                close()

    # --- Write Operations ---

    def add_student(self, data: NewStudent) -> StudentRecord:
        """Add a student manually.

        Args:
            data: Name, email, optional notes and the adding administrator

        Returns:
            The stored record, including server-assigned fields

        Raises:
            InvalidStudentDataError: If name, email or added_by is empty
            DuplicateEmailError: If a student with the same email already exists
            PersistenceError: If the record could not be written
        """
        student = data.normalized()
        missing = [f for f in ("name", "email", "added_by") if not getattr(student, f)]
        if missing:
            raise InvalidStudentDataError(f"Missing required fields: {', '.join(missing)}")

        try:
            existing = self._backend.find_by_email(student.email)
        except BackendError as e:
            logger.error("Failed to check for existing student %s: %s", student.email, e)
            raise PersistenceError(f"Failed to add student '{student.email}': {e}") from e
        if existing is not None:
            raise DuplicateEmailError(f"Email '{student.email}' is already registered")

        try:
            record = self._backend.insert(student)
        except DuplicateEmailError:
            raise
        except BackendError as e:
            logger.error("Failed to add student %s: %s", student.email, e)
            raise PersistenceError(f"Failed to add student '{student.email}': {e}") from e

        if record is None:
            logger.error("Insert of %s returned no record", student.email)
            raise PersistenceError(f"No record returned after adding '{student.email}'")

        logger.info("Added student %s (%s) by %s", record.email, record.id, record.added_by)
        self._send_welcome(record)
        return record

    def remove_student(self, student_id: str) -> None:
        """Delete a student permanently.

        Unknown IDs are not an error. Use deactivate_student for a soft delete.

        Raises:
            PersistenceError: If the delete fails
        """
        try:
            self._backend.delete(student_id)
        except BackendError as e:
            logger.error("Failed to remove student %s: %s", student_id, e)
            raise PersistenceError(f"Failed to remove student '{student_id}': {e}") from e
        logger.info("Removed student %s", student_id)

    def update_student_status(self, student_id: str, status: StudentStatus | str) -> None:
        """Overwrite a student's status.

        Raises:
            InvalidStudentDataError: If status is not active or inactive
            PersistenceError: If the update fails
        """
        try:
            new_status = StudentStatus(status)
        except ValueError as e:
            raise InvalidStudentDataError(f"Invalid status '{status}'") from e

        try:
            self._backend.set_status(student_id, new_status)
        except BackendError as e:
            logger.error("Failed to update status of %s: %s", student_id, e)
            raise PersistenceError(f"Failed to update status of '{student_id}': {e}") from e
        logger.info("Student %s status set to %s", student_id, new_status.value)

    def deactivate_student(self, student_id: str) -> None:
        """Mark a student inactive, keeping the record."""
        self.update_student_status(student_id, StudentStatus.INACTIVE)

    def activate_student(self, student_id: str) -> None:
        """Mark a student active again."""
        self.update_student_status(student_id, StudentStatus.ACTIVE)

    # --- Read Operations ---

    def get_students(self) -> list[StudentRecord]:
        """List all students, most recently added first.

        Returns an empty list if the backend fails.
        """
        try:
            return self._backend.list_all()
        except BackendError as e:
            logger.error("Failed to list students: %s", e)
            return []

    def search_students(self, query: str) -> list[StudentRecord]:
        """Find students whose name or email contains the query (case-insensitive).

        Returns an empty list if the backend fails.
        """
        try:
            return self._backend.search(query.strip())
        except BackendError as e:
            logger.error("Failed to search students for %r: %s", query, e)
            return []

    def get_student_by_email(self, email: str) -> StudentRecord | None:
        """Get the active student with this email, or None."""
        email = normalize_email(email)
        try:
            record = self._backend.find_by_email(email, status=StudentStatus.ACTIVE)
        except BackendError as e:
            logger.error("Failed to look up student %s: %s", email, e)
            return None
        if record is None:
            logger.debug("No active student with email %s", email)
        return record

    def check_email_exists(self, email: str) -> bool:
        """Check whether an email may access the course.

        True when an active manual student has this email, otherwise the
        purchase-verification service decides. Any fault answers False.
        """
        email = normalize_email(email)
        try:
            if self._backend.find_by_email(email, status=StudentStatus.ACTIVE) is not None:
                return True
            if self._verifier is None:
                return False
            return self._verifier.verify(email)
        except Exception as e:
            logger.error("Failed to check email %s: %s", email, e)
            return False

    def get_student_stats(self) -> StudentStats:
        """Count students by status and added this month.

        Each count falls back to 0 on its own when it cannot be read.
        """
        return StudentStats(
            total=self._safe_count("total"),
            active=self._safe_count("active", status=StudentStatus.ACTIVE),
            inactive=self._safe_count("inactive", status=StudentStatus.INACTIVE),
            added_this_month=self._safe_count("added this month", added_since=self._month_start()),
        )

    def _safe_count(
        self,
        label: str,
        status: StudentStatus | None = None,
        added_since: datetime | None = None,
    ) -> int:
        try:
            return self._backend.count(status=status, added_since=added_since)
        except BackendError as e:
            logger.error("Failed to count %s students: %s", label, e)
            return 0

    def _send_welcome(self, record: StudentRecord) -> None:
        if self._notifier is None:
            logger.debug("No notifier configured, skipping welcome email for %s", record.email)
            return
        try:
            self._notifier.send_welcome(record)
        except Exception as e:
            logger.warning("Failed to send welcome email to %s: %s", record.email, e)
