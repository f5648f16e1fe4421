"""LocalBackend - SQLite storage for the student directory."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from studentdir.directory.backends.database import Database, ManualStudent
from studentdir.directory.exceptions import BackendError, DuplicateEmailError
from studentdir.directory.models import NewStudent, StudentRecord, StudentStatus

logger = logging.getLogger("studentdir.directory.local")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _to_db_time(value: datetime) -> datetime:
    """SQLite stores naive UTC timestamps."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _to_record(row: ManualStudent) -> StudentRecord:
    try:
        return row.to_record()
    except (ValueError, KeyError, TypeError) as e:
        raise BackendError(f"Unreadable student row '{row.id}': {e}") from e


class LocalBackend:
    """Student storage in a local SQLite database.

    In-memory by default, so records live only as long as the backend. Pass a
    file path to keep them across restarts.
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the backend and create the table if needed.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
            clock: Returns the current time; used for added_at.
        """
        self._db = Database(db_path)
        self._db.create_tables()
        self._clock = clock

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def insert(self, student: NewStudent) -> StudentRecord:
        session = self._db.get_session()
        try:
            row = ManualStudent(
                name=student.name,
                email=student.email,
                added_by=student.added_by,
                notes=student.notes,
                added_at=_to_db_time(self._clock()),
                status=StudentStatus.ACTIVE.value,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_record(row)
        except IntegrityError as e:
            session.rollback()
            if "manual_students.email" in str(e):
                raise DuplicateEmailError(f"Email '{student.email}' is already registered") from e
            raise BackendError(f"Failed to insert student: {e}") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise BackendError(f"Failed to insert student: {e}") from e
        finally:
            session.close()

    def find_by_email(
        self, email: str, status: StudentStatus | None = None
    ) -> StudentRecord | None:
        stmt = select(ManualStudent).where(ManualStudent.email == email)
        if status is not None:
            stmt = stmt.where(ManualStudent.status == status.value)
        session = self._db.get_session()
        try:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_record(row) if row is not None else None
        except SQLAlchemyError as e:
            raise BackendError(f"Failed to look up '{email}': {e}") from e
        finally:
            session.close()

    def list_all(self) -> list[StudentRecord]:
        stmt = select(ManualStudent).order_by(ManualStudent.added_at.desc())
        return self._fetch(stmt, "list students")

    def search(self, query: str) -> list[StudentRecord]:
        stmt = (
            select(ManualStudent)
            .where(
                or_(
                    ManualStudent.name.icontains(query, autoescape=True),
                    ManualStudent.email.icontains(query, autoescape=True),
                )
            )
            .order_by(ManualStudent.added_at.desc())
        )
        return self._fetch(stmt, f"search students for '{query}'")

    def delete(self, student_id: str) -> None:
        stmt = delete(ManualStudent).where(ManualStudent.id == student_id)
        self._write(stmt, f"delete student '{student_id}'")

    def set_status(self, student_id: str, status: StudentStatus) -> None:
        stmt = (
            update(ManualStudent)
            .where(ManualStudent.id == student_id)
            .values(status=status.value, updated_at=func.now())
        )
        self._write(stmt, f"set status of student '{student_id}'")

    def count(
        self,
        status: StudentStatus | None = None,
        added_since: datetime | None = None,
    ) -> int:
        stmt = select(func.count(ManualStudent.id))
        if status is not None:
            stmt = stmt.where(ManualStudent.status == status.value)
        if added_since is not None:
            stmt = stmt.where(ManualStudent.added_at >= _to_db_time(added_since))
        session = self._db.get_session()
        try:
            return int(session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise BackendError(f"Failed to count students: {e}") from e
        finally:
            session.close()

    def _fetch(self, stmt: object, action: str) -> list[StudentRecord]:
        session = self._db.get_session()
        try:
            rows = session.execute(stmt).scalars().all()  # type: ignore[call-overload]
            return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            raise BackendError(f"Failed to {action}: {e}") from e
        finally:
            session.close()

    def _write(self, stmt: object, action: str) -> None:
        session = self._db.get_session()
        try:
            result = session.execute(stmt)  # type: ignore[call-overload]
            session.commit()
            logger.debug("%s: %d row(s) affected", action, result.rowcount)
        except SQLAlchemyError as e:
            session.rollback()
            raise BackendError(f"Failed to {action}: {e}") from e
        finally:
            session.close()
