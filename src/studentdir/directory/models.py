"""Data models for the student directory."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class StudentStatus(StrEnum):
    """Student status enum."""

    ACTIVE = "active"
    INACTIVE = "inactive"


def normalize_email(email: str) -> str:
    """Normalize an email for storage and comparison."""
    return email.strip().lower()


def start_of_month(now: datetime | None = None) -> datetime:
    """Midnight of the 1st of the current month, on the local clock.

    Args:
        now: Reference time. Defaults to the current local time.

    Returns:
        Timezone-aware datetime in the local timezone.
    """
    local_now = (now or datetime.now(UTC)).astimezone()
    return local_now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a storage timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass
class NewStudent:
    """Payload for adding a student manually."""

    name: str
    email: str
    added_by: str
    notes: str | None = None

    def normalized(self) -> NewStudent:
        """Copy with the email normalized and text fields stripped."""
        notes = self.notes.strip() if self.notes else None
        return replace(
            self,
            name=self.name.strip(),
            email=normalize_email(self.email),
            added_by=self.added_by.strip(),
            notes=notes or None,
        )


@dataclass(frozen=True)
class StudentRecord:
    """A manually-added student as stored."""

    id: str
    name: str
    email: str
    added_by: str
    added_at: datetime
    status: StudentStatus
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is StudentStatus.ACTIVE

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> StudentRecord:
        """Build a record from a storage row (column name -> value)."""
        added_at = parse_timestamp(row["added_at"])
        if added_at is None:
            raise ValueError("Student row has no added_at")
        return cls(
            id=str(row["id"]),
            name=row["name"],
            email=row["email"],
            added_by=row["added_by"],
            added_at=added_at,
            status=StudentStatus(row["status"]),
            notes=row.get("notes"),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )


@dataclass
class StudentStats:
    """Aggregated counts over the directory."""

    total: int
    active: int
    inactive: int
    added_this_month: int
