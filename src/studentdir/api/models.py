"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from studentdir.directory import NewStudent, StudentStatus

T = TypeVar("T")

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


class StudentCreate(BaseModel):
    """Request model for adding a student."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    notes: str | None = Field(default=None, max_length=5000)
    added_by: str = Field(..., min_length=1, max_length=255)

    def to_new_student(self) -> NewStudent:
        return NewStudent(
            name=self.name,
            email=self.email,
            notes=self.notes,
            added_by=self.added_by,
        )


class StudentStatusUpdate(BaseModel):
    """Request model for changing a student's status."""

    status: StudentStatus


class StudentResponse(BaseModel):
    """Response model for a student."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    notes: str | None
    added_by: str
    added_at: datetime
    status: StudentStatus
    created_at: datetime | None
    updated_at: datetime | None


class StudentStatsResponse(BaseModel):
    """Response model for directory statistics."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    active: int
    inactive: int
    added_this_month: int


class EmailCheckResponse(BaseModel):
    """Response model for an email access check."""

    email: str
    exists: bool


def student_to_response(student: Any) -> StudentResponse:
    """Convert a StudentRecord to StudentResponse."""
    return StudentResponse.model_validate(student)
