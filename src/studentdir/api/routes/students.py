"""Student directory endpoints."""

from typing import Any

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from studentdir.api.dependencies import DirectoryDep
from studentdir.api.models import (
    APIResponse,
    EmailCheckResponse,
    StudentCreate,
    StudentResponse,
    StudentStatsResponse,
    StudentStatusUpdate,
    student_to_response,
)

router = APIRouter(prefix="/students", tags=["students"])


@router.get("", response_model=APIResponse[list[StudentResponse]])
def list_students(
    directory: DirectoryDep,
    q: str | None = Query(default=None, description="Search name or email"),
) -> APIResponse[list[StudentResponse]]:
    """List students, newest first. With ?q= only matching students are returned."""
    students = directory.search_students(q) if q else directory.get_students()
    return APIResponse(data=[student_to_response(s) for s in students])


@router.post(
    "",
    response_model=APIResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_student(student: StudentCreate, directory: DirectoryDep) -> APIResponse[StudentResponse]:
    """Add a student manually."""
    created = directory.add_student(student.to_new_student())
    return APIResponse(data=student_to_response(created))


@router.get("/stats", response_model=APIResponse[StudentStatsResponse])
def get_stats(directory: DirectoryDep) -> APIResponse[StudentStatsResponse]:
    """Get directory statistics."""
    stats = directory.get_student_stats()
    return APIResponse(data=StudentStatsResponse.model_validate(stats))


@router.get(
    "/by-email",
    response_model=APIResponse[StudentResponse],
    responses={status.HTTP_404_NOT_FOUND: {"model": APIResponse[None]}},
)
def get_by_email(directory: DirectoryDep, email: str = Query(..., min_length=1)) -> Any:
    """Get the active student with this email."""
    student = directory.get_student_by_email(email)
    if student is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=APIResponse[None](data=None, error="Student not found").model_dump(),
        )
    return APIResponse(data=student_to_response(student))


@router.get("/email-check", response_model=APIResponse[EmailCheckResponse])
def check_email(
    directory: DirectoryDep, email: str = Query(..., min_length=1)
) -> APIResponse[EmailCheckResponse]:
    """Check whether an email has access (manual student or verified purchase)."""
    exists = directory.check_email_exists(email)
    return APIResponse(data=EmailCheckResponse(email=email.strip().lower(), exists=exists))


@router.patch("/{student_id}/status", status_code=status.HTTP_204_NO_CONTENT)
def update_status(student_id: str, update: StudentStatusUpdate, directory: DirectoryDep) -> None:
    """Set a student's status."""
    directory.update_student_status(student_id, update.status)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_student(student_id: str, directory: DirectoryDep) -> None:
    """Delete a student permanently."""
    directory.remove_student(student_id)
