"""Student Directory - Manually-added students of the course platform."""

from studentdir.directory.exceptions import (
    BackendError,
    DirectoryError,
    DuplicateEmailError,
    InvalidStudentDataError,
    PersistenceError,
)
from studentdir.directory.factory import create_directory
from studentdir.directory.models import (
    NewStudent,
    StudentRecord,
    StudentStats,
    StudentStatus,
    normalize_email,
    start_of_month,
)
from studentdir.directory.service import StudentDirectory

__all__ = [
    "BackendError",
    "DirectoryError",
    "DuplicateEmailError",
    "InvalidStudentDataError",
    "NewStudent",
    "PersistenceError",
    "StudentDirectory",
    "StudentRecord",
    "StudentStats",
    "StudentStatus",
    "create_directory",
    "normalize_email",
    "start_of_month",
]
