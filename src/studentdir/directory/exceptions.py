"""Custom exceptions for the student directory."""


class DirectoryError(Exception):
    """Base exception for student directory errors."""


class DuplicateEmailError(DirectoryError):
    """A student with the given email already exists."""


class PersistenceError(DirectoryError):
    """A write to the underlying storage failed."""


class InvalidStudentDataError(DirectoryError):
    """Student data is missing a required field or has an invalid value."""


class BackendError(DirectoryError):
    """The storage backend reported a fault."""
