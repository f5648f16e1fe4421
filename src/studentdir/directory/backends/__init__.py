"""Storage backends for the student directory."""

from studentdir.directory.backends.base import StudentBackend
from studentdir.directory.backends.local import LocalBackend
from studentdir.directory.backends.remote import RestBackend

__all__ = [
    "LocalBackend",
    "RestBackend",
    "StudentBackend",
]
