"""REST API for the student directory."""

from studentdir.api.app import create_app
from studentdir.api.models import (
    APIResponse,
    StudentCreate,
    StudentResponse,
    StudentStatsResponse,
    StudentStatusUpdate,
)

__all__ = [
    "APIResponse",
    "StudentCreate",
    "StudentResponse",
    "StudentStatsResponse",
    "StudentStatusUpdate",
    "create_app",
]
