"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from studentdir.config import DirectoryConfig
from studentdir.directory import StudentDirectory, create_directory

# Global StudentDirectory instance (initialized on app startup)
_directory: StudentDirectory | None = None


def init_directory(config: DirectoryConfig | None = None) -> StudentDirectory:
    """Initialize the global StudentDirectory instance."""
    global _directory  # noqa: PLW0603
    _directory = create_directory(config)
    return _directory


def close_directory() -> None:
    """Close the global StudentDirectory instance."""
    global _directory  # noqa: PLW0603
    if _directory is not None:
        _directory.close()
        _directory = None


def get_directory() -> Generator[StudentDirectory, None, None]:
    """Dependency that provides the StudentDirectory instance."""
    if _directory is None:
        raise RuntimeError("StudentDirectory not initialized. Call init_directory() first.")
    yield _directory


# Type alias for dependency injection
DirectoryDep = Annotated[StudentDirectory, Depends(get_directory)]
