"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studentdir import __version__
from studentdir.api.dependencies import close_directory, init_directory
from studentdir.api.models import APIResponse
from studentdir.api.routes import students
from studentdir.directory import (
    DirectoryError,
    DuplicateEmailError,
    InvalidStudentDataError,
)
if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from studentdir.config import DirectoryConfig

logger = logging.getLogger("studentdir.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    config: DirectoryConfig | None = getattr(app.state, "config", None)
    init_directory(config)
    logger.info("Student directory API started")

    yield

    close_directory()
    logger.info("Student directory API stopped")


def create_app(config: DirectoryConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Directory configuration. Read from STUDENTDIR_* variables
            at startup when omitted.
    """
    app = FastAPI(
        title="Student Directory API",
        description="Admin API for manually-added students",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(_request: Request, exc: DuplicateEmailError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=APIResponse[None](data=None, error=str(exc)).model_dump(),
        )

    @app.exception_handler(InvalidStudentDataError)
    async def invalid_student_handler(
        _request: Request, exc: InvalidStudentDataError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=APIResponse[None](data=None, error=str(exc)).model_dump(),
        )

    @app.exception_handler(DirectoryError)
    async def directory_error_handler(_request: Request, exc: DirectoryError) -> JSONResponse:
        logger.error("Unhandled directory error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Internal server error").model_dump(),
        )

    app.include_router(students.router, prefix="/api/v1")

    return app
