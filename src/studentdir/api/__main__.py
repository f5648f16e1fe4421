"""Serve the student directory API with uvicorn."""

import os

import uvicorn

from studentdir.api.app import create_app
from studentdir.logging import setup_logging


def main() -> None:
    setup_logging()
    host = os.environ.get("STUDENTDIR_HOST", "127.0.0.1")
    port = int(os.environ.get("STUDENTDIR_PORT", "8000"))
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
