"""Logging for studentdir.

The package only creates named loggers under ``studentdir``; applications
embedding the directory configure handlers themselves. ``setup_logging`` is
for the bundled API server: console output, plus a rotating file when one is
requested.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Hosted-backend credentials that can be echoed back in error bodies
_CREDENTIALS = [
    (re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+"), "[JWT]"),
    (re.compile(r"Bearer [\w.-]+"), "Bearer [REDACTED]"),
    (re.compile(r"apikey[\"']?\s*[:=]\s*[\"']?[\w.-]+", re.IGNORECASE), "apikey=[REDACTED]"),
    (re.compile(r"token=[\w.-]+"), "token=[REDACTED]"),
]


def setup_logging(
    level: str | None = None,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Send studentdir logs to the console and, optionally, a rotating file.

    Args:
        level: Level name. Falls back to STUDENTDIR_LOG_LEVEL, then INFO.
        log_file: File to write as well. Falls back to STUDENTDIR_LOG_FILE;
            no file is written when neither is set.

    Returns:
        The ``studentdir`` logger.
    """
    level = (level or os.environ.get("STUDENTDIR_LOG_LEVEL") or "INFO").upper()
    if log_file is None:
        log_file = os.environ.get("STUDENTDIR_LOG_FILE") or None

    logger = logging.getLogger("studentdir")
    logger.setLevel(getattr(logging, level, logging.INFO))
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to console%s", f" and {log_file}" if log_file else "")
    return logger


def scrub(text: str, max_length: int = 500) -> str:
    """Make a remote error body safe to log or put in an exception.

    Credentials are redacted first, then the text is clipped to max_length.
    """
    for pattern, replacement in _CREDENTIALS:
        text = pattern.sub(replacement, text)
    if len(text) > max_length:
        return f"{text[:max_length]}... [{len(text) - max_length} more chars]"
    return text
