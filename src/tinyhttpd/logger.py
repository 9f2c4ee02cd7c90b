"""
File logging for the server.

Every module logs through ``logging.getLogger(__name__)`` under the
``tinyhttpd`` namespace. ``attach_file_log`` sends those records to an
append-only file, one physical line per call::

    INFO (2026-10-17T09:30:00Z): Registered route: /counter/, method: GET
    WARNING (2026-10-17T09:30:04Z): Error: [Errno 104] Connection reset by peer

The handler's own lock serializes writes, so lines from concurrent workers
never interleave.
"""

import logging
from datetime import datetime, timezone
from typing import Optional


ROOT_LOGGER = "tinyhttpd"

LOG_FORMAT = "%(levelname)s (%(asctime)s): %(message)s"


class LogFormatter(logging.Formatter):
    """Formats records as ``LEVEL (RFC3339 UTC, seconds): message``."""

    def __init__(self):
        super().__init__(LOG_FORMAT)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.strftime("%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        # One physical line per call, even when the message has newlines
        # or the record carries a traceback.
        return super().format(record).replace("\r", "\\r").replace("\n", "\\n")


def attach_file_log(
    path: str,
    level: int = logging.DEBUG,
    logger_name: str = ROOT_LOGGER,
) -> logging.FileHandler:
    """
    Start appending the package's log records to path.

    The file is created if needed and opened immediately in append mode.

    Args:
        path: Absolute or relative path of the log file.
        level: Lowest level written to the file.
        logger_name: Logger to attach to; the package root by default.

    Returns:
        The installed handler, for detach_file_log().
    """
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(LogFormatter())

    logger = logging.getLogger(logger_name)
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)
    return handler


def detach_file_log(handler: logging.Handler, logger_name: str = ROOT_LOGGER) -> None:
    """Remove a handler installed by attach_file_log() and close its file."""
    logging.getLogger(logger_name).removeHandler(handler)
    handler.close()
