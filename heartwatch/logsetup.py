"""Root logger setup: log file plus stderr."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(log_file: str | None, level: str = "INFO", stream=None):
    """Send log records to `log_file` (appending) and to `stream`.

    Raises OSError if the log file cannot be opened; callers treat that as
    a fatal startup error.
    """
    handlers: list[logging.Handler] = []
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    if stream is not False:
        handlers.append(logging.StreamHandler(stream or sys.stderr))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
