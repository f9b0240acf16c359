"""
logger.py

Responsibility: Configures Python's standard logging for the whole process.
Does NOT: decide what gets logged — every module owns its own
logging.getLogger(__name__).
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler")


def setup_logging(level: str = "INFO") -> None:
    """
    Configures the root logger to write one line per record to stdout.

    Safe to call more than once; the handler is replaced, not duplicated.

    Args:
        level: Log level name ("DEBUG", "INFO", "WARNING", "ERROR").
    """
    level_int = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level_int)

    # NOTE: httpx logs every request at INFO; only show it when debugging.
    noisy_level = logging.DEBUG if level_int <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
