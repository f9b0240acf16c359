"""
app.py

Responsibility: Process entrypoint — configures logging, loads settings and
starts either the long-running scheduler or a single sync cycle.
Does NOT: contain sync logic; see scheduler.py and services/.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from config import load_settings
from exceptions import ConfigError
from logger import setup_logging
from scheduler import run_forever, run_once

logger = logging.getLogger(__name__)


def main() -> int:
    """
    Runs the application and returns the process exit status.

    Returns:
        0 on a clean shutdown (or a fully successful single cycle),
        1 on a fatal configuration/credential error or a failed single cycle.
    """
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.critical("%s", exc)
        return 1

    setup_logging(settings.log_level)
    logger.info("🟢 zt-dns-sync started: %r", settings)
    if settings.dry_run:
        logger.warning("DRY_RUN is set — no DNS record will be changed.")

    try:
        if settings.sync_mode == "once":
            return 0 if asyncio.run(run_once(settings)) else 1
        asyncio.run(run_forever(settings))
    except ConfigError as exc:
        logger.critical("%s", exc)
        return 1

    logger.info("zt-dns-sync stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
