"""
config.py

Responsibility: Loads and validates the application settings from the
environment once at startup.
Does NOT: make HTTP calls or hold any state that changes while running.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from exceptions import ConfigError
from providers.cloudflare_client import CLOUDFLARE_BASE
from providers.zerotier_client import ZEROTIER_BASE

logger = logging.getLogger(__name__)

SYNC_MODES = ("watch", "once")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """
    Immutable runtime configuration.

    Tokens are masked in repr() so the object can be logged safely.
    """

    # ZeroTier network whose members are published
    zt_network_id: str
    zt_api_token: str

    # Cloudflare zone the A records live in
    cf_zone_id: str
    cf_api_token: str

    zt_api_url: str = ZEROTIER_BASE
    cf_api_url: str = CLOUDFLARE_BASE

    # Seconds between sync cycles
    interval_seconds: int = 60

    # Random delay (0..jitter) added to every scheduled run
    jitter_seconds: int = 0

    # Upper bound for the interval after repeated fetch failures
    max_backoff_seconds: int = 900

    # "watch" runs forever, "once" runs a single cycle and exits
    sync_mode: str = "watch"

    dry_run: bool = False
    http_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Settings(zt_network_id={self.zt_network_id!r}, cf_zone_id={self.cf_zone_id!r}, "
            f"zt_api_url={self.zt_api_url!r}, cf_api_url={self.cf_api_url!r}, "
            f"interval_seconds={self.interval_seconds}, jitter_seconds={self.jitter_seconds}, "
            f"max_backoff_seconds={self.max_backoff_seconds}, sync_mode={self.sync_mode!r}, "
            f"dry_run={self.dry_run}, http_timeout_seconds={self.http_timeout_seconds}, "
            f"log_level={self.log_level!r}, zt_api_token='***', cf_api_token='***')"
        )


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Reads every setting from the environment and validates it.

    Args:
        environ: Mapping to read from. Defaults to os.environ, after loading
                 a .env file from the working directory (or a parent) into
                 it. Variables already set in the environment win.

    Returns:
        A frozen Settings instance.

    Raises:
        ConfigError: If a required value is missing or any value is invalid.
            All problems are reported together.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ
    env = environ
    problems: list[str] = []

    def required(key: str) -> str:
        value = env.get(key, "").strip()
        if not value:
            problems.append(f"{key} is required")
        return value

    def integer(key: str, default: int, minimum: int) -> int:
        raw = env.get(key, "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            problems.append(f"{key} must be an integer, got {raw!r}")
            return default
        if value < minimum:
            problems.append(f"{key} must be >= {minimum}, got {value}")
        return value

    def boolean(key: str, default: bool) -> bool:
        raw = env.get(key)
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        problems.append(f"{key} must be a boolean, got {raw!r}")
        return default

    zt_network_id = required("ZT_NETWORK_ID")
    zt_api_token = required("ZT_API_TOKEN")
    cf_zone_id = required("CF_ZONE_ID")
    cf_api_token = required("CF_TOKEN")

    interval = integer("SYNC_INTERVAL_SECONDS", 60, minimum=1)
    jitter = integer("SYNC_JITTER_SECONDS", 0, minimum=0)
    max_backoff = integer("SYNC_MAX_BACKOFF_SECONDS", max(900, interval), minimum=1)
    if max_backoff < interval:
        problems.append(
            f"SYNC_MAX_BACKOFF_SECONDS ({max_backoff}) must not be below "
            f"SYNC_INTERVAL_SECONDS ({interval})"
        )

    sync_mode = env.get("SYNC_MODE", "watch").strip().lower() or "watch"
    if sync_mode not in SYNC_MODES:
        problems.append(f"SYNC_MODE must be one of {', '.join(SYNC_MODES)}, got {sync_mode!r}")

    timeout_raw = env.get("HTTP_TIMEOUT_SECONDS", "").strip()
    timeout = 30.0
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError:
            problems.append(f"HTTP_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}")
        else:
            if timeout <= 0:
                problems.append("HTTP_TIMEOUT_SECONDS must be positive")

    dry_run = boolean("DRY_RUN", False)

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        problems.append(f"LOG_LEVEL {log_level!r} is not a logging level")

    if problems:
        raise ConfigError("Invalid configuration: " + "; ".join(problems) + ".")

    return Settings(
        zt_network_id=zt_network_id,
        zt_api_token=zt_api_token,
        cf_zone_id=cf_zone_id,
        cf_api_token=cf_api_token,
        zt_api_url=env.get("ZT_API_URL", "").strip() or ZEROTIER_BASE,
        cf_api_url=env.get("CF_API_URL", "").strip() or CLOUDFLARE_BASE,
        interval_seconds=interval,
        jitter_seconds=jitter,
        max_backoff_seconds=max_backoff,
        sync_mode=sync_mode,
        dry_run=dry_run,
        http_timeout_seconds=timeout,
        log_level=log_level,
    )
