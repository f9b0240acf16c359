"""
scheduler.py

Responsibility: Wires the collaborators together, sets up the APScheduler
AsyncIOScheduler and registers the DNS sync job. Exposes the long-running
and single-shot entrypoints plus the backoff/reschedule helpers.
Does NOT: contain reconciliation logic or HTTP calls directly — those are
delegated entirely to SyncService and its collaborators.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from datetime import datetime, timezone

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import Settings
from exceptions import ConfigError, DnsProviderError, ZeroTierError
from providers.cloudflare_client import CloudflareClient
from providers.zerotier_client import ZeroTierClient
from services.membership_service import MembershipService
from services.sync_service import SyncService
from services.zone_service import ZoneService

logger = logging.getLogger(__name__)

# Job ID used to identify the sync job in APScheduler
_JOB_ID = "dns_sync"

# HTTP statuses that mean the configured token is wrong, not that the API is down
_AUTH_FAILURES = (401, 403)


class FetchBackoff:
    """
    Tracks consecutive fetch failures and derives the next sync interval.

    The interval doubles with every consecutive failed fetch, capped at
    max_interval, and drops back to the base interval after a cycle whose
    fetch succeeded.
    """

    def __init__(self, base_interval: int, max_interval: int) -> None:
        self.base_interval = base_interval
        self.max_interval = max(max_interval, base_interval)
        self.failures = 0

    @property
    def interval(self) -> int:
        if not self.failures:
            return self.base_interval
        delay = self.base_interval * (2 ** min(self.failures, 30))
        return min(delay, self.max_interval)

    def record(self, fetch_failed: bool) -> int:
        """
        Records the outcome of a cycle and returns the interval to use next.
        """
        self.failures = self.failures + 1 if fetch_failed else 0
        return self.interval


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def build_clients(
    http_client: httpx.AsyncClient, settings: Settings
) -> tuple[ZeroTierClient, CloudflareClient]:
    """Creates both API clients on top of the shared HTTP client."""
    zerotier = ZeroTierClient(http_client, settings.zt_api_token, base_url=settings.zt_api_url)
    cloudflare = CloudflareClient(http_client, settings.cf_api_token, base_url=settings.cf_api_url)
    return zerotier, cloudflare


def build_sync_service(http_client: httpx.AsyncClient, settings: Settings) -> SyncService:
    """
    Builds a fully wired SyncService.

    All collaborators share the one long-lived httpx.AsyncClient; the
    credentials come from the immutable Settings loaded at startup.
    """
    zerotier, cloudflare = build_clients(http_client, settings)
    return SyncService(
        MembershipService(zerotier),
        ZoneService(cloudflare),
        cloudflare,
        network_id=settings.zt_network_id,
        zone_id=settings.cf_zone_id,
        dry_run=settings.dry_run,
    )


async def verify_credentials(
    zerotier: ZeroTierClient, cloudflare: CloudflareClient, settings: Settings
) -> None:
    """
    Checks both API tokens once before the first cycle.

    Raises:
        ConfigError: If either API rejects the token (HTTP 401/403). Any
            other failure is only logged; the scheduled cycles will retry.
    """
    try:
        network = await zerotier.get_network(settings.zt_network_id)
        logger.info(
            "ZeroTier network %s (%s) reachable.",
            settings.zt_network_id, (network.get("config") or {}).get("name") or "unnamed",
        )
    except ZeroTierError as exc:
        if exc.status_code in _AUTH_FAILURES:
            raise ConfigError(f"ZeroTier rejected ZT_API_TOKEN: {exc}") from exc
        logger.warning("ZeroTier API check failed, continuing: %s", exc)

    try:
        zone_name = await cloudflare.get_zone_name(settings.cf_zone_id)
        logger.info("Cloudflare zone %s (%s) reachable.", settings.cf_zone_id, zone_name)
    except DnsProviderError as exc:
        if exc.status_code in _AUTH_FAILURES:
            raise ConfigError(f"Cloudflare rejected CF_TOKEN: {exc}") from exc
        logger.warning("Cloudflare API check failed, continuing: %s", exc)


# ---------------------------------------------------------------------------
# Scheduler job
# ---------------------------------------------------------------------------


async def _sync_job(
    scheduler: AsyncIOScheduler,
    sync_service: SyncService,
    backoff: FetchBackoff,
    jitter_seconds: int = 0,
) -> None:
    """
    APScheduler job: runs one sync cycle and adjusts the interval.

    Args:
        scheduler: The scheduler this job is registered on.
        sync_service: The wired SyncService.
        backoff: Backoff state shared by every run of this job.
        jitter_seconds: Jitter to keep when rescheduling.
    """
    logger.debug("Sync job triggered.")
    previous = backoff.interval
    report = await sync_service.run_cycle()
    interval = backoff.record(report.fetch_failed)

    if interval != previous:
        if report.fetch_failed:
            logger.warning(
                "%d consecutive fetch failure(s); next attempt in %ds.", backoff.failures, interval
            )
        else:
            logger.info("Fetch recovered; back to a %ds interval.", interval)
        reschedule(scheduler, interval, jitter_seconds)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_scheduler(sync_service: SyncService, settings: Settings) -> AsyncIOScheduler:
    """
    Creates and returns a configured AsyncIOScheduler with the sync job.

    The job runs immediately on startup (next_run_time=now) and then at the
    configured interval. A new run never starts while the previous one is
    still applying actions.

    Args:
        sync_service: The wired SyncService to run every interval.
        settings: Supplies interval, jitter and max backoff.

    Returns:
        A configured but not yet started AsyncIOScheduler.
    """
    scheduler = AsyncIOScheduler()
    backoff = FetchBackoff(settings.interval_seconds, settings.max_backoff_seconds)
    scheduler.add_job(
        _sync_job,
        trigger="interval",
        seconds=settings.interval_seconds,
        jitter=settings.jitter_seconds or None,
        id=_JOB_ID,
        kwargs={
            "scheduler": scheduler,
            "sync_service": sync_service,
            "backoff": backoff,
            "jitter_seconds": settings.jitter_seconds,
        },
        # NOTE: next_run_time=now triggers the first sync immediately on startup
        # rather than waiting a full interval before the first run.
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,  # Prevent overlapping runs if a cycle takes too long
        coalesce=True,
    )
    logger.info(
        "DNS sync job scheduled — interval: %ds, jitter: %ds.",
        settings.interval_seconds, settings.jitter_seconds,
    )
    return scheduler


def reschedule(scheduler: AsyncIOScheduler, interval_seconds: int, jitter_seconds: int = 0) -> None:
    """
    Changes the sync job's interval without restarting the scheduler.

    Args:
        scheduler: The running AsyncIOScheduler.
        interval_seconds: New interval in seconds.
        jitter_seconds: Jitter to apply to every run (0 disables it).
    """
    scheduler.reschedule_job(
        _JOB_ID,
        trigger="interval",
        seconds=interval_seconds,
        jitter=jitter_seconds or None,
    )
    logger.info("DNS sync job rescheduled — new interval: %ds.", interval_seconds)


async def run_once(settings: Settings) -> bool:
    """
    Runs a single sync cycle and returns True if everything succeeded.

    Raises:
        ConfigError: If an API rejects the configured credentials.
    """
    timeout = httpx.Timeout(settings.http_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout) as http_client:
        await verify_credentials(*build_clients(http_client, settings), settings)
        report = await build_sync_service(http_client, settings).run_cycle()
    return report.ok


async def run_forever(settings: Settings) -> None:
    """
    Runs the scheduler until SIGINT or SIGTERM.

    Raises:
        ConfigError: If an API rejects the configured credentials before the
            first cycle.
    """
    timeout = httpx.Timeout(settings.http_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout) as http_client:
        await verify_credentials(*build_clients(http_client, settings), settings)

        scheduler = create_scheduler(build_sync_service(http_client, settings), settings)
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop.set)

        scheduler.start()
        try:
            await stop.wait()
        finally:
            logger.info("Shutting down scheduler.")
            scheduler.shutdown(wait=False)
