"""
services/sync_service.py

Responsibility: Orchestrates one sync cycle — fetches the desired and actual
snapshots, reconciles them, applies every resulting action and reports the
outcome.
Does NOT: make HTTP calls directly, schedule cycles, or retry failed actions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from domain.models import Create, Delete, Update
from exceptions import ApplyError, FetchError
from providers.dns_provider import DNSProvider
from services.apply_service import ActionApplier
from services.gather import gather_all
from services.membership_service import MembershipService
from services.reconciler import reconcile, summarize
from services.zone_service import ZoneService

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Outcome of a single sync cycle."""

    fetch_failed: bool = False
    created: int = 0
    updated: int = 0
    deleted: int = 0
    failed: int = 0
    unchanged: int = 0
    planned: int = 0

    @property
    def ok(self) -> bool:
        return not self.fetch_failed and not self.failed

    def summary(self) -> str:
        if self.fetch_failed:
            return "fetch failed, nothing applied"
        parts = [f"{self.unchanged} in sync"]
        if self.created:
            parts.append(f"{self.created} created")
        if self.updated:
            parts.append(f"{self.updated} updated")
        if self.deleted:
            parts.append(f"{self.deleted} deleted")
        if self.failed:
            parts.append(f"{self.failed} failed")
        if self.planned:
            parts.append(f"{self.planned} planned (dry-run)")
        return ", ".join(parts)


class SyncService:
    """
    Runs the fetch → reconcile → apply cycle for one network and one zone.

    Every cycle starts from freshly fetched snapshots, so nothing is carried
    over between cycles. A failed fetch produces no actions at all; a failed
    action is logged and the remaining actions are still applied.

    Collaborators:
        - MembershipService: desired state (ZeroTier network members)
        - ZoneService: actual state (the zone's A records)
        - DNSProvider: handed to ActionApplier for the mutations
    """

    def __init__(
        self,
        membership_service: MembershipService,
        zone_service: ZoneService,
        dns_provider: DNSProvider,
        network_id: str,
        zone_id: str,
        dry_run: bool = False,
    ) -> None:
        self._membership = membership_service
        self._zone = zone_service
        self._provider = dns_provider
        self._network_id = network_id
        self._zone_id = zone_id
        self._dry_run = dry_run

    async def run_cycle(self) -> CycleReport:
        """
        Runs a single sync cycle.

        Returns:
            A CycleReport; fetch_failed is set when either snapshot could not
            be retrieved.
        """
        report = CycleReport()

        try:
            desired, snapshot = await gather_all(
                self._membership.fetch_desired_state(self._network_id),
                self._zone.fetch_actual_state(self._zone_id),
            )
        except FetchError as exc:
            logger.error("Sync cycle aborted, fetch failed: %s", exc)
            report.fetch_failed = True
            return report

        actions = reconcile(desired, snapshot.records)
        report.unchanged = len(desired.members) - sum(
            1 for action in actions if not isinstance(action, Delete)
        )

        if not actions:
            logger.info(
                "Zone %s already in sync with network %s (%d member(s)).",
                snapshot.zone_name, self._network_id, len(desired.members),
            )
            return report

        counts = summarize(actions)
        logger.info(
            "Planned %d create(s), %d update(s), %d delete(s) for zone %s.",
            counts["create"], counts["update"], counts["delete"], snapshot.zone_name,
        )

        applier = ActionApplier(
            self._provider, self._zone_id, snapshot.zone_name, dry_run=self._dry_run
        )

        for action in actions:
            try:
                sent = await applier.apply(action)
            except ApplyError as exc:
                report.failed += 1
                logger.error(
                    "Failed to %s %s (%s): HTTP %s — %s",
                    action.kind, applier.fqdn(action.label), action.address,
                    exc.status_code if exc.status_code is not None else "n/a", exc,
                )
                continue

            if not sent:
                report.planned += 1
                continue

            if isinstance(action, Create):
                report.created += 1
                logger.info("Created %s → %s ✓", applier.fqdn(action.label), action.address)
            elif isinstance(action, Update):
                report.updated += 1
                previous = snapshot.records[action.label].address
                logger.info(
                    "Updated %s: %s → %s ✓", applier.fqdn(action.label), previous, action.address
                )
            else:
                report.deleted += 1
                logger.info("Deleted %s (%s) ✓", applier.fqdn(action.label), action.address)

        level = logging.WARNING if report.failed else logging.INFO
        logger.log(level, "Sync cycle complete: %s.", report.summary())
        return report
