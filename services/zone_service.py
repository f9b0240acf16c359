"""
services/zone_service.py

Responsibility: Builds the actual-state snapshot of the managed zone: its
apex name plus every A record keyed by label.
Does NOT: modify records or decide which records are managed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from domain.models import ActualState, DnsRecord
from exceptions import DnsProviderError, FetchError
from providers.dns_provider import DNSProvider, ZoneRecord
from services.gather import gather_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneSnapshot:
    """The zone's apex name and its A records keyed by label."""

    zone_name: str
    records: ActualState = field(default_factory=lambda: MappingProxyType({}))


class ZoneService:
    """
    Actual-state source backed by a DNSProvider.

    Collaborators:
        - DNSProvider: lists the zone's records (CloudflareClient in production)
    """

    def __init__(self, dns_provider: DNSProvider) -> None:
        self._provider = dns_provider

    async def fetch_actual_state(self, zone_id: str) -> ZoneSnapshot:
        """
        Fetches the zone name and its records and projects the A records.

        Raises:
            FetchError: If either provider call fails.
        """
        try:
            zone_name, records = await gather_all(
                self._provider.get_zone_name(zone_id),
                self._provider.list_records(zone_id),
            )
        except DnsProviderError as exc:
            raise FetchError(
                f"Could not fetch DNS records for zone {zone_id}: {exc}",
                status_code=exc.status_code,
            ) from exc

        snapshot = ZoneSnapshot(zone_name=zone_name, records=project_a_records(zone_name, records))
        logger.debug(
            "Zone %s (%s): %d record(s), %d A record(s) considered.",
            zone_id, zone_name, len(records), len(snapshot.records),
        )
        return snapshot


def project_a_records(zone_name: str, records: Iterable[ZoneRecord]) -> Mapping[str, DnsRecord]:
    """
    Keeps only A records below the zone apex and keys them by label.

    "host1.example.com" in zone "example.com" becomes "host1". The apex
    itself, non-A records and names outside the zone are dropped.
    """
    zone_name = zone_name.rstrip(".").lower()
    suffix = f".{zone_name}"
    by_label: dict[str, DnsRecord] = {}

    for record in records:
        address = record.a_address
        if address is None:
            continue

        name = record.name.rstrip(".").lower()
        if name == zone_name:
            continue
        if not name.endswith(suffix):
            logger.warning("Ignoring record %s: not inside zone %s.", record.name, zone_name)
            continue

        label = name[: -len(suffix)]
        if label in by_label:
            logger.warning(
                "Zone %s has more than one A record for %r; using record %s.",
                zone_name, label, record.id,
            )
        by_label[label] = DnsRecord(label=label, address=address, handle=record.id)

    return MappingProxyType(by_label)
