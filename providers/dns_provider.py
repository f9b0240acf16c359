"""
providers/dns_provider.py

Responsibility: Defines the DNSProvider Protocol and the ZoneRecord value
object, whose content is a tagged variant (A record or anything else).
Does NOT: make HTTP calls, strip zone suffixes, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Protocol, Union, runtime_checkable


# ---------------------------------------------------------------------------
# Record content — explicit variant per record type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ARecordContent:
    """Content of an A record: a single IPv4 address."""

    address: IPv4Address


@dataclass(frozen=True)
class OtherRecordContent:
    """
    Content of any record type this application does not manage
    (AAAA, CNAME, MX, TXT, ...). Kept as the raw provider string.
    """

    type: str
    value: str


RecordContent = Union[ARecordContent, OtherRecordContent]


# ---------------------------------------------------------------------------
# Value object — stable shape returned by all DNSProvider implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ZoneRecord:
    """
    Represents a single DNS record as returned by a DNSProvider.
    """

    # Provider-assigned unique identifier for the record
    id: str

    # Fully-qualified DNS name, e.g. "host1.example.com"
    name: str

    # Typed content; only ARecordContent is ever reconciled
    content: RecordContent

    # TTL in seconds; 1 means "automatic" on Cloudflare
    ttl: int = 1

    # Whether the record is proxied through the provider's CDN
    proxied: bool = False

    @property
    def type(self) -> str:
        if isinstance(self.content, ARecordContent):
            return "A"
        return self.content.type

    @property
    def a_address(self) -> IPv4Address | None:
        """Returns the record's address if it is an A record, else None."""
        if isinstance(self.content, ARecordContent):
            return self.content.address
        return None


# ---------------------------------------------------------------------------
# Abstract interface — all DNS providers must implement this contract
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Abstract protocol for DNS record management.

    ZoneService and ActionApplier depend on this abstraction, never on a
    concrete implementation.
    """

    async def get_zone_name(self, zone_id: str) -> str:
        """
        Returns the zone's apex name, e.g. "example.com".

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def list_records(self, zone_id: str) -> list[ZoneRecord]:
        """
        Returns every record in the zone, of any type.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def create_record(self, zone_id: str, name: str, address: IPv4Address) -> ZoneRecord:
        """
        Creates a new A record.

        Args:
            zone_id: The provider-assigned zone identifier.
            name: The fully-qualified DNS name for the new record.
            address: The IPv4 address for the new record.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def update_record(
        self, zone_id: str, record_id: str, name: str, address: IPv4Address
    ) -> ZoneRecord:
        """
        Points an existing A record at a new address.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def delete_record(self, zone_id: str, record_id: str) -> None:
        """
        Deletes a record by its provider-assigned identifier.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...
