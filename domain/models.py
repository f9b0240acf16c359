"""
domain/models.py

Responsibility: Defines the value objects exchanged between the state
services, the reconciler and the action applier: members, address pools,
the desired/actual state snapshots and the Create/Update/Delete actions.
Does NOT: make HTTP calls, parse provider payloads, or decide which actions
to emit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from types import MappingProxyType
from typing import ClassVar, Union

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Desired state — what the ZeroTier network says should exist
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Member:
    """
    A single network member as far as DNS is concerned.

    Only the member's first assigned IPv4 address is carried. Members with
    several addresses still get exactly one A record.
    """

    # DNS label to manage, e.g. "host1" for host1.example.com
    name: str

    # First IPv4 address assigned to the member by the network controller
    address: IPv4Address


@dataclass(frozen=True)
class AddressPool:
    """
    An inclusive IPv4 range the network controller assigns addresses from.

    Records whose address falls inside a pool are considered owned by this
    system and may be deleted once their member is gone.
    """

    range_start: IPv4Address
    range_end: IPv4Address

    @property
    def is_valid(self) -> bool:
        return int(self.range_start) <= int(self.range_end)

    def contains(self, address: IPv4Address) -> bool:
        """
        Returns True if the address lies within the pool, bounds included.

        A malformed pool (start above end) contains nothing.
        """
        if not self.is_valid:
            return False
        return int(self.range_start) <= int(address) <= int(self.range_end)


@dataclass(frozen=True)
class DesiredState:
    """
    Snapshot of the network membership, built fresh every cycle.

    Use DesiredState.build() rather than the constructor so that duplicate
    member names are resolved the same way every time.
    """

    members: Mapping[str, Member] = field(default_factory=lambda: MappingProxyType({}))
    pools: tuple[AddressPool, ...] = ()

    @classmethod
    def build(cls, members: Iterable[Member], pools: Iterable[AddressPool] = ()) -> DesiredState:
        """
        Builds a snapshot keyed by member name.

        Duplicate names are resolved last-seen-wins; each collision is logged.

        Args:
            members: Members in the order the source returned them.
            pools: The network's address-assignment pools.

        Returns:
            An immutable DesiredState.
        """
        by_name: dict[str, Member] = {}
        for member in members:
            previous = by_name.get(member.name)
            if previous is not None and previous.address != member.address:
                logger.warning(
                    "Duplicate member name %r (%s and %s), keeping %s.",
                    member.name, previous.address, member.address, member.address,
                )
            by_name[member.name] = member
        return cls(members=MappingProxyType(by_name), pools=tuple(pools))

    def in_managed_pool(self, address: IPv4Address) -> bool:
        """Returns True if any configured pool contains the address."""
        return any(pool.contains(address) for pool in self.pools)


# ---------------------------------------------------------------------------
# Actual state — what the DNS zone currently holds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsRecord:
    """
    The A-record projection of a zone record, as seen by the reconciler.
    """

    # Record name with the zone suffix stripped, e.g. "host1"
    label: str

    # Address the record currently points at
    address: IPv4Address

    # Provider-assigned record identifier used for update/delete
    handle: str


# Keyed by label; labels are unique within a zone.
ActualState = Mapping[str, DnsRecord]


# ---------------------------------------------------------------------------
# Actions — the reconciler's output, consumed by ActionApplier
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Create:
    kind: ClassVar[str] = "create"

    label: str
    address: IPv4Address

    def __str__(self) -> str:
        return f"create {self.label} → {self.address}"


@dataclass(frozen=True)
class Update:
    kind: ClassVar[str] = "update"

    handle: str
    label: str
    address: IPv4Address

    def __str__(self) -> str:
        return f"update {self.label} → {self.address} (record {self.handle})"


@dataclass(frozen=True)
class Delete:
    """
    Removes a record by handle. Label and address are only kept so the
    deletion can be audited in the logs.
    """

    kind: ClassVar[str] = "delete"

    handle: str
    label: str = ""
    address: IPv4Address | None = None

    def __str__(self) -> str:
        return f"delete {self.label or '?'} ({self.address}, record {self.handle})"


Action = Union[Create, Update, Delete]
