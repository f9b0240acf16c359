"""
services/membership_service.py

Responsibility: Builds the desired-state snapshot (member name → address,
plus the network's address pools) from the ZeroTier Central API.
Does NOT: look at DNS records or decide which actions to take.
"""

from __future__ import annotations

import logging
from ipaddress import AddressValueError, IPv4Address
from typing import Any

from domain.models import AddressPool, DesiredState, Member
from exceptions import FetchError, ZeroTierError
from providers.zerotier_client import ZeroTierClient
from services.gather import gather_all

logger = logging.getLogger(__name__)


class MembershipService:
    """
    Desired-state source backed by a ZeroTier network.

    Member policy:
        - names are stripped and lower-cased, matching how DNS providers
          store record names
        - only the first IPv4 entry of config.ipAssignments is used
        - members without a name or without an IPv4 assignment are skipped
        - IPv6 pools are ignored

    Collaborators:
        - ZeroTierClient: fetches the raw network and member payloads
    """

    def __init__(self, zerotier_client: ZeroTierClient) -> None:
        self._client = zerotier_client

    async def fetch_desired_state(self, network_id: str) -> DesiredState:
        """
        Fetches the network and its members and returns a DesiredState.

        Both requests run concurrently; either failing fails the whole fetch.

        Args:
            network_id: The 16-hex-digit ZeroTier network ID.

        Returns:
            An immutable DesiredState.

        Raises:
            FetchError: If either API call fails or the payload is malformed.
        """
        try:
            network, raw_members = await gather_all(
                self._client.get_network(network_id),
                self._client.list_members(network_id),
            )
        except ZeroTierError as exc:
            raise FetchError(
                f"Could not fetch ZeroTier network {network_id}: {exc}",
                status_code=exc.status_code,
            ) from exc

        try:
            pools = parse_pools(network)
            members = [m for m in (parse_member(raw) for raw in raw_members) if m is not None]
        except (AttributeError, TypeError) as exc:
            raise FetchError(f"Malformed ZeroTier payload for network {network_id}: {exc}") from exc

        desired = DesiredState.build(members, pools)
        logger.debug(
            "Network %s: %d member(s), %d pool(s).",
            network_id, len(desired.members), len(desired.pools),
        )
        return desired


def parse_pools(network: dict[str, Any]) -> list[AddressPool]:
    """
    Extracts the IPv4 assignment pools from a ZeroTier network object.

    Pools with unparseable or IPv6 bounds are skipped. Pools whose start is
    above their end are kept; AddressPool treats them as matching nothing.
    """
    config = network.get("config") or {}
    pools: list[AddressPool] = []
    for raw in config.get("ipAssignmentPools") or []:
        start = _ipv4_or_none(raw.get("ipRangeStart"))
        end = _ipv4_or_none(raw.get("ipRangeEnd"))
        if start is None or end is None:
            logger.debug("Ignoring non-IPv4 pool %s.", raw)
            continue
        pool = AddressPool(range_start=start, range_end=end)
        if not pool.is_valid:
            logger.warning("Pool %s–%s is malformed (start > end); it matches nothing.", start, end)
        pools.append(pool)
    return pools


def parse_member(raw: dict[str, Any]) -> Member | None:
    """
    Converts a raw ZeroTier member into a Member, or None if it cannot
    have a DNS record.
    """
    name = str(raw.get("name") or "").strip().lower()
    if not name:
        logger.warning("Skipping member %s: no name set.", raw.get("nodeId") or raw.get("id"))
        return None

    config = raw.get("config") or {}
    for assignment in config.get("ipAssignments") or []:
        address = _ipv4_or_none(assignment)
        if address is not None:
            return Member(name=name, address=address)

    logger.warning("Skipping member %r: no IPv4 address assigned.", name)
    return None


def _ipv4_or_none(value: Any) -> IPv4Address | None:
    if not isinstance(value, str):
        return None
    try:
        return IPv4Address(value)
    except AddressValueError:
        return None
