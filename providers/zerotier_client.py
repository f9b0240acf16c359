"""
providers/zerotier_client.py

Responsibility: Talks to the ZeroTier Central REST API to read a network's
configuration and its member list.
Does NOT: decide which members get DNS records, or touch the DNS provider.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from exceptions import ZeroTierError

logger = logging.getLogger(__name__)

ZEROTIER_BASE = "https://my.zerotier.com/api"


class ZeroTierClient:
    """
    Thin async client for the ZeroTier Central API.

    Returns the JSON payloads as plain dicts; MembershipService turns them
    into a DesiredState. All requests go through the injected
    httpx.AsyncClient (use respx.mock in tests).

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_token: str,
        base_url: str = ZEROTIER_BASE,
    ) -> None:
        """
        Initialises the client with a shared HTTP client and an API token.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_token: A ZeroTier Central API token.
            base_url: API root, overridable for self-hosted controllers and tests.
        """
        self._client = http_client
        self._base = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Accept": "application/json",
        }

    async def get_network(self, network_id: str) -> dict[str, Any]:
        """
        Returns the network object, including config.ipAssignmentPools.

        Raises:
            ZeroTierError: If the API is unreachable, rejects the request, or
                           returns something other than a JSON object.
        """
        url = f"{self._base}/network/{network_id}"
        body = await self._get(url)
        if not isinstance(body, dict):
            raise ZeroTierError(f"Expected a network object from {url}, got {type(body).__name__}.")
        return body

    async def list_members(self, network_id: str) -> list[dict[str, Any]]:
        """
        Returns every member of the network.

        Raises:
            ZeroTierError: If the API is unreachable, rejects the request, or
                           returns something other than a JSON list.
        """
        url = f"{self._base}/network/{network_id}/member"
        body = await self._get(url)
        if not isinstance(body, list):
            raise ZeroTierError(f"Expected a member list from {url}, got {type(body).__name__}.")
        return body

    async def _get(self, url: str) -> Any:
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ZeroTierError(
                f"ZeroTier API error {exc.response.status_code} for GET {url}: {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise ZeroTierError(f"Could not reach ZeroTier API ({url}): {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ZeroTierError(
                f"ZeroTier API returned a non-JSON body for GET {url}.",
                status_code=response.status_code,
            ) from exc
