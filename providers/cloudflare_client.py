"""
providers/cloudflare_client.py

Responsibility: Implements the DNSProvider protocol using the Cloudflare REST API.
All Cloudflare HTTP calls are concentrated here — no other file may call the
Cloudflare API directly.
Does NOT: read configuration, decide what to change, or contain scheduling logic.
"""

from __future__ import annotations

import logging
from ipaddress import AddressValueError, IPv4Address
from typing import Any

import httpx

from exceptions import DnsProviderError
from providers.dns_provider import ARecordContent, OtherRecordContent, ZoneRecord

logger = logging.getLogger(__name__)

CLOUDFLARE_BASE = "https://api.cloudflare.com/client/v4"

# Records requested per page when listing a zone
_PAGE_SIZE = 100


class CloudflareClient:
    """
    Implements DNSProvider for the Cloudflare DNS REST API (v4).

    All outbound Cloudflare requests go through the injected httpx.AsyncClient,
    making this class fully testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - DNSProvider: this class satisfies the protocol contract
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_token: str,
        base_url: str = CLOUDFLARE_BASE,
    ) -> None:
        """
        Initialises the client with an HTTP client and a Cloudflare API token.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_token: A Cloudflare API token with Zone:Read and DNS:Edit permissions.
            base_url: API root, overridable for tests and proxies.
        """
        self._client = http_client
        self._base = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def get_zone_name(self, zone_id: str) -> str:
        """
        Returns the apex name of the zone, e.g. "example.com".

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{self._base}/zones/{zone_id}"

        logger.debug("GET %s", url)
        data = await self._request("GET", url)

        try:
            return str(data["result"]["name"]).lower()
        except (KeyError, TypeError) as exc:
            raise DnsProviderError(f"Zone details for {zone_id} have no name.") from exc

    async def list_records(self, zone_id: str) -> list[ZoneRecord]:
        """
        Returns every record in the zone, following pagination.

        Args:
            zone_id: The Cloudflare zone ID.

        Returns:
            A list of ZoneRecord instances of every type, possibly empty.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records"
        records: list[ZoneRecord] = []
        page = 1

        while True:
            params = {"page": page, "per_page": _PAGE_SIZE, "order": "name", "direction": "asc"}
            logger.debug("GET %s (list, page %d)", url, page)
            data = await self._request("GET", url, params=params)

            for raw in data.get("result") or []:
                try:
                    records.append(self._parse_record(raw))
                except DnsProviderError as exc:
                    logger.warning("Skipping record in zone %s: %s", zone_id, exc)

            total_pages = (data.get("result_info") or {}).get("total_pages", 1)
            if page >= total_pages:
                break
            page += 1

        return records

    async def create_record(self, zone_id: str, name: str, address: IPv4Address) -> ZoneRecord:
        """
        Creates a new A-record in the given Cloudflare zone.

        Args:
            zone_id: The Cloudflare zone ID.
            name: The fully-qualified DNS name for the new record.
            address: The IPv4 address for the new record.

        Returns:
            The newly created ZoneRecord.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records"
        payload: dict[str, Any] = {
            "type": "A",
            "name": name,
            "content": str(address),
            "ttl": 1,      # 1 = automatic TTL on Cloudflare
            "proxied": False,
        }

        logger.debug("POST %s payload=%s", url, payload)
        data = await self._request("POST", url, json=payload)

        return self._parse_record(data.get("result"))

    async def update_record(
        self, zone_id: str, record_id: str, name: str, address: IPv4Address
    ) -> ZoneRecord:
        """
        Points an existing A-record at a new IP address.

        Uses PATCH so the record's TTL and proxy setting are preserved.

        Args:
            zone_id: The Cloudflare zone ID.
            record_id: The Cloudflare-assigned record identifier.
            name: The fully-qualified DNS name of the record.
            address: The new IPv4 address to write.

        Returns:
            The updated ZoneRecord.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records/{record_id}"
        payload: dict[str, Any] = {
            "type": "A",
            "name": name,
            "content": str(address),
        }

        logger.debug("PATCH %s payload=%s", url, payload)
        data = await self._request("PATCH", url, json=payload)

        return self._parse_record(data.get("result"))

    async def delete_record(self, zone_id: str, record_id: str) -> None:
        """
        Deletes a DNS record from the given Cloudflare zone.

        Args:
            zone_id: The Cloudflare zone ID.
            record_id: The Cloudflare-assigned unique record identifier.

        Raises:
            DnsProviderError: If the Cloudflare API returns an error.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records/{record_id}"

        logger.debug("DELETE %s", url)
        await self._request("DELETE", url)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Sends an authenticated HTTP request to the Cloudflare API.

        Args:
            method: HTTP verb ("GET", "POST", "PATCH", "DELETE").
            url: Full URL of the Cloudflare API endpoint.
            params: Optional query-string parameters.
            json: Optional JSON request body.

        Returns:
            The parsed JSON response body as a dict.

        Raises:
            DnsProviderError: If the HTTP call fails or the API returns
                              success=false in the response body.
        """
        try:
            response = await self._client.request(
                method, url, headers=self._headers, params=params, json=json
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DnsProviderError(
                f"Cloudflare API error {exc.response.status_code} for {method} {url}: "
                f"{exc.response.text}",
                status_code=exc.response.status_code,
                errors=_errors_from(exc.response),
            ) from exc
        except httpx.RequestError as exc:
            raise DnsProviderError(
                f"Network error calling Cloudflare API ({method} {url}): {exc}"
            ) from exc

        try:
            body: dict[str, Any] = response.json()
        except ValueError as exc:
            raise DnsProviderError(
                f"Cloudflare API returned a non-JSON body for {method} {url}.",
                status_code=response.status_code,
            ) from exc

        if not isinstance(body, dict):
            raise DnsProviderError(
                f"Cloudflare API returned an unexpected body for {method} {url}.",
                status_code=response.status_code,
            )

        # NOTE: Cloudflare wraps all responses in {"success": bool, "result": ...}
        if not body.get("success", False):
            errors = body.get("errors", [])
            raise DnsProviderError(
                f"Cloudflare API returned success=false for {method} {url}. "
                f"Errors: {errors}",
                status_code=response.status_code,
                errors=errors,
            )

        return body

    @staticmethod
    def _parse_record(raw: Any) -> ZoneRecord:
        """
        Converts a raw Cloudflare API record dict into a typed ZoneRecord.

        Raises:
            DnsProviderError: If the record is not an object with an id and a
                              name, or an A record does not hold a valid IPv4
                              address.
        """
        if not isinstance(raw, dict) or not raw.get("id") or not raw.get("name"):
            raise DnsProviderError(f"Cloudflare returned a malformed record: {raw!r}")

        record_type = str(raw.get("type", "")).upper()
        value = str(raw.get("content", ""))

        if record_type == "A":
            try:
                content: ARecordContent | OtherRecordContent = ARecordContent(IPv4Address(value))
            except AddressValueError as exc:
                raise DnsProviderError(
                    f"A record {raw.get('name')} has invalid content {value!r}."
                ) from exc
        else:
            content = OtherRecordContent(type=record_type, value=value)

        return ZoneRecord(
            id=raw["id"],
            name=str(raw["name"]).lower(),
            content=content,
            ttl=raw.get("ttl", 1),
            proxied=raw.get("proxied", False),
        )


def _errors_from(response: httpx.Response) -> list[Any]:
    try:
        return list(response.json().get("errors", []))
    except (ValueError, AttributeError):
        return []
