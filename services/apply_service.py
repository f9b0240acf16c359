"""
services/apply_service.py

Responsibility: Executes a single Create/Update/Delete action against the
DNS provider's mutation API.
Does NOT: decide which actions to run, retry failures, or stop on the first
error — each action is applied on its own.
"""

from __future__ import annotations

import logging

from domain.models import Action, Create, Delete, Update
from exceptions import ApplyError, DnsProviderError
from providers.dns_provider import DNSProvider

logger = logging.getLogger(__name__)


class ActionApplier:
    """
    Applies reconciler actions to one zone.

    Collaborators:
        - DNSProvider: performs the create/update/delete calls
    """

    def __init__(
        self,
        dns_provider: DNSProvider,
        zone_id: str,
        zone_name: str,
        dry_run: bool = False,
    ) -> None:
        """
        Args:
            dns_provider: Any DNSProvider implementation (e.g. CloudflareClient).
            zone_id: The provider-assigned zone identifier.
            zone_name: The zone apex, used to build fully-qualified names.
            dry_run: When True, actions are logged but never sent.
        """
        self._provider = dns_provider
        self._zone_id = zone_id
        self._zone_name = zone_name
        self._dry_run = dry_run

    def fqdn(self, label: str) -> str:
        return f"{label}.{self._zone_name}"

    async def apply(self, action: Action) -> bool:
        """
        Applies one action.

        Returns:
            True if the mutation was sent, False in dry-run mode.

        Raises:
            ApplyError: If the provider rejects the mutation. The error keeps
                        the action and the provider's HTTP status code.
        """
        if self._dry_run:
            logger.info("[dry-run] would %s", action)
            return False

        try:
            if isinstance(action, Create):
                await self._provider.create_record(
                    self._zone_id, self.fqdn(action.label), action.address
                )
            elif isinstance(action, Update):
                await self._provider.update_record(
                    self._zone_id, action.handle, self.fqdn(action.label), action.address
                )
            elif isinstance(action, Delete):
                await self._provider.delete_record(self._zone_id, action.handle)
            else:
                raise TypeError(f"Unknown action type: {type(action).__name__}")
        except DnsProviderError as exc:
            raise ApplyError(action, str(exc), status_code=exc.status_code) from exc
        return True
