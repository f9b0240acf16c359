"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations

from typing import Any


class DnsProviderError(Exception):
    """
    Raised by any DNSProvider implementation when a DNS API call fails.

    Carries the HTTP status code (None for network-level failures) and the
    provider's error list so callers can surface them in audit logs.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: list[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = list(errors or [])


class ZeroTierError(Exception):
    """
    Raised by ZeroTierClient when a ZeroTier Central API call fails or
    returns a body that cannot be understood.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchError(Exception):
    """
    Raised by the state services when a desired or actual state snapshot
    cannot be retrieved.

    A FetchError aborts the current sync cycle before any action is derived.
    The next scheduled cycle retries from scratch.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApplyError(Exception):
    """
    Raised by ActionApplier when the DNS provider rejects a single mutation.

    The offending action is attached so SyncService can log exactly what was
    not applied. It is never retried within the same cycle.
    """

    def __init__(self, action: Any, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.action = action
        self.status_code = status_code


class ConfigError(Exception):
    """
    Raised by load_settings() when a required setting is missing or invalid,
    and at startup when an API rejects the configured credentials.

    Always fatal: the process exits with a non-zero status.
    """
