"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All HTTP fixtures use respx.mock — no real network calls are made in any test.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from config import Settings

ZT_BASE = "https://zt.test/api"
CF_BASE = "https://cf.test/client/v4"
NETWORK_ID = "8056c2e21c000001"
ZONE_ID = "zone123"


# ---------------------------------------------------------------------------
# Settings fixture — points both clients at fake hosts
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> Settings:
    """Returns Settings for a single network/zone pair on fake API hosts."""
    return Settings(
        zt_network_id=NETWORK_ID,
        zt_api_token="zt-token",
        cf_zone_id=ZONE_ID,
        cf_api_token="cf-token",
        zt_api_url=ZT_BASE,
        cf_api_url=CF_BASE,
        interval_seconds=60,
        max_backoff_seconds=600,
    )


# ---------------------------------------------------------------------------
# HTTP mock fixture — intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client
