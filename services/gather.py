"""
services/gather.py

Responsibility: Runs concurrent fetches to completion before reporting a failure.
Does NOT: retry, time out, or translate exceptions.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any


async def gather_all(*awaitables: Awaitable[Any]) -> list[Any]:
    """
    Awaits every awaitable, then raises the first exception in argument order.

    Unlike a bare asyncio.gather, a sibling that is still running when another
    one fails is awaited too, so its result or exception is always collected.

    Returns:
        The results in argument order.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
