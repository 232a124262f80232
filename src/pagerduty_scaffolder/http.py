from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

PAGERDUTY_ACCEPT = "application/vnd.pagerduty+json;version=2"
DEFAULT_USER_AGENT = "pagerduty-scaffolder/0.1.0"


@asynccontextmanager
async def http_session(
    client: httpx.AsyncClient | None,
    timeout: float = 30.0,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the shared client, or a short-lived one when none was provided."""
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned
