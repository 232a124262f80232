"""
Per-invocation state for PagerDuty scaffolder actions.

One ScaffolderContext owns the config reader, endpoint registry, auth
manager, PagerDuty client and the HTTP connection pool they share. Nothing
is kept in module globals, so overlapping action runs never see each
other's tokens or endpoints.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import httpx
import structlog

from pagerduty_scaffolder.auth import AuthManager
from pagerduty_scaffolder.client import PagerDutyClient
from pagerduty_scaffolder.config.reader import ConfigReader, ConfigSource
from pagerduty_scaffolder.config.settings import Settings, get_settings
from pagerduty_scaffolder.endpoints import EndpointRegistry


class ScaffolderContext:
    """Wires the auth manager, endpoint registry and client for one action run."""

    def __init__(
        self,
        config: ConfigSource | None = None,
        legacy_config: ConfigSource | None = None,
        *,
        settings: Settings | None = None,
        logger: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or get_settings()
        self.logger = logger or structlog.get_logger()
        self.reader = ConfigReader(config, legacy_config)

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.settings.http_timeout)

        self.endpoints = EndpointRegistry(logger=self.logger)
        self.auth = AuthManager(
            self.reader,
            http_client=self.http_client,
            token_url=self.settings.oauth_token_url,
            timeout=self.settings.http_timeout,
            clock=clock,
            logger=self.logger,
        )
        self.client = PagerDutyClient(
            self.auth,
            self.endpoints,
            http_client=self.http_client,
            timeout=self.settings.http_timeout,
            page_size=self.settings.escalation_policy_page_size,
            logger=self.logger,
        )

    async def load(self) -> None:
        """Load credentials and endpoints from configuration."""
        await self.auth.load_auth_config()
        self.endpoints.load_endpoints(self.reader)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> ScaffolderContext:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
