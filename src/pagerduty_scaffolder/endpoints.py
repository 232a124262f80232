"""
Per-account PagerDuty endpoint resolution.

Each configured account gets a REST API and an Events API base URL, falling
back to the public PagerDuty hosts when not overridden.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from pagerduty_scaffolder.config.models import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_API_BASE_URL,
    DEFAULT_EVENTS_BASE_URL,
    AccountConfig,
    ConfigMode,
    LegacyMode,
    resolve_config_mode,
)
from pagerduty_scaffolder.config.reader import ConfigReader
from pagerduty_scaffolder.core.errors import AccountNotFoundError, ConfigurationError


@dataclass(frozen=True)
class EndpointEntry:
    """Base URLs for one account."""

    events_base_url: str = DEFAULT_EVENTS_BASE_URL
    api_base_url: str = DEFAULT_API_BASE_URL

    @classmethod
    def from_account(cls, account: AccountConfig) -> EndpointEntry:
        return cls(
            events_base_url=account.events_base_url or DEFAULT_EVENTS_BASE_URL,
            api_base_url=account.api_base_url or DEFAULT_API_BASE_URL,
        )


class EndpointRegistry:
    """Account id → endpoint entry, rebuilt on every load."""

    def __init__(self, *, logger: Any | None = None) -> None:
        self.logger = logger or structlog.get_logger()
        self._entries: dict[str, EndpointEntry] = {}
        self._account_ids: list[str] = []
        self._fallback: EndpointEntry | None = None
        self._legacy = False

    @property
    def is_legacy(self) -> bool:
        return self._legacy

    def load_endpoints(self, reader: ConfigReader) -> None:
        """Rebuild the registry from configuration. Config problems are logged, not raised."""
        try:
            mode = resolve_config_mode(reader)
        except ConfigurationError as e:
            self.logger.error("endpoint_config_invalid", error=e.message)
            self._replace({}, [], None, legacy=False)
            return
        self.load_from_mode(mode)

    def load_from_mode(self, mode: ConfigMode) -> None:
        if isinstance(mode, LegacyMode):
            self.logger.debug("loading_legacy_endpoints")
            entry = EndpointEntry.from_account(mode.as_account())
            self._replace({DEFAULT_ACCOUNT_ID: entry}, [DEFAULT_ACCOUNT_ID], entry, legacy=True)
            return

        entries = {account.id: EndpointEntry.from_account(account) for account in mode.accounts}
        account_ids = [account.id for account in mode.accounts]
        fallback: EndpointEntry | None = None

        if len(mode.accounts) == 1:
            self.logger.debug("loading_single_account_endpoints")
            entries[DEFAULT_ACCOUNT_ID] = entries[account_ids[0]]
        else:
            self.logger.debug("loading_multi_account_endpoints", accounts=len(account_ids))

        default_id = mode.default_account_id
        if default_id is not None:
            fallback = entries[default_id]

        self._replace(entries, account_ids, fallback, legacy=False)

    def _replace(
        self,
        entries: dict[str, EndpointEntry],
        account_ids: list[str],
        fallback: EndpointEntry | None,
        *,
        legacy: bool,
    ) -> None:
        # Readers never observe a half-built registry.
        self._entries = entries
        self._account_ids = account_ids
        self._fallback = fallback
        self._legacy = legacy

    def accounts(self) -> list[str]:
        """Account ids to fan out over. Never includes the single-account alias."""
        return list(self._account_ids)

    def get_entry(self, account_id: str | None = None) -> EndpointEntry:
        """
        Resolve the endpoint entry for an account.

        Legacy configuration always resolves the default entry. Otherwise an
        explicit id must be known, and no id means the default account.

        Raises:
            AccountNotFoundError: If the account (or a default) is not configured
        """
        if self._legacy:
            return self._entries[DEFAULT_ACCOUNT_ID]

        if account_id:
            entry = self._entries.get(account_id)
            if entry is None:
                raise AccountNotFoundError(account_id)
            return entry

        if self._fallback is None:
            raise AccountNotFoundError(None)
        return self._fallback

    def get_api_base_url(self, account_id: str | None = None) -> str:
        return self.get_entry(account_id).api_base_url

    def get_events_base_url(self, account_id: str | None = None) -> str:
        return self.get_entry(account_id).events_base_url
