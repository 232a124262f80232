"""
PagerDuty account configuration.

The `pagerDuty` config block comes in two shapes:
- Legacy: flat `apiToken` / `oauth` / base URL keys for a single account
- Multi-account: an `accounts` list, one entry per PagerDuty account

`resolve_config_mode` decides once which shape is in use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from pagerduty_scaffolder.config.reader import ConfigReader
from pagerduty_scaffolder.core.errors import ConfigurationError

DEFAULT_EVENTS_BASE_URL = "https://events.pagerduty.com/v2"
DEFAULT_API_BASE_URL = "https://api.pagerduty.com"
DEFAULT_REGION = "us"

DEFAULT_ACCOUNT_ID = "default"


@dataclass(frozen=True)
class OAuthConfig:
    """Scoped OAuth client credentials for one account."""
    client_id: str | None = None
    client_secret: str | None = None
    sub_domain: str | None = None
    region: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.sub_domain)

    @property
    def effective_region(self) -> str:
        return self.region or DEFAULT_REGION

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OAuthConfig:
        return cls(
            client_id=data.get("clientId"),
            client_secret=data.get("clientSecret"),
            sub_domain=data.get("subDomain"),
            region=data.get("region"),
        )

    def __repr__(self) -> str:
        # Never render the client secret.
        return (
            f"OAuthConfig(client_id={self.client_id!r}, sub_domain={self.sub_domain!r}, "
            f"region={self.region!r})"
        )


@dataclass(frozen=True)
class AccountConfig:
    """One configured PagerDuty account."""
    id: str
    api_token: str | None = field(default=None, repr=False)
    oauth: OAuthConfig | None = None
    events_base_url: str | None = None
    api_base_url: str | None = None
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountConfig:
        if not isinstance(data, dict):
            raise ConfigurationError("PagerDuty account entry must be a mapping")
        account_id = data.get("id")
        if not isinstance(account_id, str) or not account_id:
            raise ConfigurationError("PagerDuty account entry is missing 'id'")

        oauth_data = data.get("oauth")
        return cls(
            id=account_id,
            api_token=data.get("apiToken"),
            oauth=OAuthConfig.from_dict(oauth_data) if isinstance(oauth_data, dict) else None,
            events_base_url=data.get("eventsBaseUrl"),
            api_base_url=data.get("apiBaseUrl"),
            is_default=bool(data.get("isDefault", False)),
        )


@dataclass(frozen=True)
class LegacyMode:
    """Single account configured with flat top-level keys."""
    api_token: str | None = field(default=None, repr=False)
    oauth: OAuthConfig | None = None
    events_base_url: str | None = None
    api_base_url: str | None = None

    def as_account(self) -> AccountConfig:
        return AccountConfig(
            id=DEFAULT_ACCOUNT_ID,
            api_token=self.api_token,
            oauth=self.oauth,
            events_base_url=self.events_base_url,
            api_base_url=self.api_base_url,
            is_default=True,
        )


@dataclass(frozen=True)
class MultiAccountMode:
    """Accounts configured under `pagerDuty.accounts`."""
    accounts: tuple[AccountConfig, ...] = ()

    @property
    def default_account_id(self) -> str | None:
        """The single account, or the first one flagged isDefault."""
        if len(self.accounts) == 1:
            return self.accounts[0].id
        for account in self.accounts:
            if account.is_default:
                return account.id
        return None

    def get(self, account_id: str) -> AccountConfig | None:
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None


ConfigMode = Union[LegacyMode, MultiAccountMode]


def resolve_config_mode(reader: ConfigReader) -> ConfigMode:
    """
    Read the `pagerDuty` block once and decide which shape is configured.

    Raises:
        ConfigurationError: If values are present but malformed
    """
    raw_accounts = reader.read_optional("pagerDuty.accounts")
    if raw_accounts is not None:
        if not isinstance(raw_accounts, list):
            raise ConfigurationError("'pagerDuty.accounts' must be a list")
        accounts = tuple(AccountConfig.from_dict(a) for a in raw_accounts)
        seen: set[str] = set()
        for account in accounts:
            if account.id in seen:
                raise ConfigurationError(
                    f"Duplicate PagerDuty account id '{account.id}'",
                    details={"account": account.id},
                )
            seen.add(account.id)
        return MultiAccountMode(accounts)

    oauth_data = reader.read_optional("pagerDuty.oauth")
    return LegacyMode(
        api_token=reader.read_optional_string("pagerDuty.apiToken"),
        oauth=OAuthConfig.from_dict(oauth_data) if isinstance(oauth_data, dict) else None,
        events_base_url=reader.read_optional_string("pagerDuty.eventsBaseUrl"),
        api_base_url=reader.read_optional_string("pagerDuty.apiBaseUrl"),
    )
