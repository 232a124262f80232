"""
PagerDuty credential resolution.

Each account authenticates with either a static REST API token or scoped
OAuth client credentials. Tokens are held in memory only:

- API tokens render as ``Token token=<value>`` and never expire
- OAuth tokens render as ``Bearer <access_token>`` and expire after the
  provider's ``expires_in``

When an OAuth token has expired the whole token map is rebuilt, which also
re-issues tokens for accounts that were still valid.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import structlog

from pagerduty_scaffolder.config.models import (
    DEFAULT_ACCOUNT_ID,
    AccountConfig,
    ConfigMode,
    LegacyMode,
    MultiAccountMode,
    OAuthConfig,
    resolve_config_mode,
)
from pagerduty_scaffolder.config.reader import ConfigReader
from pagerduty_scaffolder.core.errors import (
    ConfigurationError,
    HttpError,
    ParseError,
    TransportError,
)
from pagerduty_scaffolder.http import http_session

OAUTH_TOKEN_URL = "https://identity.pagerduty.com/oauth/token"

OAUTH_SCOPES = (
    "abilities.read",
    "analytics.read",
    "change_events.read",
    "escalation_policies.read",
    "incidents.read",
    "oncalls.read",
    "schedules.read",
    "services.read",
    "services.write",
    "standards.read",
    "teams.read",
    "users.read",
    "vendors.read",
)

# API tokens do not expire; give them a two year horizon.
API_TOKEN_LIFETIME_SECONDS = 60 * 60 * 24 * 365 * 2


def mask_string(value: str) -> str:
    """Keep the first and last character, star out the rest."""
    if len(value) <= 2:
        return value
    return value[0] + "*" * (len(value) - 2) + value[-1]


@dataclass(frozen=True)
class TokenRecord:
    """An issued Authorization header value and its absolute expiry (epoch seconds)."""

    auth_token: str = field(repr=False)
    expires_at: float

    @property
    def is_api_token(self) -> bool:
        return "Token" in self.auth_token

    @property
    def is_bearer(self) -> bool:
        return "Bearer" in self.auth_token

    def is_valid(self, now: float) -> bool:
        if not self.auth_token:
            return False
        if self.is_api_token:
            return True
        return now <= self.expires_at


class AuthManager:
    """
    Resolves, caches and refreshes PagerDuty credentials per account.

    The token map is built lazily on the first lookup and rebuilt wholesale
    by every `load_auth_config` call. Reloads are serialized.
    """

    def __init__(
        self,
        reader: ConfigReader,
        *,
        http_client: httpx.AsyncClient | None = None,
        token_url: str = OAUTH_TOKEN_URL,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
        logger: Any | None = None,
    ) -> None:
        self.reader = reader
        self.logger = logger or structlog.get_logger()
        self.token_url = token_url
        self._http_client = http_client
        self._timeout = timeout
        self._clock = clock
        self._tokens: dict[str, TokenRecord] | None = None
        self._default_account: str | None = None
        self._mode: ConfigMode | None = None
        self._lock = asyncio.Lock()

    @property
    def is_legacy(self) -> bool:
        return isinstance(self._mode, LegacyMode)

    @property
    def default_account(self) -> str | None:
        return self._default_account

    @property
    def tokens(self) -> dict[str, TokenRecord]:
        return dict(self._tokens or {})

    async def load_auth_config(self) -> None:
        """Rebuild the token map from configuration. Failures are logged, never raised."""
        async with self._lock:
            await self._load()

    async def _load(self) -> None:
        tokens: dict[str, TokenRecord] = {}
        default_account: str | None = None
        mode: ConfigMode | None = None

        try:
            mode = resolve_config_mode(self.reader)

            if isinstance(mode, LegacyMode):
                self.logger.warning(
                    "pagerduty_accounts_not_configured",
                    detail="Reverting to legacy configuration.",
                )
                record = await self._resolve_account(mode.as_account())
                if record is not None:
                    tokens[DEFAULT_ACCOUNT_ID] = record
            else:
                self.logger.debug("pagerduty_accounts_configured", accounts=len(mode.accounts))
                default_account = mode.default_account_id
                if len(mode.accounts) == 1:
                    self.logger.debug("single_account_set_as_default")

                await self._resolve_accounts(mode, tokens)

                if default_account is None:
                    self.logger.error(
                        "pagerduty_default_account_missing",
                        detail="One account must be marked as default.",
                    )
        except Exception as e:
            self.logger.error(
                "pagerduty_auth_config_load_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            self._mode = mode
            self._tokens = tokens
            self._default_account = default_account

    async def _resolve_accounts(self, mode: MultiAccountMode, tokens: dict[str, TokenRecord]) -> None:
        results = await asyncio.gather(
            *(self._resolve_account(account) for account in mode.accounts),
            return_exceptions=True,
        )
        for account, result in zip(mode.accounts, results):
            if isinstance(result, Exception):
                self.logger.error(
                    "pagerduty_account_token_failed",
                    account=mask_string(account.id),
                    error=str(result),
                    error_type=type(result).__name__,
                )
            elif isinstance(result, BaseException):
                raise result
            elif result is not None:
                tokens[account.id] = result

    async def _resolve_account(self, account: AccountConfig) -> TokenRecord | None:
        """Prefer the static API token, then OAuth. None when neither is usable."""
        masked = mask_string(account.id)

        if account.api_token:
            self.logger.debug("pagerduty_api_token_loaded", account=masked)
            return TokenRecord(
                auth_token=f"Token token={account.api_token}",
                expires_at=self._clock() + API_TOKEN_LIFETIME_SECONDS,
            )

        self.logger.warning("pagerduty_api_token_missing", account=masked, detail="Trying OAuth token instead.")

        oauth: OAuthConfig | None = account.oauth
        if oauth is None:
            self.logger.error("pagerduty_oauth_not_configured", account=masked)
            return None
        if not oauth.is_complete:
            self.logger.error(
                "pagerduty_oauth_incomplete",
                account=masked,
                detail="'clientId', 'clientSecret', and 'subDomain' are required. 'region' is optional.",
            )
            return None

        record = await self.get_oauth_token(
            oauth.client_id or "",
            oauth.client_secret or "",
            oauth.sub_domain or "",
            oauth.effective_region,
        )
        self.logger.debug("pagerduty_oauth_token_loaded", account=masked)
        return record

    async def get_oauth_token(
        self,
        client_id: str,
        client_secret: str,
        sub_domain: str,
        region: str = "us",
    ) -> TokenRecord:
        """
        Exchange client credentials for a scoped bearer token.

        Raises:
            ConfigurationError: If a required parameter is empty
            HttpError: On 400 (bad arguments) or 401 (bad credentials)
            TransportError: If the identity service cannot be reached
            ParseError: If the response is not a token payload
        """
        if not client_id or not client_secret or not sub_domain:
            raise ConfigurationError("Missing required PagerDuty OAuth parameters.")

        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": f"as_account-{region or 'us'}.{sub_domain} {' '.join(OAUTH_SCOPES)}",
        }

        try:
            async with http_session(self._http_client, self._timeout) as client:
                response = await client.post(
                    self.token_url,
                    data=form,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to retrieve oauth token: {e}") from e

        if response.status_code == 400:
            raise HttpError(
                "Failed to retrieve valid token. Bad Request - Invalid arguments provided.",
                400,
            )
        if response.status_code == 401:
            raise HttpError(
                "Failed to retrieve valid token. Forbidden - Invalid credentials provided.",
                401,
            )

        try:
            payload = response.json()
            access_token = payload["access_token"]
            expires_in = float(payload["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            raise ParseError(f"Failed to parse oauth token response: {e}") from e

        return TokenRecord(
            auth_token=f"Bearer {access_token}",
            expires_at=self._clock() + expires_in,
        )

    def _token_key(self, account_id: str | None) -> str:
        if isinstance(self._mode, LegacyMode):
            self.logger.debug("using_legacy_config_for_auth_token")
            return DEFAULT_ACCOUNT_ID

        if account_id and isinstance(self._mode, MultiAccountMode) and self._mode.get(account_id):
            return account_id

        if account_id:
            self.logger.warning("unknown_account_using_default", account=mask_string(account_id))
        else:
            self.logger.debug("no_account_id_using_default")
        return self._default_account or ""

    async def get_auth_token(self, account_id: str | None = None) -> str:
        """
        Return the Authorization header value for an account.

        An empty string means no credential is available.
        """
        if self._tokens is None:
            self.logger.debug("auth_config_not_loaded")
            await self.load_auth_config()

        key = self._token_key(account_id)
        record = (self._tokens or {}).get(key)
        if record is None or not record.auth_token:
            return ""

        if record.is_api_token:
            return record.auth_token

        if record.is_bearer:
            if record.is_valid(self._clock()):
                return record.auth_token
            record = await self._refresh(key)
            if record is not None and record.is_valid(self._clock()):
                return record.auth_token

        return ""

    async def _refresh(self, key: str) -> TokenRecord | None:
        async with self._lock:
            current = (self._tokens or {}).get(key)
            # Another caller may have refreshed while we waited for the lock.
            if current is None or not current.is_valid(self._clock()):
                self.logger.info("oauth_token_expired_renewing", account=mask_string(key))
                await self._load()
            return (self._tokens or {}).get(key)
