"""
PagerDuty REST API v2 client for scaffolder actions.

Handles:
- Service creation with optional alert grouping
- Backstage integration creation
- Abilities lookup (event noise reduction)
- Escalation policy listing across every configured account
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pagerduty_scaffolder.auth import AuthManager, mask_string
from pagerduty_scaffolder.core.errors import (
    HttpError,
    ParseError,
    TransportError,
)
from pagerduty_scaffolder.endpoints import EndpointRegistry
from pagerduty_scaffolder.http import (
    DEFAULT_USER_AGENT,
    PAGERDUTY_ACCEPT,
    http_session,
)

BACKSTAGE_INTEGRATION_NAME = "Backstage"
NOISE_REDUCTION_ABILITIES = ("preview_intelligent_alert_grouping", "time_based_alert_grouping")
ESCALATION_POLICY_PAGE_SIZE = 50
NO_ALERT_GROUPING = "null"

ALERT_GROUPING_PARAMETERS: dict[str, dict[str, Any]] = {
    "intelligent": {"type": "intelligent"},
    "time": {"type": "time", "config": {"timeout": 0}},
    "content_based": {
        "type": "content_based",
        "config": {
            "aggregate": "all",
            "time_window": 0,
            "fields": ["source", "summary"],
        },
    },
}

SERVICE_ERRORS = {
    400: "Failed to create service. Caller provided invalid arguments.",
    401: "Failed to create service. Caller did not supply credentials or did not provide the correct credentials.",
    402: "Failed to create service. Account does not have the abilities to perform the action.",
    403: "Failed to create service. Caller is not authorized to view the requested resource.",
}

INTEGRATION_ERRORS = {
    400: "Failed to create service integration. Caller provided invalid arguments.",
    401: "Failed to create service integration. Caller did not supply credentials or did not provide the correct credentials.",
    403: "Failed to create service integration. Caller is not authorized to view the requested resource.",
    429: "Failed to create service integration. Rate limit exceeded.",
}

ABILITIES_ERRORS = {
    401: "Failed to read abilities. Caller did not supply credentials or did not provide the correct credentials.",
    403: "Failed to read abilities. Caller is not authorized to view the requested resource.",
    429: "Failed to read abilities. Rate limit exceeded.",
}

ESCALATION_POLICY_ERRORS = {
    400: "Failed to list escalation policies. Caller provided invalid arguments.",
    401: "Failed to list escalation policies. Caller did not supply credentials or did not provide the correct credentials.",
    403: "Failed to list escalation policies. Caller is not authorized to view the requested resource.",
    429: "Failed to list escalation policies. Rate limit exceeded.",
}


@dataclass(frozen=True)
class CreateServiceResponse:
    """Result of a service creation."""

    id: str
    url: str
    alert_grouping: str


@dataclass(frozen=True)
class EscalationPolicy:
    """An escalation policy tagged with the account it was fetched from."""

    id: str
    name: str
    account: str

    @classmethod
    def from_api(cls, data: dict[str, Any], account: str) -> EscalationPolicy:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            account=account,
        )


def build_service_body(
    name: str,
    description: str,
    escalation_policy_id: str,
    alert_grouping_parameters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    service: dict[str, Any] = {
        "type": "service",
        "name": name,
        "description": description,
        "escalation_policy": {
            "id": escalation_policy_id,
            "type": "escalation_policy_reference",
        },
        "alert_creation": "create_alerts_and_incidents",
        "auto_pause_notifications_parameters": {
            "enabled": True,
            "timeout": 300,
        },
    }
    if alert_grouping_parameters is not None:
        service["alert_grouping_parameters"] = alert_grouping_parameters
    return {"service": service}


class PagerDutyClient:
    """
    PagerDuty API client bound to an auth manager and endpoint registry.

    Every call takes an optional account id. Without one the default
    account's credential and base URL are used.
    """

    def __init__(
        self,
        auth: AuthManager,
        endpoints: EndpointRegistry,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        page_size: int = ESCALATION_POLICY_PAGE_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: Any | None = None,
    ) -> None:
        self.auth = auth
        self.logger = logger or structlog.get_logger()
        self.endpoints = endpoints
        self.page_size = page_size
        self._http_client = http_client
        self._timeout = timeout
        self._user_agent = user_agent

    async def _headers(self, account: str | None) -> dict[str, str]:
        return {
            "Authorization": await self.auth.get_auth_token(account),
            "Accept": PAGERDUTY_ACCEPT,
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
        }

    async def _request(
        self,
        method: str,
        url: str,
        account: str | None,
        *,
        action: str,
        errors: dict[int, str],
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and map known status codes. Unmapped statuses are returned as-is."""
        headers = await self._headers(account)
        try:
            async with http_session(self._http_client, self._timeout) as client:
                response = await client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            self.logger.warning("http_network_error", method=method, url=url, error=str(exc))
            raise TransportError(f"Failed to {action}: {exc}") from exc

        message = errors.get(response.status_code)
        if message is not None:
            self.logger.error(
                "pagerduty_request_failed",
                method=method,
                url=url,
                status=response.status_code,
                account=mask_string(account or ""),
            )
            raise HttpError(message, response.status_code)
        return response

    @retry(
        retry=retry_if_exception_type(TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    async def _get(self, url: str, account: str | None, **kwargs: Any) -> httpx.Response:
        """GET with retry on network failures. Only idempotent reads go through here."""
        return await self._request("GET", url, account, **kwargs)

    async def is_event_noise_reduction_enabled(self, account: str | None = None) -> bool:
        base_url = self.endpoints.get_api_base_url(account)
        response = await self._get(
            f"{base_url}/abilities",
            account,
            action="read abilities",
            errors=ABILITIES_ERRORS,
        )
        try:
            abilities = response.json()["abilities"]
            return all(ability in abilities for ability in NOISE_REDUCTION_ABILITIES)
        except (ValueError, KeyError, TypeError) as exc:
            raise ParseError(f"Failed to parse abilities information: {exc}") from exc

    async def create_service(
        self,
        name: str,
        description: str,
        escalation_policy_id: str,
        account: str | None = None,
        alert_grouping: str | None = None,
    ) -> CreateServiceResponse:
        """
        Create a service on the given account.

        Alert grouping is applied only when the account has event noise
        reduction enabled. Unknown grouping kinds leave the default body.

        Returns:
            CreateServiceResponse with the service id, URL and applied grouping
        """
        base_url = self.endpoints.get_api_base_url(account)
        applied_grouping = NO_ALERT_GROUPING
        grouping_parameters: dict[str, Any] | None = None

        if await self.is_event_noise_reduction_enabled(account) and alert_grouping is not None:
            grouping_parameters = ALERT_GROUPING_PARAMETERS.get(alert_grouping)
            if grouping_parameters is not None:
                applied_grouping = alert_grouping

        body = build_service_body(name, description, escalation_policy_id, grouping_parameters)

        response = await self._request(
            "POST",
            f"{base_url}/services",
            account,
            action="create service",
            errors=SERVICE_ERRORS,
            json=body,
        )
        try:
            service = response.json()["service"]
            return CreateServiceResponse(
                id=service["id"],
                url=service["html_url"],
                alert_grouping=applied_grouping,
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise ParseError(f"Failed to parse service information: {exc}") from exc

    async def create_service_integration(
        self,
        service_id: str,
        vendor_id: str,
        account: str | None = None,
    ) -> str:
        """Create the Backstage integration and return its integration key, or ''."""
        base_url = self.endpoints.get_api_base_url(account)
        body = {
            "integration": {
                "name": BACKSTAGE_INTEGRATION_NAME,
                "service": {"id": service_id, "type": "service_reference"},
                "vendor": {"id": vendor_id, "type": "vendor_reference"},
            }
        }
        response = await self._request(
            "POST",
            f"{base_url}/services/{service_id}/integrations",
            account,
            action="create service integration",
            errors=INTEGRATION_ERRORS,
            json=body,
        )
        try:
            return response.json()["integration"].get("integration_key") or ""
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ParseError(f"Failed to parse service information: {exc}") from exc

    async def get_escalation_policies(
        self,
        offset: int,
        limit: int,
        account: str | None = None,
    ) -> tuple[bool, list[dict[str, Any]]]:
        """Fetch one page. Returns (more, policies)."""
        base_url = self.endpoints.get_api_base_url(account)
        response = await self._get(
            f"{base_url}/escalation_policies",
            account,
            action="retrieve escalation policies",
            errors=ESCALATION_POLICY_ERRORS,
            params={"total": "true", "sort_by": "name", "offset": offset, "limit": limit},
        )
        try:
            payload = response.json()
            return bool(payload.get("more", False)), list(payload["escalation_policies"])
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise HttpError(f"Failed to parse escalation policy information: {exc}", 500) from exc

    async def _get_account_escalation_policies(self, account: str) -> list[EscalationPolicy]:
        policies: list[EscalationPolicy] = []
        offset = 0
        try:
            while True:
                more, page = await self.get_escalation_policies(offset, self.page_size, account)
                policies.extend(EscalationPolicy.from_api(p, account) for p in page)
                if not more:
                    return policies
                offset += self.page_size
        except HttpError:
            raise
        except Exception as exc:
            raise HttpError(str(exc), 500) from exc

    async def get_all_escalation_policies(self) -> list[EscalationPolicy]:
        """
        List escalation policies of every configured account.

        Accounts are fetched concurrently. A failing account is logged and
        skipped; if every account fails, the first error is raised.
        """
        accounts = self.endpoints.accounts()
        results = await asyncio.gather(
            *(self._get_account_escalation_policies(account) for account in accounts),
            return_exceptions=True,
        )

        policies: list[EscalationPolicy] = []
        errors: list[Exception] = []
        for account, result in zip(accounts, results):
            if isinstance(result, Exception):
                self.logger.error(
                    "escalation_policies_fetch_failed",
                    account=mask_string(account),
                    error=str(result),
                )
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                policies.extend(result)

        if errors and len(errors) == len(accounts):
            raise errors[0]
        return policies

    async def get_account_by_escalation_policy_id(self, escalation_policy_id: str) -> str:
        """Account owning the escalation policy, or '' when none does."""
        for policy in await self.get_all_escalation_policies():
            if policy.id == escalation_policy_id:
                return policy.account
        return ""
