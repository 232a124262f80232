"""
The `pagerduty:service:create` scaffolder action.

Creates a PagerDuty service on the account that owns the requested
escalation policy, then adds a Backstage integration to it. The handler
never raises; failures are logged and the outputs that were not reached
stay unset.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

from pagerduty_scaffolder.auth import mask_string
from pagerduty_scaffolder.config.loader import load_backend_config
from pagerduty_scaffolder.config.reader import ConfigSource
from pagerduty_scaffolder.config.settings import Settings, get_settings
from pagerduty_scaffolder.context import ScaffolderContext

ACTION_ID = "pagerduty:service:create"


class CreateServiceInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Name of the service")
    description: str = Field(..., min_length=1, description="Description of the service")
    escalation_policy_id: str = Field(
        ...,
        alias="escalationPolicyId",
        min_length=1,
        description="Escalation policy ID",
    )
    alert_grouping: str | None = Field(
        None,
        alias="alertGrouping",
        description="Alert grouping parameters",
    )


class CreateServiceOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_url: str = Field(..., alias="serviceUrl", description="PagerDuty Service URL")
    service_id: str = Field(..., alias="serviceId", description="PagerDuty Service ID")
    integration_key: str = Field(..., alias="integrationKey", description="Backstage Integration Key")


class ActionContext:
    """What the scaffolder hands to an action handler."""

    def __init__(self, input: Mapping[str, Any], logger: Any | None = None) -> None:
        self.input = dict(input)
        self.logger = logger or structlog.get_logger()
        self.outputs: dict[str, Any] = {}

    def output(self, name: str, value: Any) -> None:
        self.outputs[name] = value


class CreateServiceAction:
    """Scaffolder action creating a PagerDuty service and its Backstage integration."""

    id = ACTION_ID
    input_model = CreateServiceInput
    output_model = CreateServiceOutput

    def __init__(
        self,
        config: ConfigSource | None = None,
        logger: Any | None = None,
        *,
        settings: Settings | None = None,
        legacy_config_loader: Callable[[], ConfigSource] | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.logger = logger
        self.settings = settings or get_settings()
        self._legacy_config_loader = legacy_config_loader
        self._http_client = http_client
        self._clock = clock

    def schema(self) -> dict[str, Any]:
        return {
            "input": CreateServiceInput.model_json_schema(by_alias=True),
            "output": CreateServiceOutput.model_json_schema(by_alias=True),
        }

    def _load_legacy_config(self) -> ConfigSource:
        if self._legacy_config_loader is not None:
            return self._legacy_config_loader()
        return load_backend_config(self.settings.config_paths or None)

    async def handler(self, ctx: ActionContext) -> None:
        logger = self.logger or ctx.logger

        try:
            params = CreateServiceInput.model_validate(ctx.input)

            async with ScaffolderContext(
                self.config,
                self._load_legacy_config(),
                settings=self.settings,
                logger=logger,
                http_client=self._http_client,
                clock=self._clock,
            ) as scaffolder:
                await scaffolder.load()
                client = scaffolder.client

                account = await client.get_account_by_escalation_policy_id(params.escalation_policy_id)
                masked_account = mask_string(account)

                logger.info("creating_service", service=params.name, account=masked_account)
                service = await client.create_service(
                    params.name,
                    params.description,
                    params.escalation_policy_id,
                    account=account,
                    alert_grouping=params.alert_grouping,
                )
                logger.info(
                    "service_created",
                    service=params.name,
                    alert_grouping=service.alert_grouping,
                )

                ctx.output("serviceUrl", service.url)
                ctx.output("serviceId", service.id)
                ctx.output("account", account)

                logger.info("creating_backstage_integration", service=params.name, account=masked_account)
                integration_key = await client.create_service_integration(
                    service.id,
                    self.settings.backstage_vendor_id,
                    account=account,
                )
                logger.info("backstage_integration_created", service=params.name)

                ctx.output("integrationKey", integration_key)
        except Exception as e:
            logger.error(
                "create_service_action_failed",
                action=self.id,
                error=str(e),
                error_type=type(e).__name__,
            )
