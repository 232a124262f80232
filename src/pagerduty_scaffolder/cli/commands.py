"""
CLI commands running the scaffolder action and account lookups from a shell.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

import pydantic

from pagerduty_scaffolder.actions import ActionContext, CreateServiceAction, CreateServiceInput
from pagerduty_scaffolder.auth import mask_string
from pagerduty_scaffolder.cli.ux import error, info, print_key_value, print_table, success
from pagerduty_scaffolder.config.loader import load_backend_config
from pagerduty_scaffolder.config.settings import get_settings
from pagerduty_scaffolder.context import ScaffolderContext
from pagerduty_scaffolder.core.errors import (
    ExitCode,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)


@main_with_error_handling()
def create_service_command(
    name: str,
    description: str,
    escalation_policy_id: str,
    alert_grouping: str | None = None,
    config_paths: Sequence[str] | None = None,
) -> int:
    """
    Run `pagerduty:service:create` against the given app config.

    Returns:
        Exit code (0 = service and integration created, 11 = action failed,
        12 = invalid input)
    """
    action = CreateServiceAction(
        legacy_config_loader=lambda: load_backend_config(config_paths or get_settings().config_paths or None),
    )
    payload = {
        "name": name,
        "description": description,
        "escalationPolicyId": escalation_policy_id,
    }
    if alert_grouping is not None:
        payload["alertGrouping"] = alert_grouping

    try:
        CreateServiceInput.model_validate(payload)
    except pydantic.ValidationError as e:
        invalid = ValidationError(
            "Invalid create-service input",
            details={"fields": ", ".join(str(err["loc"][0]) for err in e.errors())},
        )
        error(format_error_message(invalid))
        raise invalid from e

    ctx = ActionContext(payload)
    asyncio.run(action.handler(ctx))

    if "serviceId" in ctx.outputs:
        print_key_value(
            {
                "Service ID": ctx.outputs["serviceId"],
                "Service URL": ctx.outputs.get("serviceUrl", ""),
                "Account": mask_string(ctx.outputs.get("account", "")) or "(default)",
            },
            title="Service",
        )

    if "integrationKey" not in ctx.outputs:
        error("Service creation did not complete, see logs for details")
        return ExitCode.PROVIDER_ERROR

    success("PagerDuty service and Backstage integration created")
    return ExitCode.SUCCESS


async def _list_escalation_policies(config_paths: Sequence[str] | None) -> list[list[str]]:
    legacy = load_backend_config(config_paths or get_settings().config_paths or None)
    async with ScaffolderContext(legacy_config=legacy) as scaffolder:
        await scaffolder.load()
        policies = await scaffolder.client.get_all_escalation_policies()
    return [[p.id, p.name, mask_string(p.account)] for p in policies]


@main_with_error_handling()
def list_escalation_policies_command(config_paths: Sequence[str] | None = None) -> int:
    """List escalation policies across every configured account."""
    rows = asyncio.run(_list_escalation_policies(config_paths))
    if not rows:
        info("No escalation policies found")
        return ExitCode.SUCCESS

    print_table("Escalation policies", ["ID", "Name", "Account"], rows)
    return ExitCode.SUCCESS
