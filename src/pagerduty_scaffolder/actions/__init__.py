"""
Scaffolder actions and their registry.

`register_pagerduty_actions` plays the part of the scaffolder backend module:
it builds the PagerDuty actions with the host's root config and logger and
adds them to a registry.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from pagerduty_scaffolder.actions.create_service import (
    ACTION_ID,
    ActionContext,
    CreateServiceAction,
    CreateServiceInput,
    CreateServiceOutput,
)
from pagerduty_scaffolder.config.reader import ConfigSource


class Action(Protocol):
    id: str

    async def handler(self, ctx: ActionContext) -> None: ...


class ActionRegistry:
    """Simple in-memory registry of scaffolder actions."""

    def __init__(self) -> None:
        self._actions: Dict[str, Action] = {}

    def add_actions(self, *actions: Action) -> None:
        for action in actions:
            if not action.id:
                raise ValueError("Action id is required")
            self._actions[action.id] = action

    def get(self, action_id: str) -> Action:
        action = self._actions.get(action_id)
        if action is None:
            raise KeyError(f"Action '{action_id}' is not registered")
        return action

    def ids(self) -> List[str]:
        return list(self._actions)


def register_pagerduty_actions(
    registry: ActionRegistry,
    config: ConfigSource | None = None,
    logger: Any | None = None,
    **kwargs: Any,
) -> None:
    registry.add_actions(CreateServiceAction(config, logger, **kwargs))


__all__ = [
    "ACTION_ID",
    "Action",
    "ActionContext",
    "ActionRegistry",
    "CreateServiceAction",
    "CreateServiceInput",
    "CreateServiceOutput",
    "register_pagerduty_actions",
]
