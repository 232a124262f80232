"""
Dotted-path configuration reading.

Two sources can back a reader: the "new" root config handed to the action by
its host, and the "legacy" config loaded from app-config files. The new
source wins whenever it is present.
"""

from __future__ import annotations

from typing import Any, Mapping

from pagerduty_scaffolder.core.errors import ConfigError

_MISSING = object()


class ConfigSource:
    """Read-only view over a nested mapping addressed by dotted keys."""

    def __init__(self, data: Mapping[str, Any] | None = None, *, context: str = "app-config"):
        self._data: Mapping[str, Any] = data or {}
        self.context = context

    @classmethod
    def empty(cls) -> ConfigSource:
        return cls({}, context="empty")

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def has(self, key: str) -> bool:
        value = self._lookup(key)
        return value is not _MISSING and value is not None

    def get_optional(self, key: str) -> Any | None:
        value = self._lookup(key)
        if value is _MISSING:
            return None
        return value

    def get_optional_string(self, key: str) -> str | None:
        value = self.get_optional(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConfigError(
                f"Invalid type in config for key '{key}' in '{self.context}', "
                f"got {type(value).__name__}, wanted string",
                details={"key": key},
            )
        return value

    def get_string(self, key: str) -> str:
        value = self.get_optional_string(key)
        if value is None:
            raise ConfigError(
                f"Missing required config value at '{key}' in '{self.context}'",
                details={"key": key},
            )
        return value


class ConfigReader:
    """Reads values from the active configuration source."""

    def __init__(self, config: ConfigSource | None = None, legacy_config: ConfigSource | None = None):
        self.config = config
        self.legacy_config = legacy_config or ConfigSource.empty()

    @property
    def source(self) -> ConfigSource:
        if self.config is None:
            return self.legacy_config
        return self.config

    def read_string(self, key: str) -> str:
        return self.source.get_string(key)

    def read_optional_string(self, key: str) -> str | None:
        return self.source.get_optional_string(key)

    def read_optional(self, key: str) -> Any | None:
        return self.source.get_optional(key)
