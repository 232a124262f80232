"""
App config file loading and merging.

Search order when no explicit paths are given:
1. app-config.yaml (working directory)
2. app-config.local.yaml (working directory)

Later files override earlier ones key by key. String values may reference
environment variables as ${VAR}.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping, Sequence

import structlog
import yaml

from pagerduty_scaffolder.config.reader import ConfigSource
from pagerduty_scaffolder.core.errors import ConfigurationError

logger = structlog.get_logger()

DEFAULT_CONFIG_FILES = ("app-config.yaml", "app-config.local.yaml")

ENV_REF_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def get_config_paths(explicit_paths: Sequence[str | Path] | None = None) -> list[Path]:
    """
    Find the app config files to load.

    Explicit paths must exist; the default files are used only when present.
    """
    if explicit_paths:
        paths = [Path(p) for p in explicit_paths]
        missing = [str(p) for p in paths if not p.exists()]
        if missing:
            raise ConfigurationError(
                "Config file not found",
                details={"paths": ", ".join(missing)},
            )
        return paths

    return [Path.cwd() / name for name in DEFAULT_CONFIG_FILES if (Path.cwd() / name).exists()]


class EnvSubstitutor:
    """Replaces ${VAR} references with environment values."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def substitute(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, dict):
            return {k: self.substitute(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self.substitute(item) for item in value]
        return value

    def _substitute_string(self, text: str) -> str | None:
        whole = ENV_REF_PATTERN.fullmatch(text)
        if whole:
            # An unset variable leaves the key undefined, as if it was never configured.
            return self.environ.get(whole.group(1))

        def replace_var(match: re.Match[str]) -> str:
            return self.environ.get(match.group(1), "")

        return ENV_REF_PATTERN.sub(replace_var, text)


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base. Lists and scalars are replaced."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """
    Loads and merges app config files into a single source.
    """

    def __init__(
        self,
        paths: Sequence[str | Path] | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.paths = get_config_paths(paths)
        self.substitutor = EnvSubstitutor(environ)

    def load(self) -> ConfigSource:
        data: dict[str, Any] = {}
        for path in self.paths:
            data = deep_merge(data, self._load_file(path))

        if not self.paths:
            logger.debug("no_app_config_found", cwd=str(Path.cwd()))

        context = ", ".join(p.name for p in self.paths) or "empty"
        return ConfigSource(self.substitutor.substitute(data), context=context)

    def _load_file(self, path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load config file: {e}",
                details={"path": str(path)},
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Config file must contain a mapping at the top level",
                details={"path": str(path)},
            )

        logger.debug("loaded_config", path=str(path))
        return data


def load_backend_config(
    paths: Sequence[str | Path] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigSource:
    """
    Convenience function to load the legacy app config.

    Args:
        paths: Optional explicit config file paths
        environ: Optional environment mapping for ${VAR} substitution

    Returns:
        ConfigSource over the merged configuration
    """
    return ConfigLoader(paths, environ).load()
