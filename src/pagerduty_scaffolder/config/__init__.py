"""
PagerDuty scaffolder configuration.

Provides:
- Pydantic-based process settings (environment variables, .env files)
- Backstage-style app-config loading with ${VAR} substitution
- Dotted-path reading from the new or legacy config source
- Account models and the legacy / multi-account mode split
"""

from pagerduty_scaffolder.config.loader import (
    ConfigLoader,
    get_config_paths,
    load_backend_config,
)
from pagerduty_scaffolder.config.models import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_API_BASE_URL,
    DEFAULT_EVENTS_BASE_URL,
    AccountConfig,
    ConfigMode,
    LegacyMode,
    MultiAccountMode,
    OAuthConfig,
    resolve_config_mode,
)
from pagerduty_scaffolder.config.reader import ConfigReader, ConfigSource
from pagerduty_scaffolder.config.settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Loader
    "ConfigLoader",
    "get_config_paths",
    "load_backend_config",
    # Reader
    "ConfigReader",
    "ConfigSource",
    # Models
    "AccountConfig",
    "OAuthConfig",
    "ConfigMode",
    "LegacyMode",
    "MultiAccountMode",
    "resolve_config_mode",
    "DEFAULT_ACCOUNT_ID",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_EVENTS_BASE_URL",
]
