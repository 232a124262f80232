"""
Process settings using Pydantic.

Provides environment-based configuration loading with PAGERDUTY_SCAFFOLDER_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Process settings."""

    # App config files, merged in order. Empty means the default search.
    config_paths: list[str] = []

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # HTTP client settings
    http_timeout: float = 30.0

    # PagerDuty
    oauth_token_url: str = "https://identity.pagerduty.com/oauth/token"
    escalation_policy_page_size: int = 50
    backstage_vendor_id: str = "PRO19CT"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "PAGERDUTY_SCAFFOLDER_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
