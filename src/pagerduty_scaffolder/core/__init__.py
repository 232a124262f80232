"""Core modules for the PagerDuty scaffolder - centralized error definitions."""

from pagerduty_scaffolder.core.errors import (
    AccountNotFoundError,
    ConfigError,
    ConfigurationError,
    ExitCode,
    HttpError,
    ParseError,
    ProviderError,
    ScaffolderError,
    TransportError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "ScaffolderError",
    "ConfigurationError",
    "ConfigError",
    "AccountNotFoundError",
    "ProviderError",
    "HttpError",
    "TransportError",
    "ParseError",
    "ValidationError",
    "main_with_error_handling",
    "format_error_message",
]
