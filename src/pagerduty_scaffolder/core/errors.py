"""
Unified error handling for the PagerDuty scaffolder actions.

The auth and endpoint layers log configuration problems instead of raising,
the PagerDuty client raises the errors below, and the scaffolder action
catches everything. The CLI maps errors to exit codes.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Provider error (PagerDuty API or network failure)
- 12: Validation error
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class ScaffolderError(Exception):
    """Base exception for scaffolder errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ScaffolderError):
    """Raised for missing or invalid configuration values."""

    exit_code = ExitCode.CONFIG_ERROR


# Name used by the config reader contract.
ConfigError = ConfigurationError


class AccountNotFoundError(ConfigurationError):
    """Raised when an account id has no endpoint entry."""

    def __init__(self, account_id: str | None):
        super().__init__(
            f"No PagerDuty endpoint configuration found for account '{account_id or ''}'.",
            details={"account": account_id or ""},
        )
        self.account_id = account_id


class ProviderError(ScaffolderError):
    """Raised when PagerDuty or the network fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class HttpError(ProviderError):
    """PagerDuty returned a status code with a known meaning."""

    def __init__(self, message: str, status_code: int, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.status_code = status_code


class TransportError(ProviderError):
    """The request never produced a response."""


class ParseError(ProviderError):
    """The response body could not be decoded into the expected shape."""


class ValidationError(ScaffolderError):
    """Raised when action input fails validation."""

    exit_code = ExitCode.VALIDATION_ERROR


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - ScaffolderError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except ScaffolderError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: ScaffolderError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
