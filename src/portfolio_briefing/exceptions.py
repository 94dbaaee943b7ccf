"""
Exception hierarchy for portfolio briefing.
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class PortfolioBriefingError(Exception):
    """Base exception for portfolio briefing."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ValidationError(PortfolioBriefingError):
    """A local precondition for an action is missing."""

    def __init__(self, message: str = "Validation failed", code: str | None = None):
        super().__init__(message, code)


class RemoteCallError(PortfolioBriefingError):
    """A remote service returned failure or could not be reached."""

    def __init__(self, message: str = "Remote call failed", code: str | None = None):
        super().__init__(message, code)


class CronFormatError(PortfolioBriefingError):
    """Cron expression does not have exactly five fields or cannot be parsed."""

    def __init__(self, message: str = "Invalid cron expression", code: str | None = None):
        super().__init__(message, code)


FormatError = CronFormatError
InvalidCronFormat = CronFormatError


class StorageError(PortfolioBriefingError):
    """Preference storage operation failed."""

    def __init__(self, message: str = "Storage operation failed", code: str | None = None):
        super().__init__(message, code)


class ConfigurationError(PortfolioBriefingError):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error", code: str | None = None):
        super().__init__(message, code)


def handle_errors(
    error_message: str,
    default_return: Any = None,
    raise_on: tuple[type[Exception], ...] = (),
    log_level: str = "error",
) -> Callable[[F], F]:
    """
    Error handling decorator.

    Unified handling of function exceptions, logging and returning default value.

    Args:
        error_message: Error message prefix
        default_return: Default return value on exception
        raise_on: Exception types to re-raise
        log_level: Log level (debug, info, warning, error)

    Example:
        @handle_errors("Failed to decode history", default_return=[])
        def decode_history(raw: str) -> list[AnalysisHistoryEntry]:
            return [AnalysisHistoryEntry.from_dict(item) for item in json.loads(raw)]
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except raise_on:
                raise
            except Exception as e:
                msg = f"{error_message}: {e}"
                if log_level == "debug":
                    logger.debug(msg)
                elif log_level == "info":
                    logger.info(msg)
                elif log_level == "warning":
                    logger.warning(msg)
                else:
                    logger.error(msg)
                return default_return

        return wrapper  # type: ignore[return-value]

    return decorator
