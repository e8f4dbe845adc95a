"""Utility modules."""
from .logger import get_logger, configure_logging, set_session_context, app_home
from .exceptions import (
    FinSightError,
    ConfigError,
    ApiError,
    ParseError,
    CancellationError,
    ValidationError,
    ChatBusyError
)
from .cancellation import CancellationToken

__all__ = [
    "get_logger",
    "configure_logging",
    "set_session_context",
    "app_home",
    "FinSightError",
    "ConfigError",
    "ApiError",
    "ParseError",
    "CancellationError",
    "ValidationError",
    "ChatBusyError",
    "CancellationToken"
]
