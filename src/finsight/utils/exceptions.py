"""Custom exception classes for FinSight."""


class FinSightError(Exception):
    """Base exception for FinSight."""
    pass


class ConfigError(FinSightError):
    """Configuration-related errors."""
    pass


class ApiError(FinSightError):
    """Completion API errors: transport failure, non-2xx status or missing content."""
    pass


class ParseError(FinSightError):
    """Model reply carries no usable structured payload."""
    pass


class CancellationError(FinSightError):
    """Operation abandoned at a checkpoint because the caller cancelled it."""
    pass


class ValidationError(FinSightError):
    """Data validation errors."""
    pass


class ChatBusyError(FinSightError):
    """A chat session already has a request in flight."""
    pass
