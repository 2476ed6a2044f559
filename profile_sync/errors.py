"""
Error types and exit codes for profile synchronization.
"""

import logging
import sys
from typing import Any, NoReturn, Optional

logger = logging.getLogger(__name__)


class ProfileSyncError(Exception):
    """Base exception for profile synchronization errors."""

    exit_code = 1

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(ProfileSyncError):
    """Missing or invalid configuration (base URL, token, ...)."""

    exit_code = 2


class ApiError(ProfileSyncError):
    """Non-successful response from the REST backend."""

    exit_code = 3

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message, status_code)
        self.body = body


class AuthenticationError(ApiError):
    """401 that survived the refresh-and-retry, or a failed refresh."""

    exit_code = 4


class ValidationError(ApiError):
    """Rejected input: a 400/422 from the server or a local invariant violation."""

    exit_code = 5


class NotFoundError(ApiError):
    """404 from the server."""

    exit_code = 6


class ConflictError(ApiError):
    """409 from the server."""

    exit_code = 7


class TransientError(ApiError):
    """Network failure, timeout or 5xx response."""

    exit_code = 8


# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2


def error_for_status(status_code: int, message: str, body: Any = None) -> ApiError:
    """Map an HTTP status code to the matching exception instance."""
    if status_code == 401:
        return AuthenticationError(message, status_code, body)
    if status_code in (400, 422):
        return ValidationError(message, status_code, body)
    if status_code == 404:
        return NotFoundError(message, status_code, body)
    if status_code == 409:
        return ConflictError(message, status_code, body)
    if status_code >= 500:
        return TransientError(message, status_code, body)
    return ApiError(message, status_code, body)


def fatal_error(message: str, exit_code: int = EXIT_ERROR) -> NoReturn:
    """Log an error message and exit with the given code."""
    logger.error(message)
    sys.exit(exit_code)
