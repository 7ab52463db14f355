"""
Custom Exception Classes for the Beefboard Client

This module defines custom exceptions for better error handling and
categorization of failures across the client core.
"""

from enum import Enum
from typing import Optional


class BeefboardError(Exception):
    """Base exception for all Beefboard client errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(BeefboardError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# API Errors
# =============================================================================

class ApiErrorKind(Enum):
    """Categories of failure surfaced by the Beefboard API client."""
    UNKNOWN_ERROR = "unknownError"
    CONNECTION_ERROR = "connectionError"
    INVALID_CREDENTIALS = "invalidCredentials"
    INVALID_REQUEST = "invalidRequest"
    NOT_FOUND = "notFound"
    INVALID_RESPONSE = "invalidResponse"
    SERVER_ERROR = "serverError"
    SERVER_UNAVAILABLE = "serverUnavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED_URL = "unsupportedUrl"


# Messages shown to users, keyed by kind rather than transport detail
USER_MESSAGES = {
    ApiErrorKind.UNKNOWN_ERROR: "Something went wrong. Please try again.",
    ApiErrorKind.CONNECTION_ERROR: "Could not connect to Beefboard. Check your connection.",
    ApiErrorKind.INVALID_CREDENTIALS: "Invalid username or password.",
    ApiErrorKind.INVALID_REQUEST: "The request was not accepted. Check the details and try again.",
    ApiErrorKind.NOT_FOUND: "The requested item could not be found.",
    ApiErrorKind.INVALID_RESPONSE: "Beefboard sent a response that could not be read.",
    ApiErrorKind.SERVER_ERROR: "Beefboard encountered an error.",
    ApiErrorKind.SERVER_UNAVAILABLE: "Beefboard is currently unavailable.",
    ApiErrorKind.TIMEOUT: "The request timed out.",
    ApiErrorKind.UNSUPPORTED_URL: "The Beefboard address is not supported.",
}


class ApiError(BeefboardError):
    """
    Raised when a call to the Beefboard API fails.

    Attributes:
        kind: The ApiErrorKind category of the failure.
        status_code: HTTP status code when the server responded, else None.
    """

    def __init__(self, kind: ApiErrorKind, message: Optional[str] = None,
                 status_code: Optional[int] = None):
        self.kind = kind
        self.status_code = status_code
        super().__init__(message or kind.value)

    @property
    def user_message(self) -> str:
        """Human readable message for this error kind."""
        return USER_MESSAGES[self.kind]

    def __eq__(self, other):
        if not isinstance(other, ApiError):
            return NotImplemented
        return self.kind == other.kind and self.status_code == other.status_code

    def __hash__(self):
        return hash((self.kind, self.status_code))

    def __repr__(self):
        return f"ApiError({self.kind.name}, status_code={self.status_code})"


class InvalidDateError(ValueError):
    """Raised when a date string matches none of the accepted ISO-8601 variants."""
    pass


# =============================================================================
# Storage Errors
# =============================================================================

class StorageError(BeefboardError):
    """Base exception for local storage errors."""
    pass


class StorageConnectionError(StorageError):
    """Raised when the local database cannot be opened."""
    pass


class StorageQueryError(StorageError):
    """Raised when a local database query fails."""
    pass
