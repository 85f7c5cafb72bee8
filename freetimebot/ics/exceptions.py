"""ICS-specific exceptions for error handling."""

from typing import Optional


class ICSError(Exception):
    """Base exception for ICS-related errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ICSFetchError(ICSError):
    """Exception raised when ICS feed cannot be fetched."""


class ICSAuthError(ICSError):
    """Exception raised when the feed host rejects the request (401/403)."""


class ICSNetworkError(ICSError):
    """Exception raised for network-related ICS errors."""


class ICSTimeoutError(ICSError):
    """Exception raised when ICS request times out."""
