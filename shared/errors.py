"""
Shared error handling for redis-fetch-cache.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class CacheLayerException(Exception):
    """Base exception for the cache layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class FetchError(CacheLayerException):
    """A fetcher has never produced a value and its producer failed.

    The producer's exception is chained as ``__cause__``.
    """

    def __init__(self, key: str, message: str = "Fetch failed", details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__("FETCH_FAILED", f"{key}: {message}", {"key": key, **(details or {})})


class ConfigurationError(CacheLayerException):
    """Invalid cache or fetcher options."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
