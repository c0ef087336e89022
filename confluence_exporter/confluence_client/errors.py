"""Typed exception hierarchy for Confluence-related errors.

This module defines the exceptions raised while talking to the Confluence
REST API and while converting page content. All of them inherit from
ExportError so callers can catch every application-level failure at once,
and each carries enough context (endpoint, status, detail) for logging.
"""

from typing import Optional


class ExportError(Exception):
    """Base exception for all confluence-exporter errors.

    Use this to catch any application-level error from the export tool.
    """
    pass


class ConfluenceError(ExportError):
    """Base exception for all Confluence-related errors."""
    pass


class NetworkError(ConfluenceError):
    """Raised when a request never produced an HTTP response (timeout, DNS, refused)."""

    kind = "network"

    def __init__(self, endpoint: str, detail: Optional[str] = None):
        message = f"API is not reachable at {endpoint}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.endpoint = endpoint
        self.detail = detail


class HTTPStatusError(ConfluenceError):
    """Raised when the API answers with a non-2xx status code."""

    kind = "http"

    def __init__(self, status: int, endpoint: str, detail: Optional[str] = None):
        message = f"HTTP {status} from {endpoint}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint
        self.detail = detail


class InvalidCredentialsError(HTTPStatusError):
    """Raised when API credentials are missing, invalid or lack permission."""

    def __init__(self, user: str, endpoint: str, status: int = 401):
        super().__init__(
            status,
            endpoint,
            f"API credentials rejected (user: {user})"
        )
        self.user = user


class ResourceNotFoundError(HTTPStatusError):
    """Raised when a requested space, page or listing does not exist."""

    def __init__(self, endpoint: str, detail: Optional[str] = None):
        super().__init__(404, endpoint, detail or "not found")


class DecodeError(ConfluenceError):
    """Raised when a response body is not the JSON envelope we expect."""

    def __init__(self, endpoint: str, detail: str):
        super().__init__(f"Malformed response from {endpoint}: {detail}")
        self.endpoint = endpoint
        self.detail = detail


class ConversionError(ConfluenceError):
    """Raised when content conversion between formats fails."""

    def __init__(self, message: str):
        super().__init__(message)
