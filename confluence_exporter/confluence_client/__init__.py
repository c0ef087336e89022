"""Confluence client library for the exporter.

This package provides Python abstractions over the Confluence REST API:
an authenticated transport, offset pagination, and typed listing endpoints.
"""

from .errors import (
    ExportError,
    ConfluenceError,
    NetworkError,
    HTTPStatusError,
    InvalidCredentialsError,
    ResourceNotFoundError,
    DecodeError,
    ConversionError,
)
from .auth import Authenticator, Credentials
from .transport import Transport
from .paginator import PaginatedCollector, DEFAULT_PAGE_SIZE
from .api import ConfluenceAPI

__all__ = [
    "ExportError",
    "ConfluenceError",
    "NetworkError",
    "HTTPStatusError",
    "InvalidCredentialsError",
    "ResourceNotFoundError",
    "DecodeError",
    "ConversionError",
    "Authenticator",
    "Credentials",
    "Transport",
    "PaginatedCollector",
    "DEFAULT_PAGE_SIZE",
    "ConfluenceAPI",
]
