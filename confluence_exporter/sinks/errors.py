"""Typed exception hierarchy for output sink errors.

Every I/O failure inside a sink surfaces as a SinkError carrying the
path, the operation that failed and the underlying reason.
"""

from typing import Optional

from confluence_exporter.confluence_client.errors import ExportError


class SinkError(ExportError):
    """Raised when a sink cannot initialize, write or close its output."""

    def __init__(self, path: str, operation: str, reason: Optional[str] = None):
        message = f"Sink operation '{operation}' failed for {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path
        self.operation = operation
        self.reason = reason
