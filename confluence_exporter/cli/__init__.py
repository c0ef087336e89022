"""Command-line interface for the Confluence exporter.

This package provides the `confluence-export` CLI tool: configuration
loading, the export command, logging setup and Rich terminal output.
The command itself lives in `confluence_exporter.cli.main`.
"""

from .models import (
    ExitCode,
    ConfluenceSettings,
    ExportSettings,
    ExporterConfig,
    FormatSettings,
    LoggingSettings,
)
from .errors import (
    CLIError,
    ConfigError,
    ConfigNotFoundError,
)

__all__ = [
    'ExitCode',
    'ConfluenceSettings',
    'ExportSettings',
    'ExporterConfig',
    'FormatSettings',
    'LoggingSettings',
    'CLIError',
    'ConfigError',
    'ConfigNotFoundError',
]
