"""Data models for CLI operations.

This module defines the exit codes and the configuration model of the
exporter. All models use dataclasses; defaults mirror a config file that
only names what it needs.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Every scope was discovered (individual pages may have failed)
    - GENERAL_ERROR (1): Config issues, sink failures, other discovery errors
    - AUTH_ERROR (3): Authentication or authorization failure
    - NETWORK_ERROR (4): Network connectivity or API availability issues

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class ConfluenceSettings:
    """Connection settings.

    Empty credentials fall back to the CONFLUENCE_URL, CONFLUENCE_USER and
    CONFLUENCE_API_TOKEN environment variables.
    """
    base_url: Optional[str] = None
    username: Optional[str] = None
    api_token: Optional[str] = None
    timeout: int = 30


@dataclass
class FormatSettings:
    """Markdown output options."""
    include_front_matter: bool = False
    preserve_links: bool = True


@dataclass
class ExportSettings:
    """What to export and where to put it.

    Attributes:
        space_key: Export one space (ignored when page_id is set)
        page_id: Export one page, or its whole tree when recursive
        output_dir: Root directory for every output type
        output_type: 'file', 'duckdb' or 'meilisearch'
        recursive: With page_id, export the page's descendants too
        include_attachments: Download attachments (file output only)
        concurrent_requests: Maximum in-flight requests
        page_size: Records per listing request
        database_path: DuckDB file (defaults to <output_dir>/confluence.duckdb)
        search_index_file: JSON file name for the meilisearch output
    """
    space_key: Optional[str] = None
    page_id: Optional[str] = None
    output_dir: str = './output'
    output_type: str = 'file'
    recursive: bool = False
    include_attachments: bool = False
    concurrent_requests: int = 1
    page_size: int = 25
    database_path: Optional[str] = None
    search_index_file: str = 'meilisearch.json'
    format: FormatSettings = field(default_factory=FormatSettings)


@dataclass
class LoggingSettings:
    level: Optional[str] = None
    file: Optional[str] = None


@dataclass
class ExporterConfig:
    """Complete exporter configuration."""
    confluence: ConfluenceSettings = field(default_factory=ConfluenceSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
