"""Builds the configured sink variant."""

import os

from confluence_exporter.cli.errors import ConfigError

from .base import Sink
from .duckdb_sink import DEFAULT_DATABASE_FILE, DuckDBSink
from .file_sink import FileSink
from .search_sink import DEFAULT_INDEX_FILE, SearchExportSink

OUTPUT_TYPES = ('file', 'duckdb', 'meilisearch')


def create_sink(settings, api=None) -> Sink:
    """Create the sink selected by `settings.output_type`.

    Args:
        settings: ExportSettings
        api: ConfluenceAPI, needed by the file sink for attachment downloads

    Raises:
        ConfigError: If the output type is unknown
    """
    output_type = (settings.output_type or '').lower()

    if output_type == 'file':
        return FileSink(
            settings.output_dir,
            api=api,
            include_front_matter=settings.format.include_front_matter,
            include_attachments=settings.include_attachments,
        )
    if output_type == 'duckdb':
        return DuckDBSink(
            settings.database_path
            or os.path.join(settings.output_dir, DEFAULT_DATABASE_FILE)
        )
    if output_type == 'meilisearch':
        return SearchExportSink(
            os.path.join(settings.output_dir, settings.search_index_file or DEFAULT_INDEX_FILE)
        )

    raise ConfigError(
        f"Unknown output type '{settings.output_type}' "
        f"(expected one of: {', '.join(OUTPUT_TYPES)})",
        'export.output_type',
    )
