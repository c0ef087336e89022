"""Output sinks for converted pages.

Three interchangeable backends share the Sink interface: markdown files,
an embedded DuckDB table, and a JSON batch for a search index.
"""

from .base import Sink
from .errors import SinkError
from .file_sink import FileSink
from .duckdb_sink import DuckDBSink
from .search_sink import SearchExportSink
from .factory import OUTPUT_TYPES, create_sink

__all__ = [
    'Sink',
    'SinkError',
    'FileSink',
    'DuckDBSink',
    'SearchExportSink',
    'OUTPUT_TYPES',
    'create_sink',
]
