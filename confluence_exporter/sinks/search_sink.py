"""Search-index export: a single JSON array of page records.

The array is the document batch a Meilisearch index accepts as is
(`uid` is the primary key).
"""

import json
import logging
import os
from typing import Dict, Optional

from confluence_exporter.models import ConvertedPage

from .base import Sink
from .errors import SinkError

logger = logging.getLogger(__name__)

DEFAULT_INDEX_FILE = 'meilisearch.json'


class SearchExportSink(Sink):
    """Collects records in memory and writes them as one JSON array on close.

    Records keep their first-save order; saving a uid again replaces its
    record in place. Nothing is written until close(), so a crash before
    then loses the batch.
    """

    def __init__(self, output_path: str):
        self.output_path = output_path
        self._records: Dict[str, Dict[str, str]] = {}
        self._open = False

    def initialize(self) -> None:
        if self._open:
            return
        self._records = {}
        self._open = True

    def save_page(self, page: ConvertedPage, scope_key: str) -> None:
        self.initialize()
        self._records[page.uid] = page.to_record()

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        records = list(self._records.values())
        self._records = {}
        self._write(records)

    def _write(self, records) -> None:
        directory = os.path.dirname(self.output_path)
        temp_path: Optional[str] = None
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            temp_path = f"{self.output_path}.tmp"
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(temp_path, self.output_path)
            temp_path = None
        except OSError as e:
            raise SinkError(self.output_path, 'write', str(e)) from e
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.remove(temp_path)

        logger.info(f"Wrote {len(records)} record(s) to {self.output_path}")
