"""Flat-file output: one markdown file per page.

Layout:
    <output_dir>/<scope>/<Page_Title>.md
    <output_dir>/<scope>/attachments/<Page_Title>/<file_name>

Every name component goes through FilesafeConverter, and every file is
written to a temp file in the target directory first and then moved into
place with os.replace, so a crash never leaves a half-written page.
"""

import logging
import os
import tempfile
from typing import Iterable, List, Optional

import yaml

from confluence_exporter.content_converter import FilesafeConverter
from confluence_exporter.models import Attachment, ConvertedPage

from .base import Sink
from .errors import SinkError

logger = logging.getLogger(__name__)

ATTACHMENTS_DIR = 'attachments'


class FileSink(Sink):
    """Writes converted pages as markdown files under an output directory.

    Re-exporting a page with the same title overwrites its file, which is
    what makes reruns idempotent.
    """

    def __init__(
        self,
        output_dir: str,
        api=None,
        include_front_matter: bool = False,
        include_attachments: bool = False,
    ):
        """Initialize the sink.

        Args:
            output_dir: Root directory for the export
            api: ConfluenceAPI used to download attachments
            include_front_matter: Prefix each file with YAML front matter
            include_attachments: Download the attachments listed on each page

        Raises:
            ValueError: If attachments are requested without an API client
        """
        if include_attachments and api is None:
            raise ValueError("include_attachments requires an API client")
        self.output_dir = output_dir
        self.api = api
        self.include_front_matter = include_front_matter
        self.include_attachments = include_attachments
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise SinkError(self.output_dir, 'create_directory', str(e)) from e
        self._initialized = True
        logger.debug(f"File sink ready at {self.output_dir}")

    def page_path(self, page: ConvertedPage, scope_key: str) -> str:
        """Return the path a page is written to."""
        return os.path.join(
            self.output_dir,
            FilesafeConverter.safe_name(scope_key),
            FilesafeConverter.title_to_filename(page.title),
        )

    def save_page(self, page: ConvertedPage, scope_key: str) -> None:
        self.initialize()
        path = self.page_path(page, scope_key)
        self._write_atomic(path, [self._render(page).encode('utf-8')])
        logger.debug(f"Wrote {path}")

        if self.include_attachments and page.attachments:
            self._save_attachments(page, scope_key)

    def close(self) -> None:
        self._initialized = False

    def _render(self, page: ConvertedPage) -> str:
        if not self.include_front_matter:
            return page.body

        front_matter = {
            'title': page.title,
            'uid': page.uid,
            'page_id': page.page_id,
            'space_key': page.space_key,
            'version': page.version,
            'link': page.link,
        }
        yaml_str = yaml.safe_dump(
            front_matter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        return f"---\n{yaml_str}---\n\n{page.body}"

    def _save_attachments(self, page: ConvertedPage, scope_key: str) -> None:
        """Download every attachment of a page.

        A failed download does not stop the remaining ones; the failures
        are reported together once all attachments were attempted.
        """
        directory = os.path.join(
            self.output_dir,
            FilesafeConverter.safe_name(scope_key),
            ATTACHMENTS_DIR,
            FilesafeConverter.safe_name(page.title),
        )
        failures: List[str] = []

        for attachment in page.attachments:
            path = os.path.join(directory, FilesafeConverter.safe_name(attachment.file_name))
            try:
                self._download(attachment, path)
            except Exception as e:
                logger.warning(f"Attachment '{attachment.file_name}' of '{page.title}' failed: {e}")
                failures.append(f"{attachment.file_name} ({e})")

        if failures:
            raise SinkError(
                directory,
                'download_attachments',
                f"{len(failures)} of {len(page.attachments)} attachment(s) failed: "
                + "; ".join(failures)
            )

    def _download(self, attachment: Attachment, path: str) -> None:
        with self.api.download_attachment(attachment) as chunks:
            self._write_atomic(path, chunks)
        logger.debug(f"Downloaded attachment {attachment.file_name} to {path}")

    @staticmethod
    def _write_atomic(path: str, chunks: Iterable[bytes]) -> None:
        """Write chunks to path through a temp file in the same directory.

        Raises:
            SinkError: If the directory, temp file or final move fails
        """
        directory = os.path.dirname(path) or '.'
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise SinkError(directory, 'create_directory', str(e)) from e

        temp_path: Optional[str] = None
        try:
            fd, temp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
            with os.fdopen(fd, 'wb') as f:
                for chunk in chunks:
                    f.write(chunk)
            os.replace(temp_path, path)
            temp_path = None
        except OSError as e:
            raise SinkError(path, 'write', str(e)) from e
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.remove(temp_path)
