"""Typed access to the Confluence listing and content endpoints.

ConfluenceAPI binds each endpoint the exporter needs to the paginated
collector and decodes raw JSON records into Space, ConfluencePage and
Attachment models. Decoding is strict about identity fields (a record with
no id is a DecodeError) and lenient about everything else.
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from confluence_exporter.models import Attachment, ConfluencePage, Space

from .errors import DecodeError
from .paginator import DEFAULT_PAGE_SIZE, PaginatedCollector
from .transport import Transport

logger = logging.getLogger(__name__)

SPACES_ENDPOINT = "/rest/api/space"
CONTENT_ENDPOINT = "/rest/api/content"

# Fields expanded on listings vs. single-page fetches
LIST_EXPAND = "body.storage,version,space"
PAGE_EXPAND = "body.storage,version,space,ancestors"
ATTACHMENT_EXPAND = "version"


class ConfluenceAPI:
    """Endpoint-level client used by the tree resolver and pipeline.

    Example:
        >>> api = ConfluenceAPI(Transport(Authenticator()))
        >>> pages = api.get_pages("TEAM")
        >>> root = api.get_page("123456")
    """

    def __init__(self, transport: Transport, page_size: int = DEFAULT_PAGE_SIZE):
        """Initialize the API client.

        Args:
            transport: Transport used for every request
            page_size: Records requested per listing call
        """
        self._transport = transport
        self._collector = PaginatedCollector(transport, page_size)

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    def get_spaces(self) -> List[Space]:
        """List every space visible to the configured user."""
        records = self._collector.collect(SPACES_ENDPOINT)
        spaces = [self._decode_space(record) for record in records]
        logger.info(f"Found {len(spaces)} space(s)")
        return spaces

    def get_pages(self, space_key: str) -> List[ConfluencePage]:
        """List every page in a space, bodies included.

        Args:
            space_key: Space key (e.g., "TEAM")
        """
        records = self._collector.collect(
            CONTENT_ENDPOINT,
            {
                'spaceKey': space_key,
                'type': 'page',
                'expand': LIST_EXPAND,
            },
        )
        return [self._decode_page(record, endpoint=CONTENT_ENDPOINT) for record in records]

    def get_page(self, page_id: str) -> ConfluencePage:
        """Fetch a single page; its parent is taken from the ancestors chain.

        Args:
            page_id: The Confluence page ID

        Raises:
            ValueError: If page_id is not numeric
            ResourceNotFoundError: If the page doesn't exist
        """
        self._validate_page_id(page_id)
        endpoint = f"{CONTENT_ENDPOINT}/{page_id}"
        data = self._transport.send("GET", endpoint, {'expand': PAGE_EXPAND})
        if not isinstance(data, dict):
            raise DecodeError(endpoint, f"expected a JSON object, got {type(data).__name__}")

        ancestors = data.get('ancestors') or []
        parent_id = None
        if ancestors and isinstance(ancestors[-1], dict) and ancestors[-1].get('id'):
            parent_id = str(ancestors[-1]['id'])

        return self._decode_page(data, endpoint=endpoint, parent_id=parent_id)

    def get_child_pages(self, page_id: str) -> List[ConfluencePage]:
        """List the direct children of a page, in Confluence's sibling order.

        Args:
            page_id: The parent page ID
        """
        self._validate_page_id(page_id)
        endpoint = f"{CONTENT_ENDPOINT}/{page_id}/child/page"
        records = self._collector.collect(endpoint, {'expand': LIST_EXPAND})
        return [
            self._decode_page(record, endpoint=endpoint, parent_id=str(page_id))
            for record in records
        ]

    def get_attachments(self, page_id: str) -> List[Attachment]:
        """List every attachment of a page.

        Args:
            page_id: The page owning the attachments
        """
        self._validate_page_id(page_id)
        endpoint = f"{CONTENT_ENDPOINT}/{page_id}/child/attachment"
        records = self._collector.collect(endpoint, {'expand': ATTACHMENT_EXPAND})
        return [self._decode_attachment(record, endpoint) for record in records]

    @contextmanager
    def download_attachment(self, attachment: Attachment) -> Iterator[Iterator[bytes]]:
        """Stream an attachment's bytes.

        Example:
            >>> with api.download_attachment(attachment) as chunks:
            ...     for chunk in chunks:
            ...         out.write(chunk)
        """
        if not attachment.download_url:
            raise DecodeError(
                attachment.attachment_id,
                f"attachment '{attachment.file_name}' has no download link"
            )
        with self._transport.stream(attachment.download_url) as chunks:
            yield chunks

    def _validate_page_id(self, page_id: str) -> None:
        """Validate that a page ID is numeric before it goes into a URL path.

        Raises:
            ValueError: If page_id is empty or not numeric
        """
        if not page_id or not str(page_id).strip():
            raise ValueError("page_id cannot be empty")

        if not re.match(r'^\d+$', str(page_id).strip()):
            raise ValueError(
                f"Invalid page_id format: '{page_id}'. "
                f"Page IDs must contain only numeric characters."
            )

    @staticmethod
    def _decode_space(record: Dict[str, Any]) -> Space:
        key = record.get('key') if isinstance(record, dict) else None
        if not key:
            raise DecodeError(SPACES_ENDPOINT, "space record without a key")
        return Space(key=str(key), name=str(record.get('name') or ''))

    @staticmethod
    def _decode_page(
        record: Dict[str, Any],
        endpoint: str,
        parent_id: Optional[str] = None,
    ) -> ConfluencePage:
        if not isinstance(record, dict) or not record.get('id'):
            raise DecodeError(endpoint, "page record without an id")

        body = ((record.get('body') or {}).get('storage') or {}).get('value') or ''
        version = (record.get('version') or {}).get('number') or 0
        space_key = (record.get('space') or {}).get('key') or ''
        url = (record.get('_links') or {}).get('webui') or ''

        return ConfluencePage(
            page_id=str(record['id']),
            title=str(record.get('title') or ''),
            space_key=str(space_key),
            version=int(version),
            raw_body=str(body),
            url=str(url),
            parent_id=parent_id,
        )

    @staticmethod
    def _decode_attachment(record: Dict[str, Any], endpoint: str) -> Attachment:
        if not isinstance(record, dict) or not record.get('id'):
            raise DecodeError(endpoint, "attachment record without an id")

        metadata = record.get('metadata') or {}
        extensions = record.get('extensions') or {}
        title = str(record.get('title') or record['id'])

        return Attachment(
            attachment_id=str(record['id']),
            title=title,
            file_name=title,
            media_type=str(metadata.get('mediaType') or extensions.get('mediaType') or ''),
            file_size=int(metadata.get('size') or extensions.get('fileSize') or 0),
            download_url=str((record.get('_links') or {}).get('download') or ''),
        )
