"""Offset pagination over Confluence listing endpoints.

Confluence listings return at most `limit` records per call together with
the `start` offset they were served from. PaginatedCollector turns one
logical listing ("all pages in space X") into a complete ordered list by
requesting fixed-size pages until a short page comes back.
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import DecodeError
from .transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25


class PaginatedCollector:
    """Collects every record of a paginated listing.

    Termination rule: the collection ends at the first page holding fewer
    records than the page size. When the total is an exact multiple of the
    page size the final request returns zero records. The offset always
    advances by the page size, not by the number of records received, so a
    server that returns a short page mid-stream ends the collection there.

    Collection is all-or-nothing: any transport or decode error propagates
    and the records gathered so far are dropped.

    Example:
        >>> collector = PaginatedCollector(transport, page_size=25)
        >>> pages = collector.collect("/rest/api/content", {"spaceKey": "TEAM", "type": "page"})
    """

    def __init__(self, transport: Transport, page_size: int = DEFAULT_PAGE_SIZE):
        """Initialize the collector.

        Args:
            transport: Transport used to issue each page request
            page_size: Default number of records requested per call

        Raises:
            ValueError: If page_size is less than 1
        """
        self._validate_page_size(page_size)
        self._transport = transport
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def collect(
        self,
        endpoint: str,
        fixed_params: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch every record of a listing in response order.

        Args:
            endpoint: Listing path (e.g., "/rest/api/content")
            fixed_params: Query parameters sent with every page request
            page_size: Override for the collector's default page size

        Returns:
            All records from the `results` arrays, concatenated in order

        Raises:
            ValueError: If page_size is less than 1
            DecodeError: If a response lacks a `results` list
            NetworkError, HTTPStatusError: Propagated from the transport
        """
        size = self._page_size if page_size is None else page_size
        self._validate_page_size(size)

        records: List[Dict[str, Any]] = []
        offset = 0
        requests_made = 0

        while True:
            params = dict(fixed_params or {})
            params['start'] = offset
            params['limit'] = size

            envelope = self._transport.send("GET", endpoint, params)
            requests_made += 1
            results = self._extract_results(envelope, endpoint)
            records.extend(results)

            if len(results) < size:
                break

            offset += size

        logger.debug(
            f"Collected {len(records)} record(s) from {endpoint} "
            f"in {requests_made} request(s)"
        )
        return records

    @staticmethod
    def _extract_results(envelope: Any, endpoint: str) -> List[Dict[str, Any]]:
        if not isinstance(envelope, dict):
            raise DecodeError(
                endpoint,
                f"expected a JSON object, got {type(envelope).__name__}"
            )

        results = envelope.get('results')
        if not isinstance(results, list):
            raise DecodeError(endpoint, "response has no 'results' list")

        return results

    @staticmethod
    def _validate_page_size(page_size: int) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
