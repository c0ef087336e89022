"""Page tree resolution.

Walks the child-page relation from a root page and returns every
reachable page exactly once, in pre-order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Set

from confluence_exporter.confluence_client.api import ConfluenceAPI
from confluence_exporter.models import ConfluencePage

logger = logging.getLogger(__name__)


class TreeResolver:
    """Resolves the tree of pages below a root page.

    Order is pre-order: the root, then each child's subtree in the sibling
    order Confluence returns. A visited set keyed by page ID guards against
    malformed data where a page shows up twice (or is its own ancestor):
    repeats are skipped and logged, never emitted or descended into.

    The walk uses an explicit stack, so depth is unbounded. Any fetch error
    aborts the whole resolution.

    With max_workers > 1, the child listings of one tree level are fetched
    concurrently and the pre-order is rebuilt afterwards; the result is the
    same as the sequential walk.

    Example:
        >>> resolver = TreeResolver(api)
        >>> pages = resolver.resolve_tree("123456")
        >>> [p.title for p in pages]
        ['Root', 'A', 'A1', 'B']
    """

    def __init__(self, api: ConfluenceAPI, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.api = api
        self.max_workers = max_workers

    def resolve_tree(self, root_id: str) -> List[ConfluencePage]:
        """Return the root page and all of its descendants in pre-order.

        Args:
            root_id: Page ID of the tree root

        Raises:
            ValueError: If root_id is not a valid page ID
            ConfluenceError: If any page or child listing cannot be fetched
        """
        root = self.api.get_page(root_id)

        if self.max_workers > 1:
            children = self._fetch_levels(root)
            pages = self._walk(root, children.__getitem__)
        else:
            pages = self._walk(root, lambda page_id: self.api.get_child_pages(page_id))

        logger.info(f"Resolved {len(pages)} page(s) under '{root.title}' ({root.page_id})")
        return pages

    @staticmethod
    def _walk(root: ConfluencePage, children_of) -> List[ConfluencePage]:
        ordered: List[ConfluencePage] = []
        visited: Set[str] = set()
        stack = [root]

        while stack:
            page = stack.pop()
            if page.page_id in visited:
                logger.warning(
                    f"Page '{page.title}' ({page.page_id}) reached more than once, skipping"
                )
                continue

            visited.add(page.page_id)
            ordered.append(page)
            # Reversed so the first sibling is popped first
            stack.extend(reversed(children_of(page.page_id)))

        return ordered

    def _fetch_levels(self, root: ConfluencePage) -> Dict[str, List[ConfluencePage]]:
        """Fetch child listings level by level, one listing per unique page ID."""
        children: Dict[str, List[ConfluencePage]] = {}
        level = [root.page_id]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            while level:
                futures = {
                    executor.submit(self.api.get_child_pages, page_id): page_id
                    for page_id in level
                }
                try:
                    for future in as_completed(futures):
                        children[futures[future]] = future.result()
                except Exception:
                    for future in futures:
                        future.cancel()
                    raise

                next_level: List[str] = []
                queued: Set[str] = set()
                for page_id in level:
                    for child in children[page_id]:
                        if child.page_id not in children and child.page_id not in queued:
                            queued.add(child.page_id)
                            next_level.append(child.page_id)
                level = next_level

        return children
