"""Export pipeline driver.

Ties discovery (space listing, page listing, tree resolution), conversion
and the output sink together. Discovery failures abort a scope; failures
on an individual page are logged, counted and skipped.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterator, List, Optional, Sequence, Set, Tuple

from confluence_exporter.confluence_client.api import ConfluenceAPI
from confluence_exporter.confluence_client.errors import ExportError
from confluence_exporter.content_converter import MarkdownConverter
from confluence_exporter.models import ConfluencePage, ConvertedPage, compute_uid
from confluence_exporter.sinks import Sink

from .models import SCOPE_PAGE, SCOPE_SPACE, SCOPE_TREE, ExportScope, ExportSummary, ScopeResult
from .tree_resolver import TreeResolver

# (scope_key, pages done, pages total)
ProgressCallback = Callable[[str, int, int], None]


class ExportPipeline:
    """Exports scopes of Confluence pages into a sink.

    Page preparation (conversion and attachment listing) runs on a thread
    pool when concurrency > 1; sink writes always happen on the calling
    thread, one page at a time. Each page reaches the sink at most once per
    scope: a page ID listed twice is skipped after its first occurrence.

    Example:
        >>> pipeline = ExportPipeline(api, sink, MarkdownConverter(), logger)
        >>> summary = pipeline.run([ExportScope.space("TEAM")])
        >>> summary.pages_processed
        42
    """

    def __init__(
        self,
        api: ConfluenceAPI,
        sink: Sink,
        converter: MarkdownConverter,
        logger: logging.Logger,
        concurrency: int = 1,
        include_attachments: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the pipeline.

        Args:
            api: Confluence API client
            sink: Destination for converted pages
            converter: Storage format to markdown converter
            logger: Logger every pipeline message goes to
            concurrency: Maximum in-flight page preparations and child listings
            include_attachments: List each page's attachments for the sink
            progress_callback: Called after every page with (scope_key, done, total)

        Raises:
            ValueError: If concurrency is less than 1
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.api = api
        self.sink = sink
        self.converter = converter
        self.logger = logger
        self.concurrency = concurrency
        self.include_attachments = include_attachments
        self.progress_callback = progress_callback
        self.tree_resolver = TreeResolver(api, max_workers=concurrency)

    def run(self, scopes: Optional[Sequence[ExportScope]] = None) -> ExportSummary:
        """Export every scope into the sink.

        Args:
            scopes: Scopes to export; None exports every visible space

        Returns:
            ExportSummary with per-scope counts and errors
        """
        summary = ExportSummary()

        if scopes is None:
            try:
                spaces = self.api.get_spaces()
            except ExportError as e:
                self.logger.error(f"Failed to list spaces: {e}")
                summary.fatal_error = e
                return summary
            scopes = [ExportScope.space(space.key) for space in spaces]

        try:
            self.sink.initialize()
        except ExportError as e:
            self.logger.error(f"Failed to initialize output: {e}")
            summary.fatal_error = e
            return summary

        try:
            for scope in scopes:
                summary.scopes.append(self.export_scope(scope))
        finally:
            try:
                self.sink.close()
            except ExportError as e:
                self.logger.error(f"Failed to finalize output: {e}")
                summary.fatal_error = e

        self.logger.info(
            f"Export finished: {summary.pages_processed} page(s) exported, "
            f"{summary.pages_failed} failed, {len(summary.failed_scopes)} scope(s) failed"
        )
        return summary

    def export_scope(self, scope: ExportScope) -> ScopeResult:
        """Discover and export the pages of one scope.

        The sink must already be initialized.
        """
        result = ScopeResult(scope=scope)
        self.logger.info(f"Starting export of {scope}")

        try:
            result.scope_key, pages = self.discover(scope)
        except (ExportError, ValueError) as e:
            self.logger.error(f"Failed to export {scope}: {e}")
            result.error = e
            return result

        pages = self._unique(pages)
        self.logger.info(f"Found {len(pages)} page(s) to export in {result.scope_key}")

        for done, (page, converted, error) in enumerate(self._prepared(pages), 1):
            if error is None:
                try:
                    self.sink.save_page(converted, result.scope_key)
                except Exception as e:
                    error = e

            if error is None:
                result.pages_processed += 1
            else:
                result.pages_failed += 1
                self.logger.error(f"Failed to export page '{page.title}' ({page.page_id}): {error}")

            if self.progress_callback:
                self.progress_callback(result.scope_key, done, len(pages))

        self.logger.info(
            f"Finished {result.scope_key}: {result.pages_processed} exported, "
            f"{result.pages_failed} failed"
        )
        return result

    def discover(self, scope: ExportScope) -> Tuple[str, List[ConfluencePage]]:
        """Return (scope_key, pages) for a scope.

        Raises:
            ExportError: If a listing or page fetch fails
            ValueError: For an unknown scope kind or invalid page ID
        """
        if scope.kind == SCOPE_SPACE:
            return scope.key, self.api.get_pages(scope.key)
        if scope.kind == SCOPE_TREE:
            pages = self.tree_resolver.resolve_tree(scope.key)
            return pages[0].title, pages
        if scope.kind == SCOPE_PAGE:
            page = self.api.get_page(scope.key)
            return page.space_key or page.title, [page]
        raise ValueError(f"Unknown scope kind: {scope.kind}")

    def prepare_page(self, page: ConfluencePage) -> ConvertedPage:
        """Convert one page and, if enabled, list its attachments.

        Raises:
            ConversionError: If the body is malformed
            ConfluenceError: If the attachment listing fails
        """
        result = self.converter.convert_detailed(page.raw_body)
        for warning in result.warnings:
            self.logger.debug(f"'{page.title}': {warning}")

        attachments = ()
        if self.include_attachments:
            attachments = tuple(self.api.get_attachments(page.page_id))

        return ConvertedPage(
            uid=compute_uid(page.page_id),
            title=page.title,
            body=result.markdown,
            link=self.page_link(page),
            page_id=page.page_id,
            space_key=page.space_key,
            version=page.version,
            attachments=attachments,
        )

    def page_link(self, page: ConfluencePage) -> str:
        """Build the absolute web URL of a page."""
        if page.url.startswith(('http://', 'https://')):
            return page.url
        base_url = self.api.base_url
        if page.url:
            return f"{base_url}/{page.url.lstrip('/')}"
        return f"{base_url}/spaces/{page.space_key}/pages/{page.page_id}"

    def _unique(self, pages: Sequence[ConfluencePage]) -> List[ConfluencePage]:
        """Drop repeated page IDs, keeping the first occurrence."""
        unique: List[ConfluencePage] = []
        seen: Set[str] = set()
        for page in pages:
            if page.page_id in seen:
                self.logger.warning(
                    f"Page '{page.title}' ({page.page_id}) listed more than once, skipping"
                )
                continue
            seen.add(page.page_id)
            unique.append(page)
        return unique

    def _prepared(
        self,
        pages: Sequence[ConfluencePage],
    ) -> Iterator[Tuple[ConfluencePage, Optional[ConvertedPage], Optional[Exception]]]:
        """Yield (page, converted, error) in completion order."""
        if self.concurrency == 1 or len(pages) < 2:
            for page in pages:
                try:
                    converted = self.prepare_page(page)
                except Exception as e:
                    yield page, None, e
                    continue
                yield page, converted, None
            return

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            futures = {executor.submit(self.prepare_page, page): page for page in pages}
            for future in as_completed(futures):
                page = futures[future]
                try:
                    converted = future.result()
                except Exception as e:
                    yield page, None, e
                    continue
                yield page, converted, None
