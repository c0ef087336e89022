"""Abstract output sink.

A sink is the only place converted pages leave the process. Every backend
implements the same three operations, and the pipeline never knows which
backend it is writing to.
"""

from abc import ABC, abstractmethod

from confluence_exporter.models import ConvertedPage


class Sink(ABC):
    """Destination for converted pages.

    Lifecycle: initialize() once before the first save, save_page() any
    number of times, close() once at the end. Saving the same page twice
    must leave exactly one copy of it (idempotence keyed by uid or path).

    Sinks are context managers:
        >>> with FileSink("./output") as sink:
        ...     sink.save_page(page, "TEAM")
    """

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the backing store. Calling it again is a no-op."""

    @abstractmethod
    def save_page(self, page: ConvertedPage, scope_key: str) -> None:
        """Persist one converted page.

        Args:
            page: The converted page
            scope_key: Key of the scope the page was exported under (space
                key or tree root title)

        Raises:
            SinkError: If the page could not be written
        """

    @abstractmethod
    def close(self) -> None:
        """Flush and release resources. Safe to call more than once."""

    def __enter__(self) -> 'Sink':
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
