"""Data models for export runs."""

from dataclasses import dataclass, field
from typing import List, Optional

SCOPE_SPACE = 'space'
SCOPE_TREE = 'tree'
SCOPE_PAGE = 'page'


@dataclass(frozen=True)
class ExportScope:
    """One unit of discovery: a whole space, a page tree, or a single page.

    Attributes:
        kind: SCOPE_SPACE, SCOPE_TREE or SCOPE_PAGE
        key: Space key for SCOPE_SPACE, page ID otherwise

    Example:
        >>> ExportScope.space("TEAM")
        >>> ExportScope.tree("123456")
    """
    kind: str
    key: str

    @classmethod
    def space(cls, space_key: str) -> 'ExportScope':
        return cls(SCOPE_SPACE, space_key)

    @classmethod
    def tree(cls, page_id: str) -> 'ExportScope':
        return cls(SCOPE_TREE, page_id)

    @classmethod
    def page(cls, page_id: str) -> 'ExportScope':
        return cls(SCOPE_PAGE, page_id)

    def __str__(self) -> str:
        return f"{self.kind} {self.key}"


@dataclass
class ScopeResult:
    """Outcome of exporting one scope.

    Attributes:
        scope: The scope that was exported
        scope_key: Key pages were saved under (space key or tree root title)
        pages_processed: Pages delivered to the sink
        pages_failed: Pages whose conversion, listing or write failed
        error: Discovery error that aborted the scope, if any
    """
    scope: ExportScope
    scope_key: str = ""
    pages_processed: int = 0
    pages_failed: int = 0
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class ExportSummary:
    """Totals for a complete run.

    Attributes:
        scopes: Result per exported scope, in run order
        fatal_error: Error that stopped the whole run (space listing or sink failure)
    """
    scopes: List[ScopeResult] = field(default_factory=list)
    fatal_error: Optional[Exception] = None

    @property
    def pages_processed(self) -> int:
        return sum(result.pages_processed for result in self.scopes)

    @property
    def pages_failed(self) -> int:
        return sum(result.pages_failed for result in self.scopes)

    @property
    def failed_scopes(self) -> List[ScopeResult]:
        return [result for result in self.scopes if result.failed]

    @property
    def discovery_errors(self) -> List[Exception]:
        """Errors that make the run unsuccessful, fatal error first."""
        errors = [result.error for result in self.failed_scopes]
        if self.fatal_error is not None:
            errors.insert(0, self.fatal_error)
        return errors

    @property
    def succeeded(self) -> bool:
        return not self.discovery_errors
