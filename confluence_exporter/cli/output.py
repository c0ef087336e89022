"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, one progress bar per exported scope and the final
export summary. Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Dict, Iterator

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from confluence_exporter.pipeline.models import ExportSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Export completed")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    @contextmanager
    def progress_bar(self) -> Iterator['ScopeProgress']:
        """Display one progress bar per scope while an export runs.

        Yields:
            ScopeProgress whose `update` matches the pipeline's progress callback

        Example:
            >>> with handler.progress_bar() as progress:
            ...     pipeline = ExportPipeline(..., progress_callback=progress.update)
            ...     pipeline.run(scopes)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.completed}/{task.total} pages"),
            TimeElapsedColumn(),
            console=self.console,
        )
        with progress:
            yield ScopeProgress(progress)

    def print_summary(self, summary: ExportSummary) -> None:
        """Display export summary with color coding.

        Args:
            summary: Totals of the finished run
        """
        self.console.print("\n[bold]Export Summary:[/bold]")
        self.console.print(f"  [green]✓[/green] Exported: {summary.pages_processed} page(s)")

        if summary.pages_failed > 0:
            self.console.print(f"  [red]✗[/red] Failed: {summary.pages_failed} page(s)")

        for result in summary.failed_scopes:
            self.console.print(f"  [red]✗[/red] Scope {result.scope} failed: {result.error}")

        if summary.fatal_error is not None:
            self.console.print(f"\n[red]Export aborted: {summary.fatal_error}[/red]")
        elif summary.failed_scopes:
            self.console.print("\n[red]Export completed with failed scopes[/red]")
        elif summary.pages_failed > 0:
            self.console.print("\n[yellow]Export completed with page failures[/yellow]")
        elif summary.pages_processed == 0:
            self.console.print("\n[yellow]No pages to export[/yellow]")
        else:
            self.console.print()
            self.success("Export completed successfully")


class ScopeProgress:
    """Maps pipeline progress callbacks onto Rich progress tasks."""

    def __init__(self, progress: Progress):
        self.progress = progress
        self._tasks: Dict[str, TaskID] = {}

    def update(self, scope_key: str, done: int, total: int) -> None:
        task = self._tasks.get(scope_key)
        if task is None:
            task = self.progress.add_task(scope_key, total=total)
            self._tasks[scope_key] = task
        self.progress.update(task, completed=done, total=total)
