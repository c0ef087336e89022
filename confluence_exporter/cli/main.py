"""Main CLI entry point for confluence-export command.

This module provides the Typer application that serves as the entry point
for the confluence-export command-line tool. Everything is an option on
the main command; there are no subcommands.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from confluence_exporter.cli.errors import ConfigError
from confluence_exporter.cli.export_command import ExportCommand
from confluence_exporter.cli.models import ExitCode
from confluence_exporter.cli.output import OutputHandler

__version__ = "0.1.0"

app = typer.Typer(
    name="confluence-export",
    help="""Export Confluence spaces and page trees to Markdown files, DuckDB or a search index.

QUICK START:
  confluence-export --space TEAM                              # One space to ./output
  confluence-export --page-id 123456 --recursive              # A page and its descendants
  confluence-export                                           # Every space you can see
  confluence-export --config config.yaml --output-type duckdb # Into a DuckDB file""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)

APP_LOGGER = "confluence_exporter"


def _configure_logging(
    verbosity: int,
    log_file: Optional[str] = None,
    logdir: Optional[str] = None,
    level_name: Optional[str] = None,
) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'confluence_exporter' namespace logger to avoid
    affecting third-party libraries; the atlassian client is capped at
    WARNING.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        log_file: Optional log file path (from config)
        logdir: Optional directory for log files (creates timestamped log file)
        level_name: Level from config, used when it is more verbose than -v
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    if level_name:
        level = min(level, logging.getLevelName(level_name))

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        handler.close()
        app_logger.removeHandler(handler)

    logging.getLogger("atlassian").setLevel(logging.WARNING)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir and not log_file:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = str(log_path / f"confluence-export_{timestamp}.log")

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.command()
def main_command(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the YAML (or JSON) config file (default: ./config.yaml if present)",
        metavar="PATH",
    ),
    space: Optional[str] = typer.Option(
        None,
        "--space",
        help="Export a single space by key",
        metavar="KEY",
    ),
    page_id: Optional[str] = typer.Option(
        None,
        "--page-id",
        help="Export a single page (with --recursive: the page and all descendants)",
        metavar="ID",
    ),
    recursive: Optional[bool] = typer.Option(
        None,
        "--recursive/--no-recursive",
        help="With --page-id, export the whole page tree",
    ),
    output_type: Optional[str] = typer.Option(
        None,
        "--output-type",
        help="Output backend: file, duckdb or meilisearch",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for exported output",
    ),
    attachments: Optional[bool] = typer.Option(
        None,
        "--attachments/--no-attachments",
        help="Download page attachments (file output only)",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        help="Maximum concurrent requests (default 1)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Export Confluence content to Markdown files, DuckDB or a search index."""
    if version:
        typer.echo(f"confluence-export version {__version__}")
        raise typer.Exit()

    output = OutputHandler(verbosity=verbosity, no_color=no_color)
    command = ExportCommand(output_handler=output)

    try:
        exporter_config = command.load_config(
            config_path=config,
            space_key=space,
            page_id=page_id,
            recursive=recursive,
            output_type=output_type,
            output_dir=output_dir,
            include_attachments=attachments,
            concurrency=concurrency,
        )
    except ConfigError as e:
        _configure_logging(verbosity, logdir=logdir)
        logger.error(str(e))
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    _configure_logging(
        verbosity,
        log_file=exporter_config.logging.file,
        logdir=logdir,
        level_name=exporter_config.logging.level,
    )

    try:
        exit_code = command.run(exporter_config)
    except Exception as e:
        logger.exception("Unexpected error during export")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m confluence_exporter.cli.main
if __name__ == "__main__":
    main()
