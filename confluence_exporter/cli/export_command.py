"""Export command orchestration for CLI.

This module provides the ExportCommand class that wires configuration,
the Confluence client, the converter and the configured sink into an
ExportPipeline run, and maps the outcome to an exit code.
"""

import logging
import os
from dataclasses import replace
from typing import List, Optional

from confluence_exporter.confluence_client import (
    Authenticator,
    ConfluenceAPI,
    InvalidCredentialsError,
    NetworkError,
    Transport,
)
from confluence_exporter.content_converter import MarkdownConverter
from confluence_exporter.pipeline import ExportPipeline, ExportScope, ExportSummary
from confluence_exporter.sinks import create_sink

from .config import ConfigLoader
from .errors import ConfigError
from .models import ExitCode, ExporterConfig
from .output import OutputHandler

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


class ExportCommand:
    """Orchestrates one export run for the CLI.

    The export workflow:
        1. Load configuration and apply command-line overrides
        2. Resolve credentials (config first, then environment)
        3. Select scopes: a page or page tree, one space, or every space
        4. Run the pipeline into the configured sink with a progress bar
        5. Print the summary and return the exit code

    Example:
        >>> command = ExportCommand(output_handler=OutputHandler(verbosity=1))
        >>> config = command.load_config("config.yaml", space_key="TEAM")
        >>> exit_code = command.run(config)
    """

    def __init__(
        self,
        output_handler: Optional[OutputHandler] = None,
        api: Optional[ConfluenceAPI] = None,
    ):
        """Initialize export command.

        Args:
            output_handler: OutputHandler for terminal output (optional)
            api: Pre-built ConfluenceAPI; created from config when omitted
        """
        self.output_handler = output_handler or OutputHandler()
        self.api = api

    def load_config(
        self,
        config_path: Optional[str] = None,
        space_key: Optional[str] = None,
        page_id: Optional[str] = None,
        recursive: Optional[bool] = None,
        output_type: Optional[str] = None,
        output_dir: Optional[str] = None,
        include_attachments: Optional[bool] = None,
        concurrency: Optional[int] = None,
    ) -> ExporterConfig:
        """Load the config file and apply command-line overrides.

        Without an explicit path, config.yaml in the working directory is
        used when present; otherwise the defaults apply.

        Raises:
            ConfigNotFoundError: If an explicit config path does not exist
            ConfigError: If the config or an override is invalid
        """
        if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
            config_path = DEFAULT_CONFIG_PATH

        config = ConfigLoader.load(config_path) if config_path else ExporterConfig()
        export = config.export

        if space_key is not None:
            export = replace(export, space_key=space_key)
        if page_id is not None:
            if not page_id.isdigit():
                raise ConfigError(f"Page IDs are numeric, got '{page_id}'", '--page-id')
            export = replace(export, page_id=page_id)
        if recursive is not None:
            export = replace(export, recursive=recursive)
        if output_type is not None:
            export = replace(
                export,
                output_type=ConfigLoader.parse(
                    {'export': {'output_type': output_type}}
                ).export.output_type,
            )
        if output_dir is not None:
            export = replace(export, output_dir=output_dir)
        if include_attachments is not None:
            export = replace(export, include_attachments=include_attachments)
        if concurrency is not None:
            if concurrency < 1:
                raise ConfigError(f"Expected a positive integer, got {concurrency}", '--concurrency')
            export = replace(export, concurrent_requests=concurrency)

        return replace(config, export=export)

    @staticmethod
    def build_scopes(config: ExporterConfig) -> Optional[List[ExportScope]]:
        """Select what to export; None means every visible space."""
        export = config.export
        if export.page_id:
            if export.recursive:
                return [ExportScope.tree(export.page_id)]
            return [ExportScope.page(export.page_id)]
        if export.space_key:
            return [ExportScope.space(export.space_key)]
        return None

    def run(self, config: ExporterConfig) -> ExitCode:
        """Execute the export.

        Returns:
            ExitCode.SUCCESS unless a discovery, credential or output failure occurred
        """
        try:
            api = self.api or self._create_api(config)
        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            return ExitCode.AUTH_ERROR

        export = config.export
        if export.include_attachments and export.output_type != 'file':
            self.output_handler.warning(
                f"Attachments are only exported with the file output; "
                f"ignored for '{export.output_type}'"
            )

        try:
            sink = create_sink(export, api)
        except (ConfigError, ValueError) as e:
            self.output_handler.error(str(e))
            return ExitCode.GENERAL_ERROR

        converter = MarkdownConverter(preserve_links=export.format.preserve_links)
        scopes = self.build_scopes(config)

        self.output_handler.info(
            f"Exporting {'all spaces' if scopes is None else ', '.join(str(s) for s in scopes)} "
            f"to {export.output_type} output in {export.output_dir}"
        )

        with self.output_handler.progress_bar() as progress:
            pipeline = ExportPipeline(
                api,
                sink,
                converter,
                logging.getLogger("confluence_exporter.pipeline"),
                concurrency=export.concurrent_requests,
                include_attachments=export.include_attachments and export.output_type == 'file',
                progress_callback=progress.update,
            )
            summary = pipeline.run(scopes)

        self.output_handler.print_summary(summary)
        return self.exit_code(summary)

    @staticmethod
    def exit_code(summary: ExportSummary) -> ExitCode:
        """Map a finished run to its exit code.

        Page-level failures never change the exit code; only errors that
        aborted a scope or the whole run do.
        """
        errors = summary.discovery_errors
        if not errors:
            return ExitCode.SUCCESS
        if any(isinstance(error, InvalidCredentialsError) for error in errors):
            return ExitCode.AUTH_ERROR
        if any(isinstance(error, NetworkError) for error in errors):
            return ExitCode.NETWORK_ERROR
        return ExitCode.GENERAL_ERROR

    @staticmethod
    def _create_api(config: ExporterConfig) -> ConfluenceAPI:
        """Build the API client, resolving credentials eagerly.

        Raises:
            InvalidCredentialsError: If any credential is missing
        """
        authenticator = Authenticator(
            url=config.confluence.base_url,
            user=config.confluence.username,
            api_token=config.confluence.api_token,
        )
        authenticator.get_credentials()
        transport = Transport(authenticator, timeout=config.confluence.timeout)
        return ConfluenceAPI(transport, page_size=config.export.page_size)
