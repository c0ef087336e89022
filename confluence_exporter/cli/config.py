"""YAML configuration loading and validation.

Configuration files are YAML (a JSON config parses too, since JSON is a
subset of YAML). Keys are snake_case; the camelCase spellings used by
older JSON configs (baseUrl, apiToken, spaceKey, ...) are accepted as
aliases.
"""

from typing import Any, Dict, Optional

import yaml

from confluence_exporter.sinks.factory import OUTPUT_TYPES

from .errors import ConfigError, ConfigNotFoundError
from .models import (
    ConfluenceSettings,
    ExportSettings,
    ExporterConfig,
    FormatSettings,
    LoggingSettings,
)

LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class ConfigLoader:
    """Handles configuration file loading and validation.

    Configuration file structure:
        confluence:
          base_url: "https://company.atlassian.net/wiki"
          username: "me@company.com"
          api_token: "..."
          timeout: 30
        export:
          space_key: "TEAM"
          page_id: "123456"
          recursive: true
          output_dir: "./output"
          output_type: "file"        # file | duckdb | meilisearch
          include_attachments: false
          concurrent_requests: 4
          format:
            include_front_matter: true
            preserve_links: true
        logging:
          level: "INFO"
          file: "export.log"
    """

    # camelCase spellings accepted per section
    ALIASES = {
        'confluence': {
            'baseUrl': 'base_url',
            'apiToken': 'api_token',
        },
        'export': {
            'spaceKey': 'space_key',
            'pageId': 'page_id',
            'outputDir': 'output_dir',
            'outputType': 'output_type',
            'includeAttachments': 'include_attachments',
            'concurrentRequests': 'concurrent_requests',
            'pageSize': 'page_size',
            'databasePath': 'database_path',
            'searchIndexFile': 'search_index_file',
        },
        'format': {
            'includeFrontMatter': 'include_front_matter',
            'preserveLinks': 'preserve_links',
        },
        'logging': {},
    }

    @classmethod
    def load(cls, config_path: str) -> ExporterConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            ExporterConfig with defaults filled in

        Raises:
            ConfigNotFoundError: If the file does not exist
            ConfigError: If the file is unreadable, malformed or invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigNotFoundError(config_path)
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}")

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls.parse(config_dict)

    @classmethod
    def parse(cls, config_dict: Dict[str, Any]) -> ExporterConfig:
        """Validate a configuration dictionary.

        Raises:
            ConfigError: If a section or field is invalid
        """
        confluence = cls._section(config_dict, 'confluence')
        export = cls._section(config_dict, 'export')
        format_dict = cls._section(export, 'format', prefix='export.')
        logging_dict = cls._section(config_dict, 'logging')

        config = ExporterConfig(
            confluence=ConfluenceSettings(
                base_url=cls._string(confluence, 'base_url', 'confluence'),
                username=cls._string(confluence, 'username', 'confluence'),
                api_token=cls._string(confluence, 'api_token', 'confluence'),
                timeout=cls._positive_int(confluence, 'timeout', 'confluence', 30),
            ),
            export=ExportSettings(
                space_key=cls._string(export, 'space_key', 'export'),
                page_id=cls._page_id(export),
                output_dir=cls._string(export, 'output_dir', 'export') or './output',
                output_type=cls._output_type(export),
                recursive=cls._bool(export, 'recursive', 'export', False),
                include_attachments=cls._bool(export, 'include_attachments', 'export', False),
                concurrent_requests=cls._positive_int(export, 'concurrent_requests', 'export', 1),
                page_size=cls._positive_int(export, 'page_size', 'export', 25),
                database_path=cls._string(export, 'database_path', 'export'),
                search_index_file=(
                    cls._string(export, 'search_index_file', 'export') or 'meilisearch.json'
                ),
                format=FormatSettings(
                    include_front_matter=cls._bool(
                        format_dict, 'include_front_matter', 'export.format', False
                    ),
                    preserve_links=cls._bool(format_dict, 'preserve_links', 'export.format', True),
                ),
            ),
            logging=LoggingSettings(
                level=cls._log_level(logging_dict),
                file=cls._string(logging_dict, 'file', 'logging'),
            ),
        )
        return config

    @classmethod
    def _section(cls, parent: Dict[str, Any], name: str, prefix: str = '') -> Dict[str, Any]:
        value = parent.get(name)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(
                f"Section must be a dictionary, got {type(value).__name__}",
                f"{prefix}{name}"
            )

        aliases = cls.ALIASES.get(name, {})
        section = {}
        for key, item in value.items():
            canonical = aliases.get(key, key)
            if canonical in section:
                raise ConfigError(f"Key given twice ('{key}')", f"{prefix}{name}.{canonical}")
            section[canonical] = item
        return section

    @staticmethod
    def _string(section: Dict[str, Any], key: str, prefix: str) -> Optional[str]:
        value = section.get(key)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ConfigError(f"Expected a string, got {type(value).__name__}", f"{prefix}.{key}")
        return str(value).strip() or None

    @staticmethod
    def _bool(section: Dict[str, Any], key: str, prefix: str, default: bool) -> bool:
        value = section.get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise ConfigError(f"Expected true or false, got {value!r}", f"{prefix}.{key}")
        return value

    @staticmethod
    def _positive_int(section: Dict[str, Any], key: str, prefix: str, default: int) -> int:
        value = section.get(key)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigError(f"Expected a positive integer, got {value!r}", f"{prefix}.{key}")
        return value

    @classmethod
    def _page_id(cls, export: Dict[str, Any]) -> Optional[str]:
        page_id = cls._string(export, 'page_id', 'export')
        if page_id is not None and not page_id.isdigit():
            raise ConfigError(f"Page IDs are numeric, got '{page_id}'", 'export.page_id')
        return page_id

    @classmethod
    def _output_type(cls, export: Dict[str, Any]) -> str:
        output_type = (cls._string(export, 'output_type', 'export') or 'file').lower()
        if output_type not in OUTPUT_TYPES:
            raise ConfigError(
                f"Unknown output type '{output_type}' (expected one of: {', '.join(OUTPUT_TYPES)})",
                'export.output_type'
            )
        return output_type

    @classmethod
    def _log_level(cls, logging_dict: Dict[str, Any]) -> Optional[str]:
        level = cls._string(logging_dict, 'level', 'logging')
        if level is None:
            return None
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ConfigError(
                f"Unknown log level '{level}' (expected one of: {', '.join(sorted(LOG_LEVELS))})",
                'logging.level'
            )
        return level
