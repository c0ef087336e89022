"""Unit tests for cli.export_command module."""

from dataclasses import replace

import pytest
from unittest.mock import MagicMock, Mock, patch

from confluence_exporter.cli.errors import ConfigError, ConfigNotFoundError
from confluence_exporter.cli.export_command import ExportCommand
from confluence_exporter.cli.models import ExitCode, ExportSettings, ExporterConfig
from confluence_exporter.cli.output import OutputHandler
from confluence_exporter.confluence_client.api import ConfluenceAPI
from confluence_exporter.confluence_client.errors import (
    HTTPStatusError,
    InvalidCredentialsError,
    NetworkError,
)
from confluence_exporter.pipeline import ExportScope, ExportSummary, ScopeResult
from tests.fixtures.sample_pages import BASE_URL, make_page


@pytest.fixture
def output():
    return MagicMock(spec=OutputHandler)


@pytest.fixture
def api():
    api = Mock(spec=ConfluenceAPI)
    api.base_url = BASE_URL
    return api


def _config(tmp_path, **export):
    return ExporterConfig(export=ExportSettings(output_dir=str(tmp_path), **export))


class TestLoadConfig:
    """Test cases for config loading and overrides."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = ExportCommand().load_config()

        assert config.export.output_type == 'file'
        assert config.export.space_key is None

    def test_default_file_picked_up(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yaml").write_text("export:\n  space_key: DOCS\n")

        config = ExportCommand().load_config()

        assert config.export.space_key == "DOCS"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            ExportCommand().load_config(config_path=str(tmp_path / "nope.yaml"))

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "export:\n  space_key: DOCS\n  output_type: file\n  concurrent_requests: 2\n"
        )

        config = ExportCommand().load_config(
            config_path=str(path),
            space_key="OPS",
            output_type="DuckDB",
            output_dir=str(tmp_path / "out"),
            include_attachments=True,
            concurrency=8,
        )

        assert config.export.space_key == "OPS"
        assert config.export.output_type == "duckdb"
        assert config.export.output_dir == str(tmp_path / "out")
        assert config.export.include_attachments is True
        assert config.export.concurrent_requests == 8

    def test_invalid_overrides(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        command = ExportCommand()

        with pytest.raises(ConfigError):
            command.load_config(page_id="12ab")
        with pytest.raises(ConfigError):
            command.load_config(output_type="csv")
        with pytest.raises(ConfigError):
            command.load_config(concurrency=0)


class TestBuildScopes:
    """Test cases for scope selection."""

    def test_page_tree(self, tmp_path):
        config = _config(tmp_path, page_id="10", recursive=True, space_key="IGNORED")

        assert ExportCommand.build_scopes(config) == [ExportScope.tree("10")]

    def test_single_page(self, tmp_path):
        assert ExportCommand.build_scopes(_config(tmp_path, page_id="10")) == [ExportScope.page("10")]

    def test_space(self, tmp_path):
        assert ExportCommand.build_scopes(_config(tmp_path, space_key="TEAM")) == [ExportScope.space("TEAM")]

    def test_all_spaces(self, tmp_path):
        assert ExportCommand.build_scopes(_config(tmp_path)) is None


class TestExitCode:
    """Test cases for mapping summaries to exit codes."""

    def _failed(self, error):
        return ExportSummary(scopes=[ScopeResult(ExportScope.space("TEAM"), error=error)])

    def test_success_despite_page_failures(self):
        summary = ExportSummary(scopes=[ScopeResult(ExportScope.space("TEAM"), pages_failed=3)])

        assert ExportCommand.exit_code(summary) == ExitCode.SUCCESS

    def test_auth_error(self):
        error = InvalidCredentialsError("me", "/rest/api/content", status=403)

        assert ExportCommand.exit_code(self._failed(error)) == ExitCode.AUTH_ERROR

    def test_network_error(self):
        assert ExportCommand.exit_code(self._failed(NetworkError("/rest/api/content"))) == ExitCode.NETWORK_ERROR

    def test_other_discovery_error(self):
        error = HTTPStatusError(500, "/rest/api/content")

        assert ExportCommand.exit_code(self._failed(error)) == ExitCode.GENERAL_ERROR

    def test_auth_takes_precedence(self):
        summary = ExportSummary(
            scopes=[
                ScopeResult(ExportScope.space("A"), error=NetworkError("/a")),
                ScopeResult(ExportScope.space("B"), error=InvalidCredentialsError("me", "/b")),
            ]
        )

        assert ExportCommand.exit_code(summary) == ExitCode.AUTH_ERROR

    def test_fatal_error(self):
        summary = ExportSummary(fatal_error=NetworkError("/rest/api/space"))

        assert ExportCommand.exit_code(summary) == ExitCode.NETWORK_ERROR


class TestRun:
    """Test cases for the full command run."""

    def test_exports_space_to_files(self, tmp_path, output, api):
        api.get_pages.return_value = [make_page("1", "Welcome")]
        config = _config(tmp_path, space_key="TEAM")

        exit_code = ExportCommand(output_handler=output, api=api).run(config)

        assert exit_code == ExitCode.SUCCESS
        assert (tmp_path / "TEAM" / "Welcome.md").exists()
        output.print_summary.assert_called_once()

    def test_missing_credentials(self, tmp_path, output, monkeypatch):
        for name in ("CONFLUENCE_URL", "CONFLUENCE_USER", "CONFLUENCE_API_TOKEN"):
            monkeypatch.delenv(name, raising=False)

        with patch("confluence_exporter.confluence_client.auth.load_dotenv"):
            exit_code = ExportCommand(output_handler=output).run(_config(tmp_path))

        assert exit_code == ExitCode.AUTH_ERROR
        output.error.assert_called_once()

    def test_listing_auth_failure(self, tmp_path, output, api):
        api.get_spaces.side_effect = InvalidCredentialsError("me", "/rest/api/space")

        exit_code = ExportCommand(output_handler=output, api=api).run(_config(tmp_path))

        assert exit_code == ExitCode.AUTH_ERROR

    def test_attachments_warning_for_other_outputs(self, tmp_path, output, api):
        api.get_pages.return_value = []
        config = _config(tmp_path, space_key="TEAM", output_type="meilisearch", include_attachments=True)

        ExportCommand(output_handler=output, api=api).run(config)

        output.warning.assert_called_once()
        api.get_attachments.assert_not_called()

    def test_unknown_output_type(self, tmp_path, output, api):
        config = replace(_config(tmp_path), export=ExportSettings(output_type="s3"))

        exit_code = ExportCommand(output_handler=output, api=api).run(config)

        assert exit_code == ExitCode.GENERAL_ERROR
        api.get_spaces.assert_not_called()
