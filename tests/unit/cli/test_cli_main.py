"""Unit tests for cli.main module."""

import logging

import pytest
from typer.testing import CliRunner
from unittest.mock import patch

from confluence_exporter.cli.main import APP_LOGGER, __version__, _configure_logging, app
from confluence_exporter.cli.models import ExitCode

runner = CliRunner()


@pytest.fixture
def app_logger():
    """Restore the application logger after a test reconfigures it."""
    logger = logging.getLogger(APP_LOGGER)
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestConfigureLogging:
    """Test cases for _configure_logging."""

    @pytest.mark.parametrize("verbosity, level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_levels(self, app_logger, verbosity, level):
        _configure_logging(verbosity)

        assert app_logger.level == level
        assert len(app_logger.handlers) == 1

    def test_config_level_more_verbose_wins(self, app_logger):
        _configure_logging(0, level_name="DEBUG")

        assert app_logger.level == logging.DEBUG

    def test_config_level_never_quieter(self, app_logger):
        _configure_logging(2, level_name="ERROR")

        assert app_logger.level == logging.DEBUG

    def test_logdir_creates_timestamped_file(self, app_logger, tmp_path):
        _configure_logging(1, logdir=str(tmp_path / "logs"))

        files = list((tmp_path / "logs").iterdir())
        assert len(files) == 1
        assert files[0].name.startswith("confluence-export_")
        assert len(app_logger.handlers) == 2

    def test_reconfigure_closes_previous_file_handler(self, app_logger, tmp_path):
        _configure_logging(1, log_file=str(tmp_path / "first.log"))
        first_handler = next(
            handler for handler in app_logger.handlers if isinstance(handler, logging.FileHandler)
        )

        _configure_logging(1, log_file=str(tmp_path / "second.log"))

        assert first_handler not in app_logger.handlers
        assert first_handler.stream is None
        assert len(app_logger.handlers) == 2

    def test_atlassian_capped(self, app_logger):
        _configure_logging(2)

        assert logging.getLogger("atlassian").level == logging.WARNING


class TestMainCommand:
    """Test cases for the Typer command."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config(self, app_logger, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("export:\n  output_type: parquet\n")

        result = runner.invoke(app, ["--config", str(path)])

        assert result.exit_code == ExitCode.GENERAL_ERROR

    def test_missing_config(self, app_logger, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == ExitCode.GENERAL_ERROR

    def test_run_exit_code_propagated(self, app_logger, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with patch("confluence_exporter.cli.main.ExportCommand.run", return_value=ExitCode.NETWORK_ERROR) as run:
            result = runner.invoke(app, ["--space", "TEAM", "-o", str(tmp_path / "out")])

        assert result.exit_code == ExitCode.NETWORK_ERROR
        config = run.call_args.args[0]
        assert config.export.space_key == "TEAM"
        assert config.export.output_dir == str(tmp_path / "out")

    def test_unexpected_error(self, app_logger, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with patch("confluence_exporter.cli.main.ExportCommand.run", side_effect=RuntimeError("bug")):
            result = runner.invoke(app, ["--space", "TEAM"])

        assert result.exit_code == ExitCode.GENERAL_ERROR
