"""
Unit tests for CLI module

Tests for the command-line interface functionality including
argument parsing, option validation, and exit status mapping.
"""

from unittest.mock import patch

import pytest

from reingest.cli import build_connection, cmd_run, create_parser, exit_status, main
from reingest.cli.commands import EXIT_OK, EXIT_PARTIAL_FAILURE, EXIT_RUN_FAILED
from reingest.config import IngestOptions
from reingest.engine import ReingestSummary
from reingest.worker import RecordFailure
from utils.db import ConnectionFailedError, QueryError


def parse(*argv):
    return create_parser().parse_args(list(argv))


def run(args):
    return cmd_run(args, IngestOptions.from_args(args), build_connection(args))


def failed_summary():
    summary = ReingestSummary(total_records=2, batches=1, succeeded=1)
    summary.failures.append(RecordFailure(record_id=2, phase="attributes", error="boom"))
    return summary


class TestCreateParser:
    """Tests for create_parser function"""

    def test_defaults(self):
        args = parse()

        assert args.max_threads == 5
        assert args.batch_size == 100
        assert args.min_id is None
        assert args.max_id is None
        assert args.attrs == []
        assert args.newest_first is False
        assert args.do_attrs is False
        assert args.connect_retries == 0
        assert args.strict is False
        assert args.log_level == "INFO"
        assert args.log_file is None
        assert args.log_json is False
        assert args.console_output is True

    def test_logging_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FILE", "/var/log/reingest/run.log")
        monkeypatch.setenv("LOG_JSON", "yes")
        monkeypatch.setenv("LOG_CONSOLE", "false")

        args = parse()

        assert args.log_level == "DEBUG"
        assert args.log_file == "/var/log/reingest/run.log"
        assert args.log_json is True
        assert args.console_output is False

    def test_logging_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.setenv("LOG_FILE", "/var/log/reingest/run.log")

        args = parse("--log-level", "warning", "--log-file", "/tmp/reingest.log", "--no-console-log")

        assert args.log_level == "WARNING"
        assert args.log_file == "/tmp/reingest.log"
        assert args.console_output is False

    def test_repeatable_attr(self):
        args = parse("--attr", "item_type", "--attr", "item_form")

        assert args.attrs == ["item_type", "item_form"]

    def test_all_phase_flags(self):
        args = parse("--do-attrs", "--do-browse", "--do-search", "--do-facets", "--do-display")

        assert all([args.do_attrs, args.do_browse, args.do_search, args.do_facets, args.do_display])

    def test_rejects_non_integer_batch_size(self):
        with pytest.raises(SystemExit) as exc_info:
            parse("--batch-size", "many")

        assert exc_info.value.code == 2


class TestBuildConnection:
    """Tests for build_connection function"""

    def test_uses_cli_and_env(self, monkeypatch):
        monkeypatch.setenv("PGUSER", "env-user")
        args = parse("--db-host", "pg.example.org", "--db-port", "6432", "--connect-retries", "2")

        connection = build_connection(args)

        assert connection.settings.host == "pg.example.org"
        assert connection.settings.port == 6432
        assert connection.settings.user == "env-user"
        assert connection.connect_retries == 2
        assert connection.connected is False


class TestCmdRun:
    """Tests for cmd_run function"""

    @patch("reingest.cli.commands.ReingestEngine")
    def test_successful_run(self, mock_engine_class):
        mock_engine_class.return_value.run.return_value = ReingestSummary(total_records=3)
        args = parse("--do-attrs")

        status = run(args)

        assert status == EXIT_OK
        options, connection = mock_engine_class.call_args.args
        assert options.do_attrs is True
        assert connection.connected is False

    @patch("reingest.cli.commands.ReingestEngine")
    def test_bootstrap_failure_returns_run_failed(self, mock_engine_class, caplog):
        mock_engine_class.return_value.run.side_effect = ConnectionFailedError("refused")
        args = parse("--do-attrs")

        status = run(args)

        assert status == EXIT_RUN_FAILED
        assert "Reingest aborted: refused" in caplog.text

    @patch("reingest.cli.commands.ReingestEngine")
    def test_discovery_failure_returns_run_failed(self, mock_engine_class):
        mock_engine_class.return_value.run.side_effect = QueryError("syntax error")
        args = parse("--do-attrs")

        assert run(args) == EXIT_RUN_FAILED

    @patch("reingest.cli.commands.ReingestEngine")
    def test_record_failures_ok_unless_strict(self, mock_engine_class):
        mock_engine_class.return_value.run.return_value = failed_summary()

        lenient = parse("--do-attrs")
        strict = parse("--do-attrs", "--strict")

        assert run(lenient) == EXIT_OK
        assert run(strict) == EXIT_PARTIAL_FAILURE

    @patch("reingest.cli.commands.ApplicationInfo")
    @patch("reingest.cli.commands.MetricsPublisher")
    @patch("reingest.cli.commands.ReingestEngine")
    def test_metrics_port_starts_publisher(self, mock_engine_class, mock_publisher_class, mock_info_class):
        mock_engine_class.return_value.run.return_value = ReingestSummary()
        args = parse("--do-attrs", "--metrics-port", "9200")

        run(args)

        mock_publisher_class.assert_called_once_with(port=9200)
        mock_publisher_class.return_value.start.assert_called_once()
        mock_info_class.assert_called_once()

    @patch("reingest.cli.commands.MetricsPublisher")
    @patch("reingest.cli.commands.ReingestEngine")
    def test_no_metrics_port_skips_publisher(self, mock_engine_class, mock_publisher_class):
        mock_engine_class.return_value.run.return_value = ReingestSummary()
        args = parse("--do-attrs")

        run(args)

        mock_publisher_class.assert_not_called()


class TestExitStatus:
    """Tests for exit_status function"""

    def test_clean_run(self):
        assert exit_status(ReingestSummary()) == EXIT_OK
        assert exit_status(ReingestSummary(), strict=True) == EXIT_OK

    def test_abandoned_batch_counts_in_strict_mode(self):
        summary = ReingestSummary(abandoned_batches=1, abandoned_records=10)

        assert exit_status(summary) == EXIT_OK
        assert exit_status(summary, strict=True) == EXIT_PARTIAL_FAILURE

    def test_failures_logged(self, caplog):
        exit_status(failed_summary())

        assert "1 reingest calls failed" in caplog.text


class TestMain:
    """Tests for main function"""

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.cmd_run", return_value=EXIT_OK)
    def test_main_exits_with_run_status(self, mock_cmd_run, mock_setup_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["--do-attrs", "--log-level", "DEBUG"])

        assert exc_info.value.code == EXIT_OK
        mock_setup_logging.assert_called_once_with(
            level="DEBUG", log_file=None, console_output=True, json_format=False
        )
        args, options, connection = mock_cmd_run.call_args.args
        assert options.do_attrs is True
        assert connection.connected is False

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.cmd_run", return_value=EXIT_PARTIAL_FAILURE)
    def test_main_propagates_partial_failure(self, mock_cmd_run, mock_setup_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["--do-attrs", "--strict"])

        assert exc_info.value.code == EXIT_PARTIAL_FAILURE

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.cmd_run")
    def test_invalid_options_are_usage_errors(self, mock_cmd_run, mock_setup_logging, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--do-attrs", "--batch-size", "0"])

        assert exc_info.value.code == 2
        assert "Invalid batch_size" in capsys.readouterr().err
        mock_cmd_run.assert_not_called()

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.cmd_run")
    def test_inverted_range_is_usage_error(self, mock_cmd_run, mock_setup_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["--do-attrs", "--min-id", "500", "--max-id", "100"])

        assert exc_info.value.code == 2

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.commands.ReingestEngine")
    def test_invalid_port_is_usage_error(self, mock_engine_class, mock_setup_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["--do-attrs", "--db-port", "not-a-port"])

        assert exc_info.value.code == 2
        mock_engine_class.assert_not_called()

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.commands.ReingestEngine")
    def test_value_error_during_run_is_not_usage_error(self, mock_engine_class, mock_setup_logging):
        mock_engine_class.return_value.run.side_effect = ValueError("bad row from driver")

        with pytest.raises(ValueError, match="bad row from driver"):
            main(["--do-attrs"])

    @patch("reingest.cli.setup_logging")
    @patch("reingest.cli.cmd_run", return_value=EXIT_OK)
    def test_logging_configured_from_environment(self, mock_cmd_run, mock_setup_logging, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_JSON", "true")

        with pytest.raises(SystemExit):
            main(["--do-attrs", "--no-console-log"])

        mock_setup_logging.assert_called_once_with(
            level="WARNING", log_file=None, console_output=False, json_format=True
        )
