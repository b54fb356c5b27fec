"""Tests for the command-line entry point."""

from unittest.mock import MagicMock, call, patch

import pytest

from mailsync.cli import build_parser, main
from mailsync.errors import IndexCorrupted, MissingDirectoryError, MissingToolError, StepFailed
from mailsync.runner import StepResult


@pytest.fixture
def cli_env(monkeypatch, temp_dir):
    """Patch out logging setup, tool and notifier probing; expose the mocks."""
    monkeypatch.setenv("MAILSYNC_LOG_FILE", str(temp_dir / "mailsync.log"))
    notifier = MagicMock()
    notifier.name = "mock"
    with patch("mailsync.cli.setup_logging") as mock_logging, \
            patch("mailsync.cli.check_prerequisites") as mock_check, \
            patch("mailsync.cli.select_notifier", return_value=notifier), \
            patch("mailsync.cli.SyncWorkflow") as mock_workflow:
        yield MagicMock(logging=mock_logging, check=mock_check, notifier=notifier, workflow=mock_workflow)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.move is False
        assert args.delete is False
        assert args.config is None
        assert args.verbose is False

    def test_short_flags(self):
        args = build_parser().parse_args(["-m", "-d"])
        assert args.move is True
        assert args.delete is True

    def test_long_flags(self):
        args = build_parser().parse_args(["--move", "--delete", "--verbose"])
        assert args.move and args.delete and args.verbose

    def test_unknown_flag_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--frobnicate"])
        assert exc_info.value.code == 1
        assert "unrecognized arguments: --frobnicate" in capsys.readouterr().err


class TestMain:
    def test_success(self, cli_env, temp_dir):
        main(["-d"])

        cli_env.workflow.assert_called_once()
        kwargs = cli_env.workflow.call_args.kwargs
        assert kwargs == {"move": False, "delete": True}
        cli_env.workflow.return_value.run.assert_called_once()
        assert cli_env.logging.call_args_list == [
            call(None, verbose=False),
            call(temp_dir / "mailsync.log", verbose=False),
        ]

    def test_missing_config_file(self, cli_env, temp_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(temp_dir / "absent.toml")])
        assert exc_info.value.code == 1
        assert "Configuration file not found" in capsys.readouterr().err
        cli_env.workflow.assert_not_called()

    def test_fatal_step_exits_1_and_notifies(self, cli_env):
        error = StepFailed(StepResult("Tagging new mail", 1))
        cli_env.workflow.return_value.run.side_effect = error

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        cli_env.notifier.notify.assert_called_once_with(
            "mailsync", "Tagging new mail failed (exit 1)", urgent=True
        )

    def test_missing_directory_exits_2(self, cli_env, temp_dir):
        cli_env.workflow.return_value.run.side_effect = MissingDirectoryError(temp_dir / "x", "backup")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
        message = cli_env.notifier.notify.call_args.args[1]
        assert message.startswith("Backup directory does not exist")

    def test_index_corruption_prints_runbook(self, cli_env, capsys):
        error = IndexCorrupted(StepResult("Checking index integrity", 8), "RUNBOOK: restore from backup")
        cli_env.workflow.return_value.run.side_effect = error

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert "RUNBOOK: restore from backup" in capsys.readouterr().err
        assert cli_env.notifier.notify.call_args.kwargs == {"urgent": True}

    def test_missing_tool_exits_before_run_log_is_opened(self, cli_env, temp_dir):
        cli_env.check.side_effect = MissingToolError(["afew"])

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert cli_env.logging.call_args_list == [call(None, verbose=False)]
        cli_env.notifier.notify.assert_called_once_with("mailsync", str(cli_env.check.side_effect), urgent=True)
        cli_env.workflow.assert_not_called()

    def test_missing_tool_leaves_log_directory_alone(self, monkeypatch, temp_dir):
        log_path = temp_dir / "state" / "mailsync.log"
        monkeypatch.setenv("MAILSYNC_LOG_FILE", str(log_path))
        with patch("mailsync.checks.shutil.which", return_value=None), \
                patch("mailsync.cli.select_notifier", return_value=MagicMock()):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert not log_path.parent.exists()
