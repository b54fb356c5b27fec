"""Shared test fixtures."""

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from mailsync.config import ArchiveConfig, BackupConfig, Config, NotifyConfig, PathsConfig, ProbeConfig
from mailsync.logfile import STEP_LOGGER, setup_logging


class FakeCommands:
    """Stand-in for subprocess.run that records argv and replays canned results.

    Responses are keyed by an argv prefix; the longest matching prefix wins.
    A list of responses is consumed in order, repeating the last one.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self._responses: dict[tuple[str, ...], list[tuple[int, str]]] = {}

    def set(self, *argv: str, returncode: int = 0, output: str = "") -> None:
        self._responses[tuple(argv)] = [(returncode, output)]

    def queue(self, *argv: str, outputs: list[tuple[int, str]]) -> None:
        self._responses[tuple(argv)] = list(outputs)

    def commands(self) -> list[str]:
        return [" ".join(call) for call in self.calls]

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append(argv)
        for key in sorted(self._responses, key=len, reverse=True):
            if tuple(argv[:len(key)]) == key:
                responses = self._responses[key]
                returncode, output = responses.pop(0) if len(responses) > 1 else responses[0]
                return subprocess.CompletedProcess(argv, returncode, stdout=output)
        return subprocess.CompletedProcess(argv, 0, stdout="")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep MAILSYNC_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("MAILSYNC_"):
            monkeypatch.delenv(name)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir):
    """Configuration rooted in a temporary directory, with the network check disabled."""
    maildir = temp_dir / "Mail"
    (maildir / ".notmuch" / "xapian").mkdir(parents=True)
    (temp_dir / "backups").mkdir()
    (temp_dir / "deleted").mkdir()
    return Config(
        paths=PathsConfig(maildir=str(maildir), log_file=str(temp_dir / "mailsync.log")),
        backup=BackupConfig(directory=str(temp_dir / "backups"), retention_days=30),
        probe=ProbeConfig(command=""),
        archive=ArchiveConfig(directory=str(temp_dir / "deleted"), retention_days=90),
        notify=NotifyConfig(),
        platform="linux",
    )


@pytest.fixture
def fake_commands():
    """Patch subprocess.run as seen by the step runner."""
    fake = FakeCommands()
    with patch("mailsync.runner.subprocess.run", side_effect=fake):
        yield fake


@pytest.fixture
def run_log(temp_dir):
    """Attach the tab-separated run log and detach it afterwards."""
    log_path = temp_dir / "logs" / "mailsync.log"
    handler = setup_logging(log_path)
    yield log_path
    for name in ("mailsync", STEP_LOGGER):
        logging.getLogger(name).removeHandler(handler)
    handler.close()
