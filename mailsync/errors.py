"""Exceptions raised by the sync workflow.

Every error carries the process exit code the CLI terminates with.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .runner import StepResult


class MailsyncError(Exception):
    """Base class for errors that end a run."""

    exit_code = 1


class ConfigError(MailsyncError):
    """Invalid configuration value."""


class MissingToolError(MailsyncError):
    """A required external executable is not on the search path."""

    def __init__(self, tools: list[str]):
        self.tools = tools
        super().__init__(f"Missing required tool(s): {', '.join(tools)}")


class MissingDirectoryError(MailsyncError):
    """A directory the run writes into does not exist."""

    exit_code = 2

    def __init__(self, path: Path, purpose: str):
        self.path = path
        self.purpose = purpose
        super().__init__(f"{purpose.capitalize()} directory does not exist: {path}")


class StepFailed(MailsyncError):
    """A step with the abort policy exited nonzero."""

    def __init__(self, result: StepResult, message: str | None = None):
        self.result = result
        if message is None:
            message = f"{result.name} failed (exit {result.exit_code})"
            last_line = _last_line(result.output)
            if last_line:
                message = f"{message}: {last_line}"
        super().__init__(message)


class IndexCorrupted(StepFailed):
    """The integrity checker rejected the index; carries the recovery runbook."""

    def __init__(self, result: StepResult, runbook: str):
        self.runbook = runbook
        super().__init__(result, f"Index integrity check failed (exit {result.exit_code})")


def _last_line(output: str) -> str:
    for line in reversed(output.splitlines()):
        if line.strip():
            return line.strip()
    return ""
