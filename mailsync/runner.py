"""Step runner for the sync workflow.

A Step pairs a human-readable label with an action (an argv list or a
callable) and a declared failure policy. The runner executes each step
exactly once, records the outcome in the run log, prints a padded status
line, and then applies the policy: abort raises StepFailed, warn logs,
notifies and continues, ignore only records the result.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from .errors import StepFailed
from .logfile import STEP_LOGGER

if TYPE_CHECKING:
    from .notifiers import Notifier

logger = logging.getLogger("mailsync")
step_log = logging.getLogger(STEP_LOGGER)

STATUS_WIDTH = 48
OK_MARK = "✔"
FAIL_MARK = "✘"

# Exit codes used when the command never produced one
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124

Action = Sequence[str] | Callable[[], tuple[int, str]]


class FailurePolicy(Enum):
    ABORT = "abort"
    WARN = "warn"
    IGNORE = "ignore"


@dataclass
class StepResult:
    name: str
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class Step:
    label: str
    action: Action
    policy: FailurePolicy = FailurePolicy.ABORT
    timeout: float | None = None

    def describe(self) -> str:
        if callable(self.action):
            return getattr(self.action, "__name__", type(self.action).__name__)
        return " ".join(self.action)


def run_command(argv: Sequence[str], timeout: float | None = None) -> tuple[int, str]:
    """Run a command, returning its exit status and combined stdout/stderr."""
    try:
        proc = subprocess.run(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        return EXIT_NOT_FOUND, str(e)
    except subprocess.TimeoutExpired:
        return EXIT_TIMEOUT, f"{argv[0]} timed out after {timeout}s"
    return proc.returncode, proc.stdout or ""


class StepRunner:
    """Execute steps one at a time and apply their failure policy."""

    def __init__(
        self,
        stream: TextIO | None = None,
        notifier: Notifier | None = None,
        title: str = "mailsync",
    ):
        self.stream = stream
        self.notifier = notifier
        self.title = title
        self.results: list[StepResult] = []

    def run(self, step: Step) -> StepResult:
        """Execute a step once and record it, without applying its policy."""
        logger.debug(f"Running {step.label}: {step.describe()}")
        if callable(step.action):
            try:
                exit_code, output = step.action()
            except OSError as e:
                exit_code, output = 1, str(e)
        else:
            exit_code, output = run_command(step.action, timeout=step.timeout)

        result = StepResult(name=step.label, exit_code=exit_code, output=output)
        self.results.append(result)
        self._record(result)
        return result

    def execute(self, step: Step) -> StepResult:
        """Run a step and act on its failure policy.

        Raises:
            StepFailed: If the step failed and its policy is ABORT
        """
        result = self.run(step)
        if result.ok:
            return result
        if step.policy is FailurePolicy.ABORT:
            raise StepFailed(result)
        if step.policy is FailurePolicy.WARN:
            message = f"{step.label} failed (exit {result.exit_code}), continuing"
            logger.warning(message)
            if self.notifier is not None:
                self.notifier.notify(self.title, message)
        return result

    def _record(self, result: StepResult) -> None:
        step_log.info(f"exit={result.exit_code}", extra={"label": result.name})
        if not result.ok:
            for line in result.output.splitlines():
                step_log.error(line, extra={"label": result.name})
        print(format_status(result), file=self.stream or sys.stdout, flush=True)


def format_status(result: StepResult) -> str:
    """One-line progress indicator, e.g. ``Syncing mail ......... ✔``."""
    label = f"{result.name} ".ljust(STATUS_WIDTH, ".")
    if result.ok:
        return f"{label} {OK_MARK}"
    return f"{label} {FAIL_MARK} ({result.exit_code})"


def run_steps(runner: StepRunner, steps: Iterable[Step]) -> list[StepResult]:
    """Execute steps in order; the first aborting failure stops the sequence."""
    return [runner.execute(step) for step in steps]
