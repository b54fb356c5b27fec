"""The sync workflow: one fixed sequence of steps from checks to report."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .archive import archive_deleted, archive_moved
from .checks import check_prerequisites
from .config import Config
from .index import backup_index, compact_step, inbox_count, maintain_index, maintenance_supported, retention_step
from .notifiers import Notifier
from .reachability import check_reachability
from .runner import FailurePolicy, Step, StepRunner, run_steps
from . import tools

logger = logging.getLogger("mailsync")

NO_NEW_MAIL = "No new mail"


def sync_cycle_steps(config: Config) -> list[Step]:
    """Index, tag, sync, then index and tag again against the synced state.

    The remote sync only warns on failure: some messages may already have
    transferred, and the rest of the cycle still has to run for them.
    """
    compact = maintenance_supported(config)

    steps = [Step("Indexing new mail", tools.notmuch_new())]
    if compact:
        steps.append(compact_step())
    steps += [
        Step("Tagging new mail", tools.afew_tag()),
        Step("Syncing with remote", tools.mbsync_sync(), policy=FailurePolicy.WARN),
        Step("Indexing synced mail", tools.notmuch_new()),
    ]
    if compact:
        steps.append(compact_step())
    steps.append(Step("Tagging synced mail", tools.afew_tag(verbose=True)))
    return steps


def format_delta(before: int, after: int) -> str:
    return f"{after - before} new messages (Inbox before: {before}, after: {after})"


def report_inbox_delta(
    before: int,
    after: int,
    notifier: Notifier,
    title: str = "mailsync",
    stream: TextIO | None = None,
) -> str:
    """Tell the user how the inbox changed during the run."""
    if before == after:
        print(NO_NEW_MAIL, file=stream or sys.stdout)
        logger.info(NO_NEW_MAIL, extra={"label": "Report"})
        return NO_NEW_MAIL

    message = format_delta(before, after)
    logger.info(message, extra={"label": "Report"})
    notifier.notify(title, message)
    return message


class SyncWorkflow:
    """Run the whole sequence; any aborting step ends the run by raising."""

    def __init__(
        self,
        config: Config,
        runner: StepRunner,
        notifier: Notifier,
        *,
        move: bool = False,
        delete: bool = False,
    ):
        self.config = config
        self.runner = runner
        self.notifier = notifier
        if runner.notifier is None:
            runner.notifier = notifier
            runner.title = config.notify.title
        self.move = move
        self.delete = delete

    def run(self) -> str:
        """Execute the workflow.

        Returns:
            The report line shown to the user

        Raises:
            MailsyncError: On the first fatal failure
        """
        check_prerequisites(self.config)
        check_reachability(self.runner, self.config)

        maintain_index(self.runner, self.config)
        backup_index(self.runner, self.config)
        self.runner.execute(retention_step(self.config))

        before = inbox_count(self.runner, "Counting inbox")
        run_steps(self.runner, sync_cycle_steps(self.config))

        if self.delete:
            archive_deleted(self.runner, self.config)
        if self.move:
            archive_moved(self.runner, self.config)

        after = inbox_count(self.runner, "Recounting inbox")
        return report_inbox_delta(before, after, self.notifier, title=self.config.notify.title)
