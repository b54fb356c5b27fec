"""CLI entry point for mailsync."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .checks import check_prerequisites
from .config import load_config
from .errors import IndexCorrupted, MailsyncError, MissingToolError
from .logfile import STEP_LOGGER, setup_logging
from .notifiers import select_notifier
from .runner import StepRunner
from .workflow import SyncWorkflow

logger = logging.getLogger("mailsync")


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = ArgumentParser(
        prog="mailsync",
        description=(
            "Back up the notmuch index, sync mail with mbsync, re-tag with afew "
            "and report new mail"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-m", "--move",
        action="store_true",
        help="Move mail between folders per the afew rules and push the result",
    )
    parser.add_argument(
        "-d", "--delete",
        action="store_true",
        help="Archive mail tagged 'deleted' and expunge it on the server",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to a TOML configuration file (MAILSYNC_* variables still apply)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug output",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config is not None and not args.config.exists():
        print(f"Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.config)
    except MailsyncError as e:
        print(str(e), file=sys.stderr)
        sys.exit(e.exit_code)

    # Console only until the tools are known to be present; the run log
    # directory is created after that.
    setup_logging(None, verbose=args.verbose)
    notifier = select_notifier(config)
    logger.debug(f"Using {notifier.name} notifications")
    try:
        check_prerequisites(config)
    except MissingToolError as e:
        logger.error(str(e))
        notifier.notify(config.notify.title, str(e), urgent=True)
        sys.exit(e.exit_code)

    setup_logging(config.paths.log_path, verbose=args.verbose)

    workflow = SyncWorkflow(
        config,
        StepRunner(notifier=notifier, title=config.notify.title),
        notifier,
        move=args.move,
        delete=args.delete,
    )
    try:
        workflow.run()
    except IndexCorrupted as e:
        logger.error(str(e))
        logging.getLogger(STEP_LOGGER).error(e.runbook, extra={"label": "Recovery runbook"})
        print(e.runbook, file=sys.stderr)
        notifier.notify(config.notify.title, "Index is corrupt; see the log for recovery steps", urgent=True)
        sys.exit(e.exit_code)
    except MailsyncError as e:
        logger.error(str(e))
        notifier.notify(config.notify.title, str(e), urgent=True)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
