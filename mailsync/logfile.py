"""Logging setup: console output plus the append-only run log.

The run log is a flat file with one tab-separated line per record:
timestamp, label, detail. Step records carry their label through
``extra={"label": ...}``; everything else is labelled with its level.
"""

from __future__ import annotations

import logging
from pathlib import Path

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Step records go to the run log only; the runner prints its own status line.
STEP_LOGGER = "mailsync.steps"


class TabSeparatedFormatter(logging.Formatter):
    """Render records as ``timestamp<TAB>label<TAB>detail``."""

    def __init__(self) -> None:
        super().__init__(datefmt=TIMESTAMP_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        label = getattr(record, "label", None) or record.levelname
        detail = record.getMessage()
        if record.exc_info:
            detail = f"{detail} {self.formatException(record.exc_info)}"
        # Keep one record per line so the columns stay parseable
        detail = detail.replace("\t", " ").replace("\n", " | ")
        return f"{self.formatTime(record, self.datefmt)}\t{label}\t{detail}"


def setup_logging(log_path: Path | None, *, verbose: bool = False) -> logging.FileHandler | None:
    """Configure the mailsync loggers.

    Args:
        log_path: Run log location, or None to log to the console only
        verbose: Emit DEBUG records on the console

    Returns:
        The file handler attached to the loggers, if any
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=CONSOLE_FORMAT,
    )
    app_logger = logging.getLogger("mailsync")
    app_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    step_logger = logging.getLogger(STEP_LOGGER)
    step_logger.setLevel(logging.DEBUG)
    step_logger.propagate = False

    if log_path is None:
        return None

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(TabSeparatedFormatter())
    app_logger.addHandler(handler)
    step_logger.addHandler(handler)
    return handler
