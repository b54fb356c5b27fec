"""Maintenance of the notmuch index: compaction, integrity, backups, counts."""

from __future__ import annotations

import logging
import os
import re
import time
from datetime import datetime
from functools import partial
from pathlib import Path

from .config import Config, parse_retention_days
from .errors import ConfigError, IndexCorrupted, MissingDirectoryError, StepFailed
from .runner import FailurePolicy, Step, StepResult, StepRunner
from . import tools

logger = logging.getLogger("mailsync")

BACKUP_PREFIX = "notmuch-dump-"
BACKUP_SUFFIX = ".gz"
BACKUP_STAMP_FORMAT = "%Y%m%d-%H%M%S"
LATEST_NAME = f"{BACKUP_PREFIX}latest{BACKUP_SUFFIX}"
BACKUP_PATTERN = re.compile(r"^notmuch-dump-\d{8}-\d{6}\.gz$")

# notmuch compact and xapian-check are unreliable on these platforms
MAINTENANCE_UNSUPPORTED_PLATFORMS = frozenset({"darwin"})

SECONDS_PER_DAY = 86400

RECOVERY_RUNBOOK = """\
The notmuch index at {database} failed its integrity check.
No backup was taken and no mail was synchronized.

To recover:
  1. Move the damaged index aside:
       mv {database} {database}.corrupt
  2. Rebuild the index from the mail files:
       notmuch new
  3. Restore tags from the most recent backup:
       notmuch restore --accumulate --input={latest}
  4. Re-run mailsync once the restore has finished.
"""


def maintenance_supported(config: Config) -> bool:
    return config.platform not in MAINTENANCE_UNSUPPORTED_PLATFORMS


def xapian_path(config: Config) -> Path:
    return config.paths.maildir_path / ".notmuch" / "xapian"


def compact_step() -> Step:
    return Step("Compacting index", tools.notmuch_compact())


def integrity_runbook(config: Config) -> str:
    return RECOVERY_RUNBOOK.format(
        database=xapian_path(config),
        latest=config.backup.path / LATEST_NAME,
    )


def check_integrity(runner: StepRunner, config: Config) -> StepResult:
    """Run the read-only consistency scan of the index storage.

    Raises:
        IndexCorrupted: With the recovery runbook, if the scan fails
    """
    step = Step("Checking index integrity", tools.xapian_check(str(xapian_path(config))))
    result = runner.run(step)
    if not result.ok:
        raise IndexCorrupted(result, integrity_runbook(config))
    return result


def maintain_index(runner: StepRunner, config: Config) -> None:
    """Compact and integrity-check the index, unless the platform can't."""
    if not maintenance_supported(config):
        logger.info(
            f"Skipping index compaction and integrity check on {config.platform}",
            extra={"label": "Index maintenance"},
        )
        return
    runner.execute(compact_step())
    check_integrity(runner, config)


def backup_filename(now: datetime) -> str:
    return f"{BACKUP_PREFIX}{now.strftime(BACKUP_STAMP_FORMAT)}{BACKUP_SUFFIX}"


def point_latest(backup_dir: Path, target: Path) -> tuple[int, str]:
    """Atomically repoint the latest alias at target."""
    alias = backup_dir / LATEST_NAME
    tmp = backup_dir / f".{LATEST_NAME}.tmp"
    if tmp.is_symlink() or tmp.exists():
        tmp.unlink()
    tmp.symlink_to(target.name)
    os.replace(tmp, alias)
    return 0, f"{alias.name} -> {target.name}"


def backup_index(runner: StepRunner, config: Config, now: datetime | None = None) -> Path:
    """Dump the index to a timestamped archive and repoint the latest alias.

    Returns:
        Path of the new backup artifact

    Raises:
        MissingDirectoryError: If the backup directory does not exist
        StepFailed: If the dump or the alias update fails
    """
    backup_dir = config.backup.path
    if not backup_dir.is_dir():
        raise MissingDirectoryError(backup_dir, "backup")

    target = backup_dir / backup_filename(now or datetime.now())
    runner.execute(Step("Backing up index", tools.notmuch_dump(str(target))))
    runner.execute(Step("Updating latest backup link", partial(point_latest, backup_dir, target)))
    return target


def prune_backups(backup_dir: Path, retention_days: int | str, now: float | None = None) -> tuple[int, str]:
    """Delete backup artifacts strictly older than the retention window.

    The latest alias and anything not named like an artifact are left alone.
    """
    try:
        days = parse_retention_days(retention_days)
    except ConfigError as e:
        return 1, str(e)

    cutoff = (now if now is not None else time.time()) - days * SECONDS_PER_DAY
    removed = []
    for entry in sorted(backup_dir.iterdir()):
        if entry.is_symlink() or not entry.is_file():
            continue
        if not BACKUP_PATTERN.match(entry.name):
            continue
        if entry.stat().st_mtime < cutoff:
            entry.unlink()
            removed.append(entry.name)

    for name in removed:
        logger.debug(f"Removed old backup {name}")
    return 0, f"Removed {len(removed)} backup(s) older than {days} days"


def retention_step(config: Config) -> Step:
    return Step(
        "Pruning old backups",
        partial(prune_backups, config.backup.path, config.backup.retention_days),
        policy=FailurePolicy.IGNORE,
    )


def inbox_count(runner: StepRunner, label: str) -> int:
    """Count messages tagged inbox.

    Raises:
        StepFailed: If notmuch fails or prints something other than a number
    """
    result = runner.execute(Step(label, tools.notmuch_count("tag:inbox")))
    try:
        return int(result.output.strip())
    except ValueError:
        raise StepFailed(result, f"{label}: unexpected count output {result.output.strip()!r}") from None
