"""Optional archival phases: deleted-mail archival and folder moves."""

from __future__ import annotations

import logging
import re
import shutil
import time
from collections.abc import Iterable
from functools import partial
from pathlib import Path

from .config import Config, parse_retention_days
from .errors import MissingDirectoryError
from .index import SECONDS_PER_DAY
from .runner import Step, StepRunner, run_steps
from . import tools

logger = logging.getLogger("mailsync")

# mbsync embeds the remote UID in maildir file names; a moved file must
# drop it or the synchronizer treats it as a duplicate.
UID_PATTERN = re.compile(r",U=\d+")


def strip_uid(filename: str) -> str:
    return UID_PATTERN.sub("", filename)


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True


def relocate_files(paths: Iterable[str], archive_dir: Path) -> tuple[int, str]:
    """Move message files into the archive directory.

    Files that have vanished or already live in the archive are skipped.
    """
    moved = 0
    skipped = 0
    for raw in paths:
        source = Path(raw.strip())
        if not raw.strip() or not source.is_file():
            skipped += 1
            continue
        if _is_within(source, archive_dir):
            skipped += 1
            continue
        destination = archive_dir / strip_uid(source.name)
        shutil.move(str(source), str(destination))
        logger.debug(f"Archived {source} -> {destination}")
        moved += 1
    return 0, f"Archived {moved} message(s), skipped {skipped}"


def prune_archive(archive_dir: Path, days: int, now: float | None = None) -> tuple[int, str]:
    """Delete archived files older than the retention window."""
    cutoff = (now if now is not None else time.time()) - days * SECONDS_PER_DAY
    removed = 0
    for entry in sorted(archive_dir.rglob("*")):
        if entry.is_symlink() or not entry.is_file():
            continue
        if entry.stat().st_mtime < cutoff:
            entry.unlink()
            removed += 1
    return 0, f"Removed {removed} archived message(s) older than {days} days"


def archive_deleted(runner: StepRunner, config: Config) -> None:
    """Move mail tagged deleted into the archive and expunge it remotely.

    Raises:
        ConfigError: If the retention window is not a positive integer;
            raised before any file is touched
        MissingDirectoryError: If the archive directory does not exist
        StepFailed: If any step fails
    """
    days = parse_retention_days(config.archive.retention_days)
    archive_dir = config.archive.path
    if not archive_dir.is_dir():
        raise MissingDirectoryError(archive_dir, "archive")

    search = runner.execute(Step("Finding deleted mail", tools.notmuch_search_files("tag:deleted")))
    files = [line for line in search.output.splitlines() if line.strip()]

    run_steps(runner, [
        Step("Archiving deleted mail", partial(relocate_files, files, archive_dir)),
        Step("Indexing archived mail", tools.notmuch_new()),
        Step("Pruning archived mail", partial(prune_archive, archive_dir, days)),
        Step("Expunging deleted mail", tools.mbsync_expunge()),
    ])


def move_steps(config: Config) -> list[Step]:
    """Steps that relocate mail per the tagging rules and push the result.

    afew's move rules leave the archived tag off mail already sitting in
    the archive folder, so it is applied by hand before pushing.
    """
    folder = config.archive.folder
    return [
        Step("Moving mail", tools.afew_move()),
        Step(
            f"Tagging {folder}",
            tools.notmuch_tag(["+archived", "-inbox"], f'folder:"{folder}" and not tag:archived'),
        ),
        Step("Pushing folders", tools.mbsync_push()),
    ]


def archive_moved(runner: StepRunner, config: Config) -> None:
    run_steps(runner, move_steps(config))
