"""Command lines for the wrapped mail tools.

notmuch indexes, mbsync synchronizes, afew tags and moves.
"""

NOTMUCH = "notmuch"
MBSYNC = "mbsync"
AFEW = "afew"
XAPIAN_CHECK = "xapian-check"


def notmuch_new() -> list[str]:
    return [NOTMUCH, "new", "--quiet"]


def notmuch_compact() -> list[str]:
    return [NOTMUCH, "compact", "--quiet"]


def notmuch_count(query: str) -> list[str]:
    return [NOTMUCH, "count", query]


def notmuch_dump(output: str) -> list[str]:
    return [NOTMUCH, "dump", "--gzip", f"--output={output}"]


def notmuch_search_files(query: str) -> list[str]:
    # Explicitly include messages carrying excluded tags such as "deleted"
    return [NOTMUCH, "search", "--exclude=false", "--output=files", query]


def notmuch_tag(changes: list[str], query: str) -> list[str]:
    return [NOTMUCH, "tag", *changes, "--", query]


def xapian_check(database: str) -> list[str]:
    return [XAPIAN_CHECK, database]


def afew_tag(verbose: bool = False) -> list[str]:
    argv = [AFEW, "--tag", "--new"]
    if verbose:
        argv.append("--verbose")
    return argv


def afew_move() -> list[str]:
    return [AFEW, "--move-mails", "--all"]


def mbsync_sync() -> list[str]:
    return [MBSYNC, "--all"]


def mbsync_push() -> list[str]:
    return [MBSYNC, "--all", "--push"]


def mbsync_expunge() -> list[str]:
    return [MBSYNC, "--all", "--expunge"]
