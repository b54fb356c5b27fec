"""Configuration management for mailsync.

Settings come from dataclass defaults, an optional TOML file, and
MAILSYNC_* environment variables, in increasing order of precedence.
The resulting Config is built once at startup and handed to every step.
"""

import logging
import os
import shlex
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)


def _expand(path: str) -> Path:
    return Path(os.path.expandvars(path)).expanduser()


def parse_retention_days(value: int | str) -> int:
    """Validate a retention window given in days.

    Raises:
        ConfigError: If the value is not a positive integer
    """
    if isinstance(value, bool):
        raise ConfigError(f"Retention must be a positive number of days, got {value!r}")
    try:
        days = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"Retention must be a positive number of days, got {value!r}") from None
    if days <= 0:
        raise ConfigError(f"Retention must be a positive number of days, got {value!r}")
    return days


@dataclass
class PathsConfig:
    """Locations of the notmuch database root and the run log.

    Overridden by MAILSYNC_MAILDIR and MAILSYNC_LOG_FILE.
    """
    maildir: str = "~/Mail"
    log_file: str = "~/.local/state/mailsync/mailsync.log"

    def __post_init__(self):
        self.maildir = os.environ.get("MAILSYNC_MAILDIR", self.maildir)
        self.log_file = os.environ.get("MAILSYNC_LOG_FILE", self.log_file)

    @property
    def maildir_path(self) -> Path:
        return _expand(self.maildir)

    @property
    def log_path(self) -> Path:
        return _expand(self.log_file)


@dataclass
class BackupConfig:
    directory: str = "~/Mail/.backups"
    retention_days: int | str = 30

    def __post_init__(self):
        self.directory = os.environ.get("MAILSYNC_BACKUP_DIR", self.directory)
        self.retention_days = os.environ.get("MAILSYNC_BACKUP_RETENTION_DAYS", self.retention_days)

    @property
    def path(self) -> Path:
        return _expand(self.directory)


@dataclass
class ProbeConfig:
    """Network reachability probe.

    command=None uses the built-in IMAP handshake against host:port.
    An empty command disables the check. MAILSYNC_PROBE_CMD is honoured
    even when set to an empty string.
    """
    command: str | None = None
    host: str = "imap.gmail.com"
    port: int = 993
    use_ssl: bool = True
    timeout_seconds: float = 5.0

    def __post_init__(self):
        if "MAILSYNC_PROBE_CMD" in os.environ:
            self.command = os.environ["MAILSYNC_PROBE_CMD"]
        self.host = os.environ.get("MAILSYNC_PROBE_HOST", self.host)
        env_port = os.environ.get("MAILSYNC_PROBE_PORT")
        if env_port:
            try:
                self.port = int(env_port)
            except ValueError:
                raise ConfigError(f"MAILSYNC_PROBE_PORT must be an integer, got {env_port!r}") from None
        env_timeout = os.environ.get("MAILSYNC_PROBE_TIMEOUT")
        if env_timeout:
            try:
                self.timeout_seconds = float(env_timeout)
            except ValueError:
                raise ConfigError(f"MAILSYNC_PROBE_TIMEOUT must be a number, got {env_timeout!r}") from None
        self.argv()

    def argv(self) -> list[str]:
        """The probe command split into arguments; empty when unset or blank.

        Raises:
            ConfigError: If the command can't be split, e.g. an unbalanced quote
        """
        if not self.command:
            return []
        try:
            return shlex.split(self.command)
        except ValueError as e:
            raise ConfigError(f"Invalid probe command {self.command!r}: {e}") from None


@dataclass
class ArchiveConfig:
    """Deleted-mail archive and the notmuch folder used for moved mail.

    retention_days is validated only when the deletion phase runs.
    """
    directory: str = "~/Mail/.deleted"
    retention_days: int | str = 90
    folder: str = "Archive"

    def __post_init__(self):
        self.directory = os.environ.get("MAILSYNC_ARCHIVE_DIR", self.directory)
        self.retention_days = os.environ.get("MAILSYNC_DELETE_RETENTION_DAYS", self.retention_days)
        self.folder = os.environ.get("MAILSYNC_ARCHIVE_FOLDER", self.folder)

    @property
    def path(self) -> Path:
        return _expand(self.directory)


@dataclass
class NotifyConfig:
    title: str = "mailsync"
    ntfy_url: str | None = None
    timeout_seconds: float = 10.0

    def __post_init__(self):
        env_url = os.environ.get("MAILSYNC_NTFY_URL")
        if env_url:
            self.ntfy_url = env_url


@dataclass
class Config:
    paths: PathsConfig = field(default_factory=PathsConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    platform: str = field(default_factory=lambda: sys.platform)


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from an optional TOML file.

    Environment variables still take precedence over values from the file.
    """
    if path is None:
        return Config()

    path = Path(path)
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid configuration file {path}: {e}") from None
    except (IsADirectoryError, PermissionError) as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e.strerror}") from None

    paths_data = data.get("paths", {})
    paths_config = PathsConfig(
        maildir=paths_data.get("maildir", "~/Mail"),
        log_file=paths_data.get("log_file", "~/.local/state/mailsync/mailsync.log"),
    )

    backup_data = data.get("backup", {})
    backup_config = BackupConfig(
        directory=backup_data.get("directory", "~/Mail/.backups"),
        retention_days=backup_data.get("retention_days", 30),
    )

    probe_data = data.get("probe", {})
    probe_config = ProbeConfig(
        command=probe_data.get("command"),
        host=probe_data.get("host", "imap.gmail.com"),
        port=probe_data.get("port", 993),
        use_ssl=probe_data.get("use_ssl", True),
        timeout_seconds=probe_data.get("timeout_seconds", 5.0),
    )

    archive_data = data.get("archive", {})
    archive_config = ArchiveConfig(
        directory=archive_data.get("directory", "~/Mail/.deleted"),
        retention_days=archive_data.get("retention_days", 90),
        folder=archive_data.get("folder", "Archive"),
    )

    notify_data = data.get("notify", {})
    notify_config = NotifyConfig(
        title=notify_data.get("title", "mailsync"),
        ntfy_url=notify_data.get("ntfy_url"),
        timeout_seconds=notify_data.get("timeout_seconds", 10.0),
    )

    logger.debug(f"Loaded configuration from {path}")
    return Config(
        paths=paths_config,
        backup=backup_config,
        probe=probe_config,
        archive=archive_config,
        notify=notify_config,
    )
