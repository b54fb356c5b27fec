"""User notification channels.

This module provides a unified interface for telling the user how a run went:
- NtfyNotifier: Push notifications to an ntfy topic (when configured)
- TerminalNotifier / OsascriptNotifier: macOS Notification Center
- NotifySendNotifier: libnotify on Linux desktops
- ConsoleNotifier: Log output when nothing else is available

Use select_notifier() once at startup; the chosen channel is reused for
the whole run rather than re-probed per notification.
"""

import shutil
from collections.abc import Callable

from mailsync.config import Config

from .base import Notifier
from .console import ConsoleNotifier
from .desktop import NotifySendNotifier, OsascriptNotifier, TerminalNotifier
from .ntfy import NtfyNotifier

__all__ = [
    "ConsoleNotifier",
    "Notifier",
    "NotifySendNotifier",
    "NtfyNotifier",
    "OsascriptNotifier",
    "TerminalNotifier",
    "select_notifier",
]


def select_notifier(
    config: Config,
    which: Callable[[str], str | None] = shutil.which,
) -> Notifier:
    """Select the best available notification channel.

    Selection logic:
    1. ntfy, if a topic URL is configured
    2. terminal-notifier, if installed
    3. osascript, on macOS
    4. notify-send, if installed
    5. Console logging otherwise

    Args:
        config: Application configuration
        which: Executable lookup, shutil.which by default

    Returns:
        A Notifier instance
    """
    if config.notify.ntfy_url:
        return NtfyNotifier(config.notify.ntfy_url, timeout_seconds=config.notify.timeout_seconds)

    if which("terminal-notifier"):
        return TerminalNotifier()

    if config.platform == "darwin" and which("osascript"):
        return OsascriptNotifier()

    if which("notify-send"):
        return NotifySendNotifier()

    return ConsoleNotifier()
