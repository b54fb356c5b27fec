"""Desktop notification channels backed by local helper programs."""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger("mailsync")

NOTIFY_TIMEOUT = 10  # seconds


def _send(argv: list[str]) -> bool:
    try:
        subprocess.run(
            argv,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=NOTIFY_TIMEOUT,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Notification via {argv[0]} failed: {e}")
        return False
    return True


def _applescript_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class NotifySendNotifier:
    """libnotify via notify-send (Linux desktops)."""

    name = "notify-send"

    def notify(self, title: str, message: str, urgent: bool = False) -> bool:
        urgency = "critical" if urgent else "normal"
        return _send(["notify-send", f"--urgency={urgency}", "--app-name=mailsync", title, message])


class OsascriptNotifier:
    """macOS Notification Center through AppleScript."""

    name = "osascript"

    def notify(self, title: str, message: str, urgent: bool = False) -> bool:
        script = (
            f'display notification "{_applescript_escape(message)}" '
            f'with title "{_applescript_escape(title)}"'
        )
        if urgent:
            script += ' sound name "Basso"'
        return _send(["osascript", "-e", script])


class TerminalNotifier:
    """macOS Notification Center through terminal-notifier."""

    name = "terminal-notifier"

    def notify(self, title: str, message: str, urgent: bool = False) -> bool:
        argv = ["terminal-notifier", "-title", title, "-message", message, "-group", "mailsync"]
        if urgent:
            argv += ["-sound", "Basso"]
        return _send(argv)
