"""Push notifications through an ntfy topic."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger("mailsync")


class NtfyNotifier:
    """POST notifications to an ntfy topic URL (https://ntfy.sh/<topic> or self-hosted)."""

    name = "ntfy"

    def __init__(self, url: str, timeout_seconds: float = 10.0):
        self.url = url
        self.timeout_seconds = timeout_seconds

    def notify(self, title: str, message: str, urgent: bool = False) -> bool:
        # Header values must be ASCII; the query string carries any title.
        headers = {
            "Priority": "high" if urgent else "default",
            "Tags": "warning" if urgent else "email",
        }
        try:
            response = httpx.post(
                self.url,
                params={"title": title},
                content=message.encode("utf-8"),
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Notification via ntfy failed: {e}")
            return False
        return True
