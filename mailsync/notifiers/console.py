"""Fallback channel when no notification helper is available."""

import logging

logger = logging.getLogger("mailsync")


class ConsoleNotifier:
    name = "console"

    def notify(self, title: str, message: str, urgent: bool = False) -> bool:
        if urgent:
            logger.error(f"{title}: {message}")
        else:
            logger.info(f"{title}: {message}")
        return True
