"""Network reachability check run before anything touches the index."""

from __future__ import annotations

import logging
from functools import partial

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError

from .config import Config, ProbeConfig
from .runner import Step, StepResult, StepRunner

logger = logging.getLogger("mailsync")


def imap_probe(config: ProbeConfig) -> tuple[int, str]:
    """Open an IMAP connection and log out again without authenticating."""
    address = f"{config.host}:{config.port}"
    try:
        client = IMAPClient(
            config.host,
            port=config.port,
            ssl=config.use_ssl,
            timeout=config.timeout_seconds,
        )
    except (OSError, IMAPClientError) as e:
        return 1, f"Cannot reach {address}: {e}"

    try:
        client.logout()
    except (OSError, IMAPClientError) as e:
        return 1, f"{address} dropped the connection: {e}"
    return 0, f"{address} is reachable"


def probe_step(config: Config) -> Step | None:
    """Build the probe step, or None when the check is disabled."""
    probe = config.probe
    if probe.command is None:
        return Step("Checking network", partial(imap_probe, probe))
    argv = probe.argv()
    if not argv:
        return None
    return Step("Checking network", argv, timeout=probe.timeout_seconds)


def check_reachability(runner: StepRunner, config: Config) -> StepResult | None:
    """Abort the run when the mail server can't be reached.

    Raises:
        StepFailed: If the probe fails
        ConfigError: If the probe command is malformed
    """
    step = probe_step(config)
    if step is None:
        logger.info("No reachability probe configured, skipping network check")
        return None
    return runner.execute(step)
