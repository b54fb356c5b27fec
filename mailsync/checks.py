"""Prerequisite check for the external mail tools."""

from __future__ import annotations

import logging
import shutil

from .config import Config
from .errors import MissingToolError
from .index import maintenance_supported
from .tools import AFEW, MBSYNC, NOTMUCH, XAPIAN_CHECK

logger = logging.getLogger("mailsync")

REQUIRED_TOOLS = (NOTMUCH, MBSYNC, AFEW)


def required_tools(config: Config) -> list[str]:
    """Tools this run needs; the integrity checker only where it is used."""
    tools = list(REQUIRED_TOOLS)
    if maintenance_supported(config):
        tools.append(XAPIAN_CHECK)
    return tools


def find_missing_tools(tools: list[str]) -> list[str]:
    """Return the tools that are not executable on PATH."""
    return [tool for tool in tools if shutil.which(tool) is None]


def check_prerequisites(config: Config) -> None:
    """Fail fast when any required tool is missing.

    Raises:
        MissingToolError: Naming every missing tool
    """
    tools = required_tools(config)
    missing = find_missing_tools(tools)
    if missing:
        raise MissingToolError(missing)
    logger.debug(f"Found required tools: {', '.join(tools)}")
