"""
Common utilities shared across pyenv_upgrade modules.
"""

from __future__ import annotations

import os
from typing import TextIO


# ANSI colour used for fatal error labels
RED = "\033[31m"
RESET = "\033[0m"


def is_debug_forced() -> bool:
    """Check whether PYENV_UPGRADE_DEBUG forces debug output."""
    return os.environ.get("PYENV_UPGRADE_DEBUG", "0") == "1"


def supports_color(stream: TextIO) -> bool:
    """
    Check if a stream is an interactive terminal that accepts ANSI colours.

    Args:
        stream: Output stream to inspect

    Returns:
        True if colours should be emitted, False otherwise.
    """
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # Closed stream
        return False


def red(text: str, stream: TextIO) -> str:
    """Wrap text in red when the stream is a terminal."""
    if supports_color(stream):
        return f"{RED}{text}{RESET}"
    return text


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log a verbose trace message through the package logger.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled for this call site
    """
    from .logging_config import get_logger

    logger = get_logger()
    if verbose or is_debug_forced():
        logger.info(msg)
    else:
        logger.debug(msg)
