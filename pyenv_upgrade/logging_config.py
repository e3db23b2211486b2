"""
Centralized logging configuration for pyenv-upgrade.

Log records always go to stderr: stdout is reserved for the single
version line the tool prints, so it stays safe to pipe.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .common import is_debug_forced


LOGGER_NAME = "pyenv_upgrade"

# Global logger instance
_logger: Optional[logging.Logger] = None


def level_for_verbosity(verbosity: int, default: str = "WARNING") -> str:
    """
    Map the -v counter to a log level name.

    Args:
        verbosity: Number of times -v was given
        default: Level used when -v was not given

    Returns:
        Log level name
    """
    if verbosity >= 2 or is_debug_forced():
        return "DEBUG"
    if verbosity == 1:
        return "INFO"
    return default.upper()


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    verbosity: int = 0,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Base log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        verbosity: Number of -v flags; raises the level to INFO/DEBUG
        quiet: Suppress console output (file only)
        propagate: Allow log propagation (useful for testing)

    Returns:
        Configured logger instance
    """
    global _logger

    effective_level = level_for_verbosity(verbosity, default=level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, effective_level))

    # Clear existing handlers
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, effective_level))
        console_formatter = ColoredFormatter(
            "%(levelname_colored)s %(message)s",
            use_colors=sys.stderr.isatty(),
        )
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(os.path.expanduser(log_file))
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
        # File handler wants everything; console handler filters on its own level
        logger.setLevel(logging.DEBUG)

    logger.propagate = propagate

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    Get the configured logger instance.

    Until setup_logging() runs, this is the bare package logger with no
    handlers of its own.
    """
    if _logger is None:
        return logging.getLogger(LOGGER_NAME)
    return _logger


class ColoredFormatter(logging.Formatter):
    """
    Formatter with colored output for different log levels.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[1;31m', # Bold Red
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors:
            color = self.COLORS.get(record.levelname, '')
            record.levelname_colored = f"{color}{record.levelname}{self.RESET}"
        else:
            record.levelname_colored = record.levelname

        return super().format(record)
