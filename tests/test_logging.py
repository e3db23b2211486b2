"""
Tests for logging configuration module.
"""

import logging

import pytest

from pyenv_upgrade.common import red, supports_color, vlog
from pyenv_upgrade.logging_config import (
    ColoredFormatter,
    get_logger,
    level_for_verbosity,
    setup_logging,
)


@pytest.fixture(autouse=True)
def no_forced_debug(monkeypatch):
    monkeypatch.delenv("PYENV_UPGRADE_DEBUG", raising=False)


class TestLevelForVerbosity:
    """Tests for mapping -v to log levels."""

    def test_levels(self):
        """Test each verbosity step."""
        assert level_for_verbosity(0) == "WARNING"
        assert level_for_verbosity(1) == "INFO"
        assert level_for_verbosity(2) == "DEBUG"
        assert level_for_verbosity(5) == "DEBUG"

    def test_custom_default(self):
        """Test the base level applies without -v."""
        assert level_for_verbosity(0, default="error") == "ERROR"

    def test_forced_debug(self, monkeypatch):
        """Test PYENV_UPGRADE_DEBUG=1 forces DEBUG."""
        monkeypatch.setenv("PYENV_UPGRADE_DEBUG", "1")
        assert level_for_verbosity(0) == "DEBUG"


class TestSetupLogging:
    """Test logging setup and configuration."""

    def test_setup_logging_default(self):
        """Test default logging setup."""
        logger = setup_logging()
        assert logger.name == "pyenv_upgrade"
        assert logger.level == logging.WARNING
        assert get_logger() is logger

    def test_setup_logging_verbose(self):
        """Test -vv enables DEBUG level."""
        logger = setup_logging(verbosity=2)
        assert logger.level == logging.DEBUG

    def test_console_handler_uses_stderr(self, capsys):
        """Test log records never reach stdout."""
        logger = setup_logging(verbosity=1)
        logger.info("hello from the logger")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello from the logger" in captured.err

    def test_setup_logging_quiet(self):
        """Test quiet mode has no console handler."""
        logger = setup_logging(quiet=True)
        console_handlers = [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert console_handlers == []

    def test_setup_logging_with_file(self, tmp_path):
        """Test logging to a file in a new directory at DEBUG."""
        log_file = tmp_path / "logs" / "pyenv-upgrade.log"
        logger = setup_logging(log_file=str(log_file), quiet=True)

        logger.debug("debug line")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.exists()
        assert "debug line" in log_file.read_text()

    def test_handlers_replaced(self):
        """Test repeated setup does not stack handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1


class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def make_record(self, level=logging.ERROR):
        return logging.LogRecord("pyenv_upgrade", level, __file__, 1, "boom", None, None)

    def test_with_colors(self):
        """Test ANSI codes are added."""
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=True)
        output = formatter.format(self.make_record())
        assert "\033[31m" in output
        assert output.endswith("boom")

    def test_without_colors(self):
        """Test plain level names without colours."""
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=False)
        assert formatter.format(self.make_record()) == "ERROR boom"


class _Stream:
    def __init__(self, tty):
        self.tty = tty

    def isatty(self):
        return self.tty


class TestCommon:
    """Tests for shared helpers."""

    def test_red_on_tty(self, monkeypatch):
        """Test red wraps text on a terminal."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert red("ERROR", _Stream(True)) == "\033[31mERROR\033[0m"

    def test_red_not_tty(self):
        """Test red leaves text alone off a terminal."""
        assert red("ERROR", _Stream(False)) == "ERROR"

    def test_no_color_env(self, monkeypatch):
        """Test NO_COLOR disables colours."""
        monkeypatch.setenv("NO_COLOR", "1")
        assert supports_color(_Stream(True)) is False

    def test_vlog_verbose(self, capsys):
        """Test vlog emits at INFO when verbose."""
        setup_logging(verbosity=1)
        vlog("traced", verbose=True)
        assert "traced" in capsys.readouterr().err

    def test_vlog_quiet(self, capsys):
        """Test vlog stays at DEBUG when not verbose."""
        setup_logging(verbosity=1)
        vlog("hidden", verbose=False)
        assert "hidden" not in capsys.readouterr().err
