"""
Tests for the pyenv-backed version source (pyenv_upgrade/provider.py).
"""

import os
import sys
from unittest.mock import MagicMock, patch

import pytest

from pyenv_upgrade.provider import (
    COMMAND_NOT_FOUND,
    PyenvError,
    PyenvProvider,
    parse_available,
    parse_installed,
    scoped_environment,
)


PYENV_VERSIONS_OUTPUT = """\
  system
  3.9.18
* 3.10.13 (set by /home/user/.pyenv/version)
  3.10.13/envs/tools
  3.12.1
  tools --> /home/user/.pyenv/versions/3.10.13/envs/tools
  pypy3.10-7.3.15
"""

PYENV_INSTALL_LIST_OUTPUT = """\
Available versions:
  2.7.18
  3.9.18
  3.10.13
  3.12-dev
  3.12.0
  3.12.1

  pypy3.10-7.3.15
"""


class TestParseInstalled:
    """Tests for parse_installed."""

    def test_parse_installed(self):
        """Test markers, origin notes, system, virtualenvs and aliases are dropped."""
        versions = parse_installed(PYENV_VERSIONS_OUTPUT)
        assert versions == ["3.9.18", "3.10.13", "3.12.1", "pypy3.10-7.3.15"]

    def test_parse_installed_empty(self):
        """Test output with only the system interpreter."""
        assert parse_installed("* system (set by /home/user/.pyenv/version)\n") == []


class TestParseAvailable:
    """Tests for parse_available."""

    def test_parse_available(self):
        """Test header and blank lines are skipped and output is sorted."""
        versions = parse_available(PYENV_INSTALL_LIST_OUTPUT)
        assert versions == [
            "2.7.18",
            "3.9.18",
            "3.10.13",
            "3.12-dev",
            "3.12.0",
            "3.12.1",
            "pypy3.10-7.3.15",
        ]

    def test_parse_available_header_only(self):
        """Test output with no versions."""
        assert parse_available("Available versions:\n") == []


class TestScopedEnvironment:
    """Tests for scoped_environment."""

    def test_sets_pyenv_version(self):
        """Test PYENV_VERSION is set in the returned mapping only."""
        base = {"PATH": "/usr/bin", "PYENV_VERSION": "3.9.18"}
        env = scoped_environment("3.12.1", base=base)
        assert env["PYENV_VERSION"] == "3.12.1"
        assert env["PATH"] == "/usr/bin"
        assert base["PYENV_VERSION"] == "3.9.18"

    def test_does_not_touch_process_environment(self, monkeypatch):
        """Test os.environ is not modified."""
        monkeypatch.delenv("PYENV_VERSION", raising=False)
        env = scoped_environment("3.12.1")
        assert env["PYENV_VERSION"] == "3.12.1"
        assert "PYENV_VERSION" not in os.environ


class TestPyenvProvider:
    """Tests for PyenvProvider subprocess calls."""

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_list_installed(self, mock_run):
        """Test 'pyenv versions' is run and parsed."""
        mock_run.return_value = MagicMock(returncode=0, stdout=PYENV_VERSIONS_OUTPUT, stderr="")

        versions = PyenvProvider().list_installed()

        assert versions[0] == "3.9.18"
        assert mock_run.call_args[0][0] == ["pyenv", "versions"]

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_list_available(self, mock_run):
        """Test 'pyenv install --list' is run and parsed."""
        mock_run.return_value = MagicMock(returncode=0, stdout=PYENV_INSTALL_LIST_OUTPUT, stderr="")

        versions = PyenvProvider().list_available()

        assert versions[-1] == "pypy3.10-7.3.15"
        assert mock_run.call_args[0][0] == ["pyenv", "install", "--list"]

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_custom_command(self, mock_run):
        """Test a configured pyenv executable is used."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        PyenvProvider("/opt/pyenv/bin/pyenv").list_installed()

        assert mock_run.call_args[0][0][0] == "/opt/pyenv/bin/pyenv"

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_install_sends_output_to_stderr(self, mock_run):
        """Test install output does not reach stdout."""
        mock_run.return_value = MagicMock(returncode=0, stdout=None, stderr=None)

        PyenvProvider().install("3.12.1")

        args, kwargs = mock_run.call_args
        assert args[0] == ["pyenv", "install", "3.12.1"]
        assert kwargs["stdout"] is sys.stderr

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_upgrade_packages_scoped_to_version(self, mock_run):
        """Test pip runs inside the new version through PYENV_VERSION."""
        mock_run.return_value = MagicMock(returncode=0, stdout=None, stderr=None)

        PyenvProvider().upgrade_packages("3.12.1", ("pip", "setuptools"))

        args, kwargs = mock_run.call_args
        assert args[0] == [
            "pyenv", "exec", "python", "-m", "pip", "install", "--upgrade", "pip", "setuptools",
        ]
        assert kwargs["env"]["PYENV_VERSION"] == "3.12.1"

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_upgrade_packages_nothing_to_do(self, mock_run):
        """Test no command runs without packages."""
        PyenvProvider().upgrade_packages("3.12.1", ())
        mock_run.assert_not_called()

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_failure_raises_with_returncode(self, mock_run):
        """Test a nonzero exit raises PyenvError carrying the status."""
        mock_run.return_value = MagicMock(
            returncode=3,
            stdout="",
            stderr="pyenv: no such command `versions'\n",
        )

        with pytest.raises(PyenvError) as exc_info:
            PyenvProvider().list_installed()

        assert exc_info.value.returncode == 3
        assert exc_info.value.command == ("pyenv", "versions")
        assert "no such command" in exc_info.value.message

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_install_failure(self, mock_run):
        """Test a failed install raises without retrying."""
        mock_run.return_value = MagicMock(returncode=1, stdout=None, stderr=None)

        with pytest.raises(PyenvError) as exc_info:
            PyenvProvider().install("3.12.1")

        assert exc_info.value.returncode == 1
        assert mock_run.call_count == 1

    @patch("pyenv_upgrade.provider.subprocess.run")
    def test_missing_executable(self, mock_run):
        """Test a missing pyenv maps to exit status 127 with a hint."""
        mock_run.side_effect = FileNotFoundError("pyenv")

        with pytest.raises(PyenvError) as exc_info:
            PyenvProvider().list_available()

        assert exc_info.value.returncode == COMMAND_NOT_FOUND
        assert exc_info.value.remediation
