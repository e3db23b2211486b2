"""
Version sources backed by the pyenv command line.

VersionProvider is the seam the orchestrator talks to; PyenvProvider is
the real implementation that shells out to ``pyenv``.
"""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Protocol, Sequence

from .common import vlog
from .logging_config import get_logger
from .versions import sort_versions


# Exit status a shell reports for a command that cannot be found
COMMAND_NOT_FOUND = 127


class PyenvError(Exception):
    """
    A pyenv invocation failed.

    Attributes:
        message: Human-readable error message
        command: Command that was run
        returncode: Exit status of the command (127 if it could not be started)
        stderr: Captured standard error, if any
        remediation: Suggested fix for the error
    """
    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: int = 1,
        stderr: str = "",
        remediation: str | None = None,
    ):
        self.message = message
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr
        self.remediation = remediation
        super().__init__(message)


class VersionProvider(Protocol):
    """Source of installed/available versions and the operations that change them."""

    def list_installed(self) -> list[str]:
        ...

    def list_available(self) -> list[str]:
        ...

    def install(self, version: str) -> None:
        ...

    def upgrade_packages(self, version: str, packages: Sequence[str]) -> None:
        ...


def parse_installed(output: str) -> list[str]:
    """
    Parse ``pyenv versions`` output.

    Lines look like ``* 3.12.1 (set by /home/u/.pyenv/version)`` or
    ``  3.11.7/envs/tools``. The active-version marker and the trailing
    origin note are dropped; ``system``, virtualenvs and virtualenv
    aliases (``tools --> ...``) are skipped.

    Args:
        output: Raw command output

    Returns:
        Version-sorted list of installed versions
    """
    versions = []
    for line in output.splitlines():
        line = line.lstrip().lstrip("*").strip()
        if not line:
            continue
        name = line.split()[0]
        if name == "system" or "/" in name or "-->" in line:
            continue
        versions.append(name)
    return sort_versions(versions)


def parse_available(output: str) -> list[str]:
    """
    Parse ``pyenv install --list`` output.

    Args:
        output: Raw command output, starting with an ``Available versions:`` header

    Returns:
        Version-sorted list of installable versions
    """
    lines = output.splitlines()[1:]
    return sort_versions(line.strip() for line in lines if line.strip())


def scoped_environment(version: str, base: dict[str, str] | None = None) -> dict[str, str]:
    """
    Build a child-process environment that activates one pyenv version.

    Args:
        version: pyenv version to activate
        base: Environment to start from (defaults to os.environ)

    Returns:
        New mapping; the base environment is left untouched
    """
    env = dict(os.environ if base is None else base)
    env["PYENV_VERSION"] = version
    return env


class PyenvProvider:
    """
    VersionProvider that runs the pyenv executable.

    Args:
        pyenv_command: Executable name or path
        verbose: Enable verbose logging
    """

    def __init__(self, pyenv_command: str = "pyenv", verbose: bool = False):
        self.pyenv_command = pyenv_command
        self.verbose = verbose

    def _run(
        self,
        args: Sequence[str],
        capture: bool = True,
        env: dict[str, str] | None = None,
    ) -> str:
        command = [self.pyenv_command, *args]
        get_logger().info("running: %s", " ".join(command))

        try:
            if capture:
                result = subprocess.run(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    stdin=subprocess.DEVNULL,
                    text=True,
                    check=False,
                    env=env,
                )
            else:
                # Child output belongs on our stderr; stdout carries only the result
                result = subprocess.run(
                    command,
                    stdout=sys.stderr,
                    check=False,
                    env=env,
                )
        except FileNotFoundError as e:
            raise PyenvError(
                f"pyenv executable not found: {self.pyenv_command}",
                command=command,
                returncode=COMMAND_NOT_FOUND,
                remediation="Install pyenv (https://github.com/pyenv/pyenv) or set pyenv_command in the config",
            ) from e

        vlog(f"{' '.join(command)} exited with {result.returncode}", self.verbose)
        if result.returncode != 0:
            stderr = (result.stderr or "").strip() if capture else ""
            message = f"'{' '.join(command)}' failed with exit status {result.returncode}"
            if stderr:
                message += f": {stderr.splitlines()[-1]}"
            raise PyenvError(message, command=command, returncode=result.returncode, stderr=stderr)

        if not capture:
            return ""
        return result.stdout or ""

    def list_installed(self) -> list[str]:
        """List installed versions, version-sorted."""
        return parse_installed(self._run(["versions"]))

    def list_available(self) -> list[str]:
        """List installable versions, version-sorted."""
        return parse_available(self._run(["install", "--list"]))

    def install(self, version: str) -> None:
        """Install a version with ``pyenv install``."""
        self._run(["install", version], capture=False)

    def upgrade_packages(self, version: str, packages: Sequence[str]) -> None:
        """
        Upgrade packages with pip inside one installed version.

        The version is activated through PYENV_VERSION in the child's
        environment only.

        Args:
            version: Installed pyenv version
            packages: Package names to upgrade
        """
        if not packages:
            return
        self._run(
            ["exec", "python", "-m", "pip", "install", "--upgrade", *packages],
            capture=False,
            env=scoped_environment(version),
        )
