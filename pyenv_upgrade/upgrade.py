"""
Upgrade orchestration.

Compares the latest installed and latest available versions matching a
prefix and installs the newer one when needed. Status text goes to the
error stream; the selected version is the only thing written to the
output stream.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TextIO

from .common import red
from .config import Config
from .logging_config import get_logger
from .provider import VersionProvider
from .versions import exclude_prereleases, filter_versions, latest, prefix_pattern


EXIT_OK = 0
EXIT_USAGE = 1
EXIT_NO_CANDIDATE = 2

ACTION_LISTED = "listed"
ACTION_UP_TO_DATE = "up_to_date"
ACTION_INSTALLED = "installed"


class NoCandidateError(Exception):
    """No available version matches the requested prefix."""

    exit_code = EXIT_NO_CANDIDATE

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"no installable version matches {pattern!r}")


@dataclass(frozen=True)
class UpgradeResult:
    """
    Outcome of one run.

    Attributes:
        prefix: Version prefix given on the command line, if any
        pattern: Regular expression the versions were filtered with
        installed: Matching installed versions, ascending
        available: Matching available versions, ascending
        latest_installed: Highest matching installed version
        latest_available: Highest matching available version
        action: What was done ("listed", "up_to_date" or "installed")
        upgraded_packages: Packages upgraded after installing
    """
    prefix: str | None
    pattern: str
    installed: tuple[str, ...]
    available: tuple[str, ...]
    latest_installed: str | None
    latest_available: str
    action: str
    upgraded_packages: tuple[str, ...] = field(default_factory=tuple)

    @property
    def selected_version(self) -> str:
        """Version reported on standard output."""
        return self.latest_available

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "prefix": self.prefix,
            "pattern": self.pattern,
            "installed": list(self.installed),
            "available": list(self.available),
            "latest_installed": self.latest_installed,
            "latest_available": self.latest_available,
            "action": self.action,
            "upgraded_packages": list(self.upgraded_packages),
        }


def _report_versions(label: str, versions: list[str], prefix: str | None, pattern: str, err: TextIO) -> None:
    if prefix is not None:
        print(f'{label} versions matching "{pattern}":', file=err)
    else:
        print(f"{label} versions:", file=err)
    for version in versions:
        print(f"\t{version}", file=err)


def run_upgrade(
    provider: VersionProvider,
    prefix: str | None = None,
    list_only: bool = False,
    config: Config | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> UpgradeResult:
    """
    Report and, unless listing only, install the latest version for a prefix.

    Args:
        provider: Source of installed/available versions
        prefix: Optional version prefix (e.g. "3.12")
        list_only: Report the latest available version without installing
        config: Configuration (defaults used when None)
        out: Stream receiving the selected version (default: stdout)
        err: Stream receiving status text (default: stderr)

    Returns:
        UpgradeResult describing what happened

    Raises:
        NoCandidateError: If no available version matches
        PyenvError: If a pyenv command fails
    """
    config = config or Config()
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err
    logger = get_logger()

    pattern = prefix_pattern(prefix, default=config.default_prefix_pattern)
    logger.debug("prefix %r -> pattern %r", prefix, pattern.pattern)

    installed = filter_versions(provider.list_installed(), pattern)
    _report_versions("installed", installed, prefix, pattern.pattern, err)
    latest_installed = latest(installed)

    available = filter_versions(provider.list_available(), pattern)
    if not config.include_prereleases:
        available = exclude_prereleases(available)
    _report_versions("available", available, prefix, pattern.pattern, err)
    latest_available = latest(available)

    if latest_installed:
        print(f"latest installed version: {latest_installed}", file=err)
    else:
        print("no matching version currently installed!", file=err)

    if not latest_available:
        print(f"{red('ERROR', err)}: no installable version could be found!", file=err)
        raise NoCandidateError(pattern.pattern)
    print(f"latest available version: {latest_available}", file=err)

    def result(action: str, upgraded: tuple[str, ...] = ()) -> UpgradeResult:
        return UpgradeResult(
            prefix=prefix,
            pattern=pattern.pattern,
            installed=tuple(installed),
            available=tuple(available),
            latest_installed=latest_installed,
            latest_available=latest_available,
            action=action,
            upgraded_packages=upgraded,
        )

    if list_only:
        print(latest_available, file=out)
        return result(ACTION_LISTED)

    if latest_installed == latest_available:
        print("already up to date!", file=err)
        print(latest_available, file=out)
        return result(ACTION_UP_TO_DATE)

    print(f"installing: {latest_available}", file=err)
    provider.install(latest_available)

    packages = tuple(config.upgrade_packages)
    if packages:
        print(f"upgrading packages in {latest_available}: {' '.join(packages)}", file=err)
        provider.upgrade_packages(latest_available, packages)

    print(f"installed: {latest_available}", file=err)
    print(latest_available, file=out)
    logger.info("installed %s (previous: %s)", latest_available, latest_installed or "none")
    return result(ACTION_INSTALLED, packages)
