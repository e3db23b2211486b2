"""
Configuration file parsing and management.

Reads YAML configuration files and merges them from multiple sources
(explicit path → project → user → system → defaults).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from .common import vlog
from .versions import DEFAULT_PREFIX_PATTERN


CONFIG_ENV_VAR = "PYENV_UPGRADE_CONFIG"

# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".pyenv-upgrade.yml",                                      # Project root (highest priority)
    ".pyenv-upgrade.yaml",                                     # Alternative extension
    os.path.expanduser("~/.config/pyenv-upgrade/config.yml"),  # User global
    os.path.expanduser("~/.config/pyenv-upgrade/config.yaml"),
    "/etc/pyenv-upgrade/config.yml",                           # System global
    "/etc/pyenv-upgrade/config.yaml",
]

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_UPGRADE_PACKAGES = ("pip", "setuptools")


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging preferences.

    Attributes:
        level: Base console log level when -v is not given
        file: Optional log file path (always written at DEBUG)
    """
    level: str = "WARNING"
    file: str | None = None

    def __post_init__(self):
        if self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.level}. "
                f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> LoggingConfig:
        """Create LoggingConfig from dictionary."""
        return LoggingConfig(
            level=str(data.get("level", "WARNING")),
            file=data.get("file"),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for pyenv-upgrade.

    Attributes:
        version: Config schema version
        pyenv_command: pyenv executable to run
        default_prefix_pattern: Regex selecting versions when no prefix is given
        include_prereleases: Whether -dev, alpha, beta and rc builds are install candidates
        upgrade_packages: Packages upgraded with pip after a fresh install
        logging: Logging preferences
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    pyenv_command: str = "pyenv"
    default_prefix_pattern: str = DEFAULT_PREFIX_PATTERN
    include_prereleases: bool = True
    upgrade_packages: tuple[str, ...] = DEFAULT_UPGRADE_PACKAGES
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: str = ""
    # Keys set explicitly by the source file ("logging.level" for nested ones)
    explicit_keys: frozenset[str] = field(default=frozenset(), compare=False, repr=False)

    def __post_init__(self):
        """Validate config after initialization."""
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

        if not self.pyenv_command or not self.pyenv_command.strip():
            raise ValueError("pyenv_command must not be empty")

        if not isinstance(self.include_prereleases, bool):
            raise ValueError(
                f"include_prereleases must be true or false, got {self.include_prereleases!r}"
            )

        try:
            re.compile(self.default_prefix_pattern)
        except re.error as e:
            raise ValueError(
                f"Invalid default_prefix_pattern {self.default_prefix_pattern!r}: {e}"
            ) from e

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        packages = data.get("upgrade_packages", DEFAULT_UPGRADE_PACKAGES)
        if isinstance(packages, str):
            packages = packages.split()

        logging_data = data.get("logging") or {}
        if not isinstance(logging_data, dict):
            raise ValueError(f"logging must be a mapping, got {logging_data!r}")
        explicit = {key for key in data if key != "logging"}
        explicit.update(f"logging.{key}" for key in logging_data)

        return Config(
            version=data.get("version", 1),
            pyenv_command=data.get("pyenv_command", "pyenv"),
            default_prefix_pattern=data.get("default_prefix_pattern", DEFAULT_PREFIX_PATTERN),
            include_prereleases=data.get("include_prereleases", True),
            upgrade_packages=tuple(packages or ()),
            logging=LoggingConfig.from_dict(logging_data),
            source=source,
            explicit_keys=frozenset(explicit),
        )

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        A key set in this config's file wins even when it holds the default
        value. Keys set in neither file fall back to preferring non-default
        values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        defaults = Config()

        def choose(key: str, mine: Any, theirs: Any, default: Any) -> Any:
            if key in self.explicit_keys:
                return mine
            if key in other.explicit_keys:
                return theirs
            return mine if mine != default else theirs

        def pick(name: str) -> Any:
            return choose(name, getattr(self, name), getattr(other, name), getattr(defaults, name))

        merged_logging = LoggingConfig(
            level=choose("logging.level", self.logging.level, other.logging.level, defaults.logging.level),
            file=choose("logging.file", self.logging.file, other.logging.file, defaults.logging.file),
        )

        return Config(
            version=self.version,
            pyenv_command=pick("pyenv_command"),
            default_prefix_pattern=pick("default_prefix_pattern"),
            include_prereleases=pick("include_prereleases"),
            upgrade_packages=pick("upgrade_packages"),
            logging=merged_logging,
            source=self.source or other.source,
            explicit_keys=self.explicit_keys | other.explicit_keys,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (argument, or PYENV_UPGRADE_CONFIG)
    2. Project .pyenv-upgrade.yml
    3. User ~/.config/pyenv-upgrade/config.yml
    4. System /etc/pyenv-upgrade/config.yml
    5. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If a custom path is given but the file cannot be loaded
    """
    configs: list[Config] = []

    custom_path = custom_path or os.environ.get(CONFIG_ENV_VAR) or None
    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    # First config has highest priority
    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Config object to validate

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    if len(config.upgrade_packages) != len(set(config.upgrade_packages)):
        warnings.append("Duplicate entries in upgrade_packages")

    if not config.default_prefix_pattern.startswith("^"):
        warnings.append(
            f"default_prefix_pattern {config.default_prefix_pattern!r} is not anchored with '^'"
        )

    return warnings
