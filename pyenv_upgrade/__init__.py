"""
pyenv-upgrade - report and install the latest Python version managed by pyenv.

Modules:
- versions: Version-sort ordering, prefix filtering, latest selection
- provider: pyenv-backed version source
- upgrade: Install/report orchestration
- config: YAML configuration
- cli: Command-line entry point
"""

__version__ = "1.0.0"

from .versions import (
    DEFAULT_PREFIX_PATTERN,
    compare_versions,
    sort_versions,
    prefix_pattern,
    filter_versions,
    is_prerelease,
    latest,
)
from .provider import PyenvError, PyenvProvider, VersionProvider, parse_available, parse_installed
from .upgrade import (
    EXIT_OK,
    EXIT_USAGE,
    EXIT_NO_CANDIDATE,
    NoCandidateError,
    UpgradeResult,
    run_upgrade,
)
from .config import Config, LoggingConfig, load_config, load_config_file, validate_config
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    # Versions
    "DEFAULT_PREFIX_PATTERN",
    "compare_versions",
    "sort_versions",
    "prefix_pattern",
    "filter_versions",
    "is_prerelease",
    "latest",
    # Provider
    "PyenvError",
    "PyenvProvider",
    "VersionProvider",
    "parse_available",
    "parse_installed",
    # Orchestration
    "EXIT_OK",
    "EXIT_USAGE",
    "EXIT_NO_CANDIDATE",
    "NoCandidateError",
    "UpgradeResult",
    "run_upgrade",
    # Config
    "Config",
    "LoggingConfig",
    "load_config",
    "load_config_file",
    "validate_config",
    # Logging
    "setup_logging",
    "get_logger",
]
