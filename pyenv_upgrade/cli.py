"""
Command-line entry point for pyenv-upgrade.

Usage: pyenv-upgrade [-h] [-v]... [-l] [VERSION_PREFIX]
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Sequence

from .common import red
from .config import load_config, validate_config
from .logging_config import get_logger, setup_logging
from .provider import PyenvError, PyenvProvider
from .upgrade import EXIT_OK, EXIT_USAGE, NoCandidateError, run_upgrade


PROG = "pyenv-upgrade"

DESCRIPTION = "pyenv-upgrade is a CLI utility to update Python versions installed with pyenv."

EPILOG = """\
exit status:
  0  success
  1  invalid arguments
  2  no installable version matches VERSION_PREFIX
  *  exit status of a failing pyenv command
"""


@dataclass(frozen=True)
class OptionSpec:
    """
    Declarative description of a command-line flag.

    Attributes:
        flag: Short flag (e.g. "-v")
        dest: Attribute name on the parsed options
        help: Help text
        kind: "flag" (boolean), "count" (counter) or "help"
        repeatable: Whether the flag may be given more than once
        required: Whether the flag must be given
    """
    flag: str
    dest: str
    help: str
    kind: str = "flag"
    repeatable: bool = False
    required: bool = False


OPTION_SPECS = (
    OptionSpec("-h", "help", "print this help and exit", kind="help"),
    OptionSpec("-v", "verbosity", "increase verbosity; may be given more than once", kind="count", repeatable=True),
    OptionSpec("-l", "list_only", "list matching versions and exit without installing"),
)

# Bounds on positional arguments (None disables the check)
MIN_POSITIONAL_ARGS: int | None = None
MAX_POSITIONAL_ARGS: int | None = 1


@dataclass(frozen=True)
class Options:
    """Parsed command-line options."""
    verbosity: int = 0
    list_only: bool = False
    prefix: str | None = None


class UsageError(Exception):
    """Invalid command-line arguments."""

    exit_code = EXIT_USAGE


class HelpRequested(Exception):
    """-h was given."""


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting."""

    def error(self, message: str):
        raise UsageError(message)


class _HelpAction(argparse.Action):
    def __init__(self, option_strings, dest, **kwargs):
        super().__init__(option_strings, dest, nargs=0, default=argparse.SUPPRESS, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        raise HelpRequested()


class _OnceAction(argparse.Action):
    """Boolean flag that may be given at most once."""

    def __init__(self, option_strings, dest, **kwargs):
        super().__init__(option_strings, dest, nargs=0, default=False, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        if getattr(namespace, self.dest, False):
            parser.error(f"option cannot be given more than once -- {option_string}")
        setattr(namespace, self.dest, True)


class _RepeatableFlagAction(argparse.Action):
    """Boolean flag that may be repeated freely."""

    def __init__(self, option_strings, dest, **kwargs):
        super().__init__(option_strings, dest, nargs=0, default=False, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, True)


def build_parser(specs: Sequence[OptionSpec] = OPTION_SPECS) -> argparse.ArgumentParser:
    """
    Build an argument parser from an option table.

    Args:
        specs: Option specifications

    Returns:
        Parser whose error() raises UsageError
    """
    parser = _Parser(
        prog=PROG,
        usage="%(prog)s [-h] [-v]... [-l] [VERSION_PREFIX]",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )

    for spec in specs:
        if spec.kind == "help":
            parser.add_argument(spec.flag, dest=spec.dest, action=_HelpAction, help=spec.help)
        elif spec.kind == "count":
            parser.add_argument(
                spec.flag, dest=spec.dest, action="count", default=0,
                required=spec.required, help=spec.help,
            )
        elif spec.kind == "flag":
            action = _RepeatableFlagAction if spec.repeatable else _OnceAction
            parser.add_argument(spec.flag, dest=spec.dest, action=action, required=spec.required, help=spec.help)
        else:
            raise ValueError(f"Unknown option kind: {spec.kind}")

    parser.add_argument(
        "positional",
        nargs="*",
        metavar="VERSION_PREFIX",
        help="only consider versions starting with this prefix followed by '.' or '-' (e.g. 3.12, pypy3.10)",
    )
    return parser


def _scan_flags(argv: Sequence[str], specs: Sequence[OptionSpec] = OPTION_SPECS) -> None:
    """
    Walk leading flags left to right, the way getopts does.

    An unknown flag seen before -h is an error; -h ends the scan and
    wins over anything after it. Scanning stops at the first positional
    argument or at ``--``.

    Raises:
        HelpRequested: If -h is reached
        UsageError: If an unknown flag precedes any -h
    """
    known = {spec.flag[1:]: spec for spec in specs}
    for token in argv:
        if token == "--" or token == "-" or not token.startswith("-"):
            return
        if token.startswith("--"):
            raise UsageError(f"unrecognized option: {token}")
        for char in token[1:]:
            spec = known.get(char)
            if spec is None:
                raise UsageError(f"unrecognized option: -{char}")
            if spec.kind == "help":
                raise HelpRequested()


def parse_args(argv: Sequence[str] | None = None) -> Options:
    """
    Parse command-line arguments.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Parsed Options

    Raises:
        HelpRequested: If -h was given
        UsageError: If the arguments are invalid
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    _scan_flags(argv)
    args = build_parser().parse_args(argv)

    positional = args.positional
    if MIN_POSITIONAL_ARGS is not None and len(positional) < MIN_POSITIONAL_ARGS:
        raise UsageError(
            f"at least {MIN_POSITIONAL_ARGS} positional argument(s) are needed "
            f"but got {len(positional)}"
        )
    if MAX_POSITIONAL_ARGS is not None and len(positional) > MAX_POSITIONAL_ARGS:
        raise UsageError(
            f"up to {MAX_POSITIONAL_ARGS} positional argument(s) are allowed "
            f"but got {len(positional)} -- {' '.join(repr(p) for p in positional)}"
        )

    return Options(
        verbosity=args.verbosity,
        list_only=args.list_only,
        prefix=positional[0] if positional else None,
    )


def exit_status(returncode: int) -> int:
    """Map a child return code to a shell exit status (signal N becomes 128 + N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def print_help(stream=None) -> None:
    """Print the full help text (to stderr by default)."""
    build_parser().print_help(sys.stderr if stream is None else stream)


def main(argv: Sequence[str] | None = None) -> int:
    """
    Run pyenv-upgrade.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Process exit status
    """
    try:
        options = parse_args(argv)
    except HelpRequested:
        print_help()
        return EXIT_OK
    except UsageError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        print_help()
        return e.exit_code

    setup_logging(verbosity=options.verbosity)
    verbose = options.verbosity > 0

    try:
        config = load_config(verbose=verbose)
    except ValueError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return EXIT_USAGE

    logger = setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        verbosity=options.verbosity,
    )
    if config.source:
        logger.debug("configuration loaded from %s", config.source)
    for warning in validate_config(config):
        logger.warning(warning)

    provider = PyenvProvider(config.pyenv_command, verbose=verbose)
    try:
        run_upgrade(
            provider,
            prefix=options.prefix,
            list_only=options.list_only,
            config=config,
        )
    except NoCandidateError as e:
        get_logger().debug("%s", e)
        return e.exit_code
    except PyenvError as e:
        print(f"{red('ERROR', sys.stderr)}: {e.message}", file=sys.stderr)
        if e.remediation:
            print(f"hint: {e.remediation}", file=sys.stderr)
        return exit_status(e.returncode)

    return EXIT_OK


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
