"""
Version ordering, prefix filtering and latest-version selection.

Ordering follows GNU ``sort --version-sort``: pyenv names such as
``3.10.0``, ``3.13t``, ``3.14-dev`` or ``pypy3.10-7.3.15`` are not PEP 440
versions, so they are compared as alternating runs of non-digits and
numbers rather than parsed.
"""

from __future__ import annotations

import re
import string
from functools import cmp_to_key
from typing import Iterable, Sequence

from packaging.version import InvalidVersion, Version


# Matches every CPython 2.x / 3.x entry when no prefix is given
DEFAULT_PREFIX_PATTERN = r"^[23]\..*$"

DEV_SUFFIX_RE = re.compile(r"-dev$")


def _isdigit(c: str) -> bool:
    return c in string.digits


def _char_order(c: str) -> int:
    """Sort weight of a single character inside a non-digit run."""
    if _isdigit(c):
        return 0
    if c.isalpha() and c.isascii():
        return ord(c)
    if c == "~":
        return -1
    return ord(c) + 256


def _verrevcmp(a: str, b: str) -> int:
    i = j = 0
    len_a, len_b = len(a), len(b)

    while i < len_a or j < len_b:
        first_diff = 0

        # Non-digit run; a finished string or a digit weighs 0
        while (i < len_a and not _isdigit(a[i])) or (j < len_b and not _isdigit(b[j])):
            ca = _char_order(a[i]) if i < len_a else 0
            cb = _char_order(b[j]) if j < len_b else 0
            if ca != cb:
                return ca - cb
            i += 1
            j += 1

        while i < len_a and a[i] == "0":
            i += 1
        while j < len_b and b[j] == "0":
            j += 1

        # Digit run; the longer run wins, otherwise the first differing digit
        while i < len_a and _isdigit(a[i]) and j < len_b and _isdigit(b[j]):
            if not first_diff:
                first_diff = ord(a[i]) - ord(b[j])
            i += 1
            j += 1
        if i < len_a and _isdigit(a[i]):
            return 1
        if j < len_b and _isdigit(b[j]):
            return -1
        if first_diff:
            return first_diff

    return 0


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version strings with version-sort semantics.

    Args:
        v1: First version
        v2: Second version

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    result = _verrevcmp(v1, v2)
    if result == 0:
        # Same version value spelled differently ("3.010" vs "3.10")
        result = (v1 > v2) - (v1 < v2)
    if result < 0:
        return -1
    elif result > 0:
        return 1
    return 0


version_sort_key = cmp_to_key(compare_versions)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Return versions in ascending version-sort order."""
    return sorted(versions, key=version_sort_key)


def prefix_pattern(prefix: str | None = None, default: str = DEFAULT_PREFIX_PATTERN) -> re.Pattern[str]:
    """
    Build the regular expression that selects versions for a prefix.

    The prefix must be followed by the end of the string, a ``.`` or a
    ``-``, so ``3.11`` selects ``3.11.4`` and ``3.11-dev`` but never
    ``3.110.0``.

    Args:
        prefix: Optional version prefix given on the command line
        default: Pattern used when no prefix is given

    Returns:
        Compiled pattern
    """
    if prefix is None:
        return re.compile(default)
    return re.compile(rf"^{re.escape(prefix)}([.-].*)?$")


def filter_versions(versions: Iterable[str], pattern: re.Pattern[str]) -> list[str]:
    """Keep the versions the pattern matches, preserving order."""
    return [v for v in versions if pattern.search(v)]


def is_prerelease(version: str) -> bool:
    """
    Check whether a pyenv version name denotes a development or pre-release.

    Args:
        version: pyenv version name (e.g. "3.13.0rc2", "3.14-dev")

    Returns:
        True for -dev builds and PEP 440 pre/dev releases
    """
    if DEV_SUFFIX_RE.search(version):
        return True
    try:
        parsed = Version(version)
    except InvalidVersion:
        # Alternative implementations (pypy3.10-7.3.15, miniforge3-...) are releases
        return False
    return parsed.is_prerelease or parsed.is_devrelease


def exclude_prereleases(versions: Iterable[str]) -> list[str]:
    """Drop pre-release and development builds."""
    return [v for v in versions if not is_prerelease(v)]


def latest(versions: Sequence[str]) -> str | None:
    """
    Select the latest entry of an ascending, version-sorted list.

    Args:
        versions: Version-sorted list

    Returns:
        Last element, or None if the list is empty
    """
    if not versions:
        return None
    return versions[-1]
