"""Ordering of free-form mod version strings."""

from functools import cmp_to_key
from typing import Iterable

# Release components are unsigned 32-bit; anything larger counts as 0.
RELEASE_PART_MAX = 4294967295


def _split_build(version: str) -> tuple[str, str | None]:
    release, sep, build = version.partition("-")
    return release, (build if sep else None)


def _release_numbers(release: str) -> list[int]:
    numbers = []
    for part in release.split("."):
        if part.isascii() and part.isdigit() and int(part) <= RELEASE_PART_MAX:
            numbers.append(int(part))
        else:
            numbers.append(0)
    return numbers


def compare(a: str, b: str) -> int:
    """
    Compare two version strings.

    Returns -1, 0 or 1 when ``a`` is older than, equal to, or newer than
    ``b``. Release numbers are compared numerically component by component;
    versions sharing a release number are ordered by their build suffix,
    and a version without one ranks above any version that has one.
    """
    if a == b:
        return 0

    a_release, a_build = _split_build(a)
    b_release, b_build = _split_build(b)

    if a_release == b_release:
        if a_build is None:
            return 1
        if b_build is None:
            return -1
        return -1 if a_build < b_build else 1

    a_numbers = _release_numbers(a_release)
    b_numbers = _release_numbers(b_release)
    if a_numbers < b_numbers:
        return -1
    if a_numbers > b_numbers:
        return 1
    return 0


version_key = cmp_to_key(compare)


def sort_versions(versions: Iterable[str], descending: bool = True) -> list[str]:
    """Sort versions, newest first by default."""
    return sorted(versions, key=version_key, reverse=descending)


def latest(versions: Iterable[str]) -> str | None:
    """Return the newest version, or None if there are none."""
    versions = list(versions)
    if not versions:
        return None
    return max(versions, key=version_key)
