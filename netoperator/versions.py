"""Comparison of release versions to tell upgrades from downgrades."""

from __future__ import annotations

from enum import Enum

import semver

__all__ = ["VersionChange", "compare_versions"]


class VersionChange(Enum):
    """Direction in which an existing component must move to reach a release."""

    UPGRADE = -1
    SAME = 0
    DOWNGRADE = 1
    UNKNOWN = 2

    def __str__(self) -> str:
        return self.name.lower()


def _parse(version: str) -> semver.Version:
    text = version[1:] if version.startswith("v") else version
    return semver.Version.parse(text, optional_minor_and_patch=True)


def compare_versions(from_version: str, to_version: str) -> VersionChange:
    """Compare two semantic versions.

    Returns UPGRADE when ``from_version`` is older than ``to_version``,
    DOWNGRADE when it is newer, SAME when they are equal and UNKNOWN when
    either cannot be parsed.
    """
    if from_version == to_version:
        return VersionChange.SAME
    try:
        older = _parse(from_version)
        newer = _parse(to_version)
    except (ValueError, TypeError):
        return VersionChange.UNKNOWN
    return VersionChange(older.compare(newer))