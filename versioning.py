"""Centralised version and naming information for Appearance Keeper.

This module is the single source of truth for the application name and
version. The entry point, the log banner and packaging read it so the
strings are not duplicated across the codebase.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


APP_NAME: str = "Appearance Keeper"
APP_ID: str = "appearance-keeper"
APP_VERSION: str = "1.0.0"
APP_DESCRIPTION: str = "Keeps separate light and dark appearance settings and wallpapers, re-applying them when the color scheme changes."


@dataclass(frozen=True)
class VersionInfo:
    major: int
    minor: int
    patch: int

    def to_tuple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


def parse_version(version_str: str = APP_VERSION) -> VersionInfo:
    """Parse a semantic-ish version string ``MAJOR.MINOR.PATCH``.

    Falls back to ``0.0.0`` on parse errors so callers always receive a
    usable object.
    """

    try:
        parts = [int(p) for p in str(version_str).split(".")[:3]]
        while len(parts) < 3:
            parts.append(0)
        return VersionInfo(parts[0], parts[1], parts[2])
    except Exception:
        return VersionInfo(0, 0, 0)


__all__ = [
    "APP_NAME",
    "APP_ID",
    "APP_VERSION",
    "APP_DESCRIPTION",
    "VersionInfo",
    "parse_version",
]
