"""
Version utility module for 4-part build versions.

Versions embedded in assembly attributes and resource scripts have the form
``major.minor.build.revision``, every component a non-negative decimal
integer.
"""

import re
from typing import Tuple

from .exceptions import VersionFormatError

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)\.(\d+)$", re.ASCII)


class Version:
    """
    A 4-part build version ``major.minor.build.revision``.

    Every component is a non-negative integer. Instances are immutable;
    increment operations return a new Version.
    """

    def __init__(self, version_string: str):
        """
        Initialize a Version from a string.

        Args:
            version_string: Version string in format "a.b.c.d"

        Raises:
            VersionFormatError: If the string is not exactly four numeric parts
        """
        self._original_string = str(version_string).strip()

        match = VERSION_PATTERN.match(self._original_string)
        if not match:
            raise VersionFormatError(self._original_string)

        major, minor, build, revision = (int(g) for g in match.groups())
        self._parts: Tuple[int, int, int, int] = (major, minor, build, revision)

    @classmethod
    def from_parts(cls, major: int, minor: int, build: int, revision: int) -> "Version":
        """Build a Version from its four integer components."""
        return cls(f"{major}.{minor}.{build}.{revision}")

    @property
    def major(self) -> int:
        return self._parts[0]

    @property
    def minor(self) -> int:
        return self._parts[1]

    @property
    def build(self) -> int:
        return self._parts[2]

    @property
    def revision(self) -> int:
        return self._parts[3]

    @property
    def parts(self) -> Tuple[int, int, int, int]:
        """The four components as a tuple."""
        return self._parts

    def format(self, separator: str = ".") -> str:
        """Join the components with ``separator`` (resource scripts use ``,``)."""
        return separator.join(str(p) for p in self._parts)

    def __str__(self) -> str:
        return self.format(".")

    def __repr__(self) -> str:
        return f"Version('{str(self)}')"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Version):
            return False
        return self._parts == other._parts

    def __lt__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._parts < other._parts

    def __le__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._parts <= other._parts

    def __gt__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._parts > other._parts

    def __ge__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._parts >= other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def increment(self, increment_build: bool, increment_revision: bool) -> "Version":
        """Return a new Version with the increment policy applied."""
        return Version(
            increment_version(str(self), increment_build, increment_revision)
        )


def parse_version(version_string: str) -> Version:
    """
    Parse a version string into a Version object.

    Args:
        version_string: Version string to parse

    Returns:
        Version object

    Raises:
        VersionFormatError: If version string is invalid
    """
    return Version(version_string)


def _is_number(token: str) -> bool:
    return token.isascii() and token.isdigit()


def increment_version(
    version: str, increment_build: bool, increment_revision: bool
) -> str:
    """
    Increment the build and/or revision of a version string.

    The policy is:

    - ``increment_build``: build + 1
    - ``increment_revision`` alone: revision + 1
    - both: build + 1 and revision reset to 0
    - neither: unchanged

    Strings that are not four dot-separated tokens are returned as-is. A
    token that is not an integer is left untouched at its position.

    Args:
        version: Current version string
        increment_build: Advance the build component
        increment_revision: Advance (or reset) the revision component

    Returns:
        Incremented version string
    """
    parts = version.split(".")
    if len(parts) != 4:
        return version

    build, revision = parts[2], parts[3]
    if increment_build:
        if _is_number(build):
            parts[2] = str(int(build) + 1)
        if increment_revision and _is_number(revision):
            parts[3] = "0"
    elif increment_revision and _is_number(revision):
        parts[3] = str(int(revision) + 1)

    return ".".join(parts)
