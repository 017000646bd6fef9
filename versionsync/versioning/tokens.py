"""
Table of the version token syntaxes recognized in source files.

Each entry pairs a name with a regex whose four groups are exactly the four
numeric spans of the version, so rewriting can replace those spans and
leave every other byte alone. Entries are ordered by priority: the first
syntax with a match is authoritative for the current version of a file.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Pattern

from .version import Version

_DOTTED = r"(\d+)\.(\d+)\.(\d+)\.(\d+)"
_COMMAS = r"(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)"


def _attribute(name: str) -> Pattern[str]:
    # C# [assembly: Name("..")] and VB <Assembly: Name("..")>
    return re.compile(
        rf"\b{name}(?:Attribute)?\s*\(\s*\"{_DOTTED}\"\s*\)", re.ASCII
    )


def _string_field(name: str) -> Pattern[str]:
    # VALUE "Name", "1.2.3.4" inside a StringFileInfo block
    return re.compile(rf"\"{name}\"\s*,\s*\"{_DOTTED}\"", re.ASCII)


def _record(name: str) -> Pattern[str]:
    # FILEVERSION 1,2,3,4 in the VS_VERSION_INFO header
    return re.compile(rf"\b{name}[ \t]+{_COMMAS}", re.ASCII)


@dataclass(frozen=True)
class VersionToken:
    """A named version syntax and how to find its numeric spans."""

    name: str
    pattern: Pattern[str]
    separator: str = "."

    def finditer(self, text: str) -> Iterator[re.Match]:
        return self.pattern.finditer(text)

    def search(self, text: str) -> Optional[Version]:
        """Return the version of the first match, or None."""
        match = self.pattern.search(text)
        if match is None:
            return None
        return Version.from_parts(*(int(g) for g in match.groups()))

    def present_in(self, text: str) -> bool:
        return self.pattern.search(text) is not None


ASSEMBLY_VERSION = VersionToken("assembly-version", _attribute("AssemblyVersion"))
ASSEMBLY_FILE_VERSION = VersionToken(
    "assembly-file-version", _attribute("AssemblyFileVersion")
)
ASSEMBLY_INFORMATIONAL_VERSION = VersionToken(
    "assembly-informational-version", _attribute("AssemblyInformationalVersion")
)
FILE_VERSION_FIELD = VersionToken("file-version-field", _string_field("FileVersion"))
PRODUCT_VERSION_FIELD = VersionToken(
    "product-version-field", _string_field("ProductVersion")
)
FILEVERSION_RECORD = VersionToken(
    "fileversion-record", _record("FILEVERSION"), separator=","
)
PRODUCTVERSION_RECORD = VersionToken(
    "productversion-record", _record("PRODUCTVERSION"), separator=","
)

# Order matters: parse() stops at the first syntax that matches.
VERSION_TOKENS: List[VersionToken] = [
    ASSEMBLY_VERSION,
    ASSEMBLY_FILE_VERSION,
    ASSEMBLY_INFORMATIONAL_VERSION,
    FILE_VERSION_FIELD,
    PRODUCT_VERSION_FIELD,
    FILEVERSION_RECORD,
    PRODUCTVERSION_RECORD,
]


def parse(text: str) -> Optional[Version]:
    """
    Extract the authoritative version from ``text``.

    The token table is walked in priority order and the first match of the
    first syntax present wins, so a file carrying both an AssemblyVersion
    and a differing AssemblyFileVersion reports the AssemblyVersion.

    Args:
        text: File content

    Returns:
        The version, or None when no recognized token is present
    """
    for token in VERSION_TOKENS:
        version = token.search(text)
        if version is not None:
            return version
    return None
