"""Announce the new version to the build host.

The build host reads logging commands from standard output. Two are
produced: one renames the running build, one exposes the version as an
output variable to later pipeline stages.
"""

import re
from dataclasses import dataclass, field
from typing import List

from versionsync.versioning.version import Version

UPDATE_BUILD_NUMBER = "##vso[build.updatebuildnumber]{}"
SET_VARIABLE = "##vso[task.setvariable variable={}]{}"

_IDENTIFIER_VERSION = re.compile(r"\d+\.\d+\.\d+\.\d+", re.ASCII)


@dataclass
class Publication:
    identifier: str
    version: str
    announcements: List[str] = field(default_factory=list)


def replace_identifier_version(identifier: str, version: Version) -> str:
    """Replace the first 4-part number in ``identifier``; no match leaves it as-is."""
    return _IDENTIFIER_VERSION.sub(str(version), identifier, count=1)


def publish(
    old_identifier: str, version: Version, variable_name: str = "BuildVersion"
) -> Publication:
    """
    Build the announcements for a new version.

    Args:
        old_identifier: Current build identifier, e.g. "CI_1.0.0.0"
        version: The new version
        variable_name: Name of the output variable

    Returns:
        Publication with the new identifier and both announcement lines
    """
    identifier = replace_identifier_version(old_identifier, version)
    announcements = [
        UPDATE_BUILD_NUMBER.format(identifier),
        SET_VARIABLE.format(variable_name, version),
    ]
    return Publication(identifier, str(version), announcements)
