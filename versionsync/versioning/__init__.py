"""
Versioning module for versionsync.

All version logic lives here: parsing the 4-part build version out of source
text, the increment policy, classification of files and rewriting of the
embedded tokens. Other modules (the orchestrator, the CLI, the version
control transaction) delegate every version concern to this package.

LAYERS:
=======

1. **Core Version Logic** (version.py):
   - Version: immutable ``major.minor.build.revision`` value
   - increment_version: build/revision increment policy

2. **Token Table** (tokens.py):
   - VERSION_TOKENS: ordered table of the seven recognized syntaxes
   - parse: first match in priority order is authoritative

3. **Classification** (matcher.py):
   - is_version_bearing, matches_custom_filter

4. **Rewriting** (rewriter.py):
   - rewrite: pure replacement of the numeric spans
   - read_source / write_source: encoding and BOM preserving file I/O

5. **Exception Hierarchy** (exceptions.py):
   - Unified exception types for configuration, lookup and transaction
     failures
"""

from .exceptions import (
    VersioningError,
    ConfigurationError,
    VersionFormatError,
    VersionNotFoundError,
    MappingResolutionError,
    TransactionError,
    VersionControlError,
)
from .matcher import find_tokens, is_version_bearing, matches_custom_filter
from .rewriter import SourceText, read_source, rewrite, write_source
from .tokens import VERSION_TOKENS, VersionToken, parse
from .version import Version, parse_version, increment_version

__all__ = [
    # Core version utilities
    "Version",
    "parse_version",
    "increment_version",
    # Token table
    "VERSION_TOKENS",
    "VersionToken",
    "parse",
    # Classification and rewriting
    "find_tokens",
    "is_version_bearing",
    "matches_custom_filter",
    "SourceText",
    "read_source",
    "rewrite",
    "write_source",
    # Exception hierarchy
    "VersioningError",
    "ConfigurationError",
    "VersionFormatError",
    "VersionNotFoundError",
    "MappingResolutionError",
    "TransactionError",
    "VersionControlError",
]
