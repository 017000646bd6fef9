"""
Exception classes for the versioning module.
"""

from typing import Optional


class VersioningError(Exception):
    """Base exception for all versioning-related errors."""

    pass


class ConfigurationError(VersioningError):
    """Raised when a required external input is missing or invalid."""

    def __init__(self, setting: str, message: str = ""):
        self.setting = setting
        if message:
            super().__init__(f"Invalid configuration for {setting}: {message}")
        else:
            super().__init__(f"Missing required configuration: {setting}")


class VersionFormatError(VersioningError, ValueError):
    """Raised when a version string has an invalid format."""

    def __init__(self, version_string: str, expected_format: str = "a.b.c.d"):
        self.version_string = version_string
        self.expected_format = expected_format
        super().__init__(
            f"Invalid version format: '{version_string}'. "
            f"Expected format: {expected_format}"
        )


class VersionNotFoundError(VersioningError):
    """Raised when no authoritative version can be located."""

    def __init__(self, source_dir: str):
        self.source_dir = source_dir
        super().__init__(f"No version found under {source_dir}")


class MappingResolutionError(VersioningError):
    """Raised when a local file has no matching workspace mapping."""

    def __init__(self, local_path: str):
        self.local_path = local_path
        super().__init__(f"No workspace mapping found for {local_path}")


class TransactionError(VersioningError):
    """Raised when a checkout or check-in fails."""

    pass


class VersionControlError(TransactionError):
    """Raised by a version control provider when a command fails."""

    def __init__(self, operation: str, message: str, code: Optional[int] = None):
        self.operation = operation
        self.code = code
        if code is None:
            super().__init__(f"{operation} failed: {message}")
        else:
            super().__init__(f"{operation} failed with exit code {code}: {message}")
