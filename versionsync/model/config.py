"""Resolved run configuration.

Flags and environment inputs are collected once, resolved by pure functions
and handed to every component as immutable records.
"""

import os
import re
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

import humanfriendly
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from versionsync.versioning.exceptions import ConfigurationError

DEFAULT_VARIABLE_NAME = "BuildVersion"
DEFAULT_COMMAND_TIMEOUT = "10m"


class ProviderKind(str, Enum):
    """Supported version control backends."""

    tfvc = "tfvc"
    git = "git"


class RawFlags(BaseModel):
    """Flags as supplied by the user. ``None`` means not supplied."""

    increment_build: Optional[bool] = Field(None, description="Advance build")
    increment_revision: Optional[bool] = Field(
        None, description="Advance (or reset) revision"
    )
    skip_checkin: Optional[bool] = Field(None, description="Do not check in")
    do_not_increment: bool = Field(
        False, description="Keep the version and skip check-in"
    )
    use_custom_filter: bool = Field(False, description="Enable the custom filter")
    custom_filter: Optional[str] = Field(None, description="Custom filter pattern")
    dry_run: bool = Field(False, description="Report changes without writing")


class TransactionConfig(BaseModel):
    """Immutable flags for one run."""

    model_config = ConfigDict(frozen=True)

    increment_build: bool = True
    increment_revision: bool = True
    skip_checkin: bool = False
    use_custom_filter: bool = False
    custom_filter: Optional[str] = None
    dry_run: bool = False

    @field_validator("custom_filter")
    @classmethod
    def validate_custom_filter(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid pattern '{v}': {e}") from e
        return v

    @property
    def filter_active(self) -> bool:
        return self.use_custom_filter and bool(self.custom_filter)

    @property
    def checkin_enabled(self) -> bool:
        return not self.skip_checkin and not self.dry_run


def resolve_config(raw: RawFlags) -> TransactionConfig:
    """
    Resolve the supplied flags into a TransactionConfig.

    Unsupplied flags take their defaults: build and revision flags on (the
    build advances and the revision resets to 0), check-in allowed.
    ``do_not_increment`` wins over everything else: both increments and the
    check-in are switched off.

    Raises:
        ConfigurationError: If the custom filter is not a valid pattern
    """
    increment_build = True if raw.increment_build is None else raw.increment_build
    increment_revision = (
        True if raw.increment_revision is None else raw.increment_revision
    )
    skip_checkin = False if raw.skip_checkin is None else raw.skip_checkin

    if raw.do_not_increment:
        increment_build = False
        increment_revision = False
        skip_checkin = True

    if raw.custom_filter:
        try:
            re.compile(raw.custom_filter)
        except re.error as e:
            raise ConfigurationError("custom filter", str(e)) from e

    return TransactionConfig(
        increment_build=increment_build,
        increment_revision=increment_revision,
        skip_checkin=skip_checkin,
        use_custom_filter=raw.use_custom_filter,
        custom_filter=raw.custom_filter,
        dry_run=raw.dry_run,
    )


class EnvironmentSettings(BaseModel):
    """Paths, endpoints and credentials provided by the build host."""

    model_config = ConfigDict(frozen=True)

    source_dir: Path = Field(..., description="Root of the sources to scan")
    temp_dir: Path = Field(..., description="Scratch space for the transaction")
    collection_url: Optional[str] = Field(None, description="Collection endpoint")
    workspace: Optional[str] = Field(None, description="Build workspace name")
    branch: Optional[str] = Field(None, description="Branch for the git provider")
    build_number: str = Field("", description="Identifier of the running build")
    agent_name: str = Field("", description="Build agent name")
    access_token: Optional[SecretStr] = Field(None, description="Access token")
    provider: ProviderKind = Field(ProviderKind.tfvc, description="VCS backend")
    variable_name: str = Field(
        DEFAULT_VARIABLE_NAME, description="Output variable for the new version"
    )
    tf_executable: str = Field("tf", description="tf command line client")
    command_timeout: Optional[float] = Field(
        None, description="Timeout for a single VCS command (seconds)"
    )


def parse_timeout(value: Optional[str]) -> Optional[float]:
    """Parse a human friendly timespan ("90s", "10m"); empty means no timeout."""
    if not value:
        return None
    try:
        return humanfriendly.parse_timespan(value)
    except humanfriendly.InvalidTimespan as e:
        raise ConfigurationError("command timeout", str(e)) from e


def branch_name(ref: Optional[str]) -> Optional[str]:
    """Strip the "refs/heads/" prefix of a full ref; plain names pass through."""
    if not ref:
        return None
    return ref[len("refs/heads/") :] if ref.startswith("refs/heads/") else ref


def resolve_environment(
    source_dir: Optional[str],
    temp_dir: Optional[str] = None,
    collection_url: Optional[str] = None,
    workspace: Optional[str] = None,
    branch: Optional[str] = None,
    build_number: Optional[str] = None,
    agent_name: Optional[str] = None,
    access_token: Optional[str] = None,
    provider: ProviderKind = ProviderKind.tfvc,
    variable_name: Optional[str] = None,
    tf_executable: Optional[str] = None,
    command_timeout: Optional[str] = DEFAULT_COMMAND_TIMEOUT,
    checkin_enabled: bool = True,
) -> EnvironmentSettings:
    """
    Validate the environment-provided inputs.

    The source directory is always required. A TFVC check-in also needs the
    collection endpoint and the build workspace name.

    Raises:
        ConfigurationError: If a required input is missing or invalid
    """
    if not source_dir:
        raise ConfigurationError("source directory")
    if not os.path.isdir(source_dir):
        raise ConfigurationError("source directory", f"{source_dir} does not exist")

    if temp_dir:
        if not os.path.isdir(temp_dir):
            raise ConfigurationError("temp directory", f"{temp_dir} does not exist")
    else:
        temp_dir = tempfile.gettempdir()

    provider = ProviderKind(provider)
    if checkin_enabled and provider == ProviderKind.tfvc:
        if not collection_url:
            raise ConfigurationError("collection url")
        if not workspace:
            raise ConfigurationError("workspace")

    return EnvironmentSettings(
        source_dir=Path(source_dir).resolve(),
        temp_dir=Path(temp_dir).resolve(),
        collection_url=collection_url or None,
        workspace=workspace or None,
        branch=branch_name(branch),
        build_number=build_number or "",
        agent_name=agent_name or "",
        access_token=SecretStr(access_token) if access_token else None,
        provider=provider,
        variable_name=variable_name or DEFAULT_VARIABLE_NAME,
        tf_executable=tf_executable or "tf",
        command_timeout=parse_timeout(command_timeout),
    )
