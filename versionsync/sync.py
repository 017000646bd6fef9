"""
Version synchronization driver.

A run goes through these steps:

1. Walk the source tree for the shared version files and take the first one
   that carries a version (and passes the custom filter) as authoritative.
2. Compute the new version from the configured increment policy.
3. Announce the new version to the build host.
4. Walk the tree again for every version file, rewrite the tokens and, when
   check-in is enabled, route each changed file through one
   SourceControlTransaction that is committed once at the end.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

import click

from versionsync.constants import CHECKIN_COMMENT, FILE_PATTERNS, ScanPass
from versionsync.model.config import EnvironmentSettings, TransactionConfig
from versionsync.publish import publish
from versionsync.utils import make_writable, walk_files
from versionsync.vcs.provider import VersionControlProvider
from versionsync.vcs.transaction import SourceControlTransaction, TransactionState
from versionsync.versioning import (
    ConfigurationError,
    MappingResolutionError,
    SourceText,
    Version,
    VersionNotFoundError,
    find_tokens,
    is_version_bearing,
    matches_custom_filter,
    parse,
    read_source,
    rewrite,
    write_source,
)

logger = logging.getLogger(__name__)


@dataclass
class CandidateFile:
    path: Path
    source: SourceText
    tokens: List[str]


@dataclass
class SyncResult:
    current_version: Version
    new_version: Version
    source_file: Path
    identifier: str
    rewritten: List[Path] = field(default_factory=list)
    unchanged: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    checked_out: List[str] = field(default_factory=list)
    changeset: Optional[str] = None


def iter_candidates(
    source_dir: Path, config: TransactionConfig, scan: ScanPass
) -> Iterator[CandidateFile]:
    """Yield the version-bearing files of a scan that pass the custom filter."""
    for path in walk_files(source_dir, FILE_PATTERNS[scan]):
        source = read_source(path)
        if not is_version_bearing(source.text):
            logger.debug(f"No version token in {path}")
            continue
        if not matches_custom_filter(
            source.text, config.custom_filter, config.use_custom_filter
        ):
            logger.info(
                f"Ignoring {path}: custom filter '{config.custom_filter}' not found"
            )
            continue
        yield CandidateFile(path, source, find_tokens(source.text))


def find_current_version(
    source_dir: Path, config: TransactionConfig
) -> Tuple[Path, Version]:
    """
    Locate the authoritative version.

    Raises:
        VersionNotFoundError: If no shared version file carries a version
    """
    for candidate in iter_candidates(source_dir, config, ScanPass.Resolve):
        version = parse(candidate.source.text)
        if version is not None:
            logger.info(f"Found version {version} in {candidate.path}")
            return candidate.path, version
    raise VersionNotFoundError(str(source_dir))


class VersionSynchronizer:
    """
    Drives one version update.

    Args:
        config: Resolved flags
        settings: Environment-provided paths and endpoints
        provider: Version control backend; required when check-in is enabled
        emit: Receives the build host announcements (stdout by default)
    """

    def __init__(
        self,
        config: TransactionConfig,
        settings: EnvironmentSettings,
        provider: Optional[VersionControlProvider] = None,
        emit: Callable[[str], None] = click.echo,
    ):
        self.config = config
        self.settings = settings
        self.provider = provider
        self.emit = emit

    def compute_new_version(self, current: Version) -> Version:
        new = current.increment(
            self.config.increment_build, self.config.increment_revision
        )
        if new == current:
            logger.info(f"Version stays at {current}")
        else:
            logger.info(f"Version {current} will be updated to {new}")
        return new

    def run(self) -> SyncResult:
        """
        Run the update.

        Raises:
            VersionNotFoundError: If there is no version to update
            TransactionError: If the checkout or check-in fails
            OSError: If a local version file cannot be read or written
        """
        source_file, current = find_current_version(
            self.settings.source_dir, self.config
        )
        new = self.compute_new_version(current)

        publication = publish(
            self.settings.build_number, new, self.settings.variable_name
        )
        logger.info(f"Build identifier: {publication.identifier}")
        for line in publication.announcements:
            self.emit(line)

        result = SyncResult(current, new, source_file, publication.identifier)

        if not self.config.checkin_enabled:
            if self.config.skip_checkin:
                logger.info("Check-in is disabled.")
            self._rewrite_all(new, result, None)
            return result

        if self.provider is None:
            raise ConfigurationError("version control provider")

        transaction = SourceControlTransaction(
            self.provider, self.settings.temp_dir, self.settings.agent_name
        )
        # opened on the first file that needs a check-in
        try:
            self._rewrite_all(new, result, transaction)
            if result.checked_out:
                message = CHECKIN_COMMENT.format(version=new)
                result.changeset = transaction.commit(message)
            else:
                logger.info("No files to check in.")
        finally:
            transaction.close()
        return result

    def _rewrite_all(
        self,
        version: Version,
        result: SyncResult,
        transaction: Optional[SourceControlTransaction],
    ) -> None:
        for candidate in iter_candidates(
            self.settings.source_dir, self.config, ScanPass.Rewrite
        ):
            self._rewrite_file(candidate, version, result, transaction)

    def _rewrite_file(
        self,
        candidate: CandidateFile,
        version: Version,
        result: SyncResult,
        transaction: Optional[SourceControlTransaction],
    ) -> None:
        text = rewrite(candidate.source.text, version)
        if text == candidate.source.text:
            logger.info(f"{candidate.path} is already at {version}")
            result.unchanged.append(candidate.path)
            return

        tokens = ", ".join(candidate.tokens)
        if self.config.dry_run:
            logger.info(f"Would update {candidate.path} ({tokens})")
            result.rewritten.append(candidate.path)
            return

        updated = candidate.source.with_text(text)
        # server workspaces fetch sources read-only
        make_writable(candidate.path)
        write_source(candidate.path, updated)
        logger.info(f"Updated {candidate.path} ({tokens})")
        result.rewritten.append(candidate.path)

        if transaction is None:
            return

        try:
            server_path = transaction.resolve_server_path(candidate.path)
        except MappingResolutionError as e:
            logger.warning(f"Not checking in {candidate.path}: {e}")
            result.skipped.append(candidate.path)
            return

        if transaction.state == TransactionState.idle:
            transaction.open()
        transaction.check_out_and_edit(server_path, updated.to_bytes())
        result.checked_out.append(server_path)
