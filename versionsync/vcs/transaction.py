"""
Check-out, edit and check-in of version files as one transaction.

A transaction owns a temporary workspace and one mapping per edited file.
Every file is mapped to a private path under the run's scratch directory,
fetched, marked for edit and overwritten. A single submit checks all of them
in together. Closing the transaction removes every mapping, the scratch files
and the workspace, whether or not the submit happened or succeeded.

Usage:
    with SourceControlTransaction(provider, temp_dir, agent_name) as tx:
        server_path = tx.resolve_server_path(local_file)
        tx.check_out_and_edit(server_path, new_bytes)
        tx.commit("Update version to 1.2.4.0")
"""

import logging
import os
import tempfile
import uuid
from enum import Enum
from pathlib import Path, PurePath
from typing import List, Optional, Tuple

from versionsync.utils import make_writable, remove_file, remove_tree
from versionsync.versioning.exceptions import (
    MappingResolutionError,
    TransactionError,
)

from .provider import VersionControlProvider, WorkingFolder, WorkspaceMapping

logger = logging.getLogger(__name__)


class TransactionState(str, Enum):
    idle = "idle"
    open = "open"
    committed = "committed"
    closed = "closed"


def _components(path: str) -> Tuple[str, ...]:
    # Build hosts run on Windows; compare paths case-insensitively.
    parts = PurePath(os.path.normpath(path)).parts
    return tuple(part.casefold() for part in parts)


def find_working_folder(
    folders: List[WorkingFolder], local_path: str
) -> Optional[WorkingFolder]:
    """
    Pick the working folder whose local root is the longest prefix of
    ``local_path``.

    Mappings can be nested (``$/Proj`` → ``src`` and ``$/Proj/Lib`` →
    ``src/lib``), so the deepest matching root wins; equal depth goes to the
    longer root string.
    """
    target = _components(local_path)
    best: Optional[WorkingFolder] = None
    best_key = (-1, -1)
    for folder in folders:
        root = _components(folder.local_item)
        if not root or target[: len(root)] != root:
            continue
        key = (len(root), len(folder.local_item))
        if key > best_key:
            best, best_key = folder, key
    return best


def server_path_for(folder: WorkingFolder, local_path: str) -> str:
    """Translate ``local_path`` below ``folder`` to its server path."""
    depth = len(PurePath(os.path.normpath(folder.local_item)).parts)
    relative = PurePath(os.path.normpath(local_path)).parts[depth:]
    return "/".join([folder.server_item.rstrip("/"), *relative])


class SourceControlTransaction:
    """
    One checkout–edit–checkin unit against a version control provider.

    States: idle → open → committed → closed. ``close`` is valid from any
    state and is what the context manager runs on exit.
    """

    def __init__(
        self,
        provider: VersionControlProvider,
        temp_dir: Path,
        agent_name: str = "",
    ):
        self.provider = provider
        self.temp_dir = Path(temp_dir)
        self.agent_name = agent_name
        self.state = TransactionState.idle
        self.workspace_name: Optional[str] = None
        self.changeset: Optional[str] = None

        self._scratch_dir: Optional[Path] = None
        self._workspace_created = False
        self._folders: Optional[List[WorkingFolder]] = None
        self._mappings: List[WorkspaceMapping] = []
        self._pending: List[WorkspaceMapping] = []

    def __enter__(self) -> "SourceControlTransaction":
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.close()
        return False

    @property
    def pending(self) -> List[WorkspaceMapping]:
        return list(self._pending)

    @property
    def mappings(self) -> List[WorkspaceMapping]:
        return list(self._mappings)

    def _require(self, *states: TransactionState) -> None:
        if self.state not in states:
            raise TransactionError(
                f"Transaction is {self.state.value}, expected "
                + " or ".join(s.value for s in states)
            )

    def open(self) -> None:
        """Create the scratch directory and a uniquely named workspace."""
        self._require(TransactionState.idle)

        suffix = uuid.uuid4().hex[:8]
        parts = ["versionsync", self.agent_name, suffix]
        self.workspace_name = "-".join(p for p in parts if p)
        self._scratch_dir = Path(
            tempfile.mkdtemp(prefix=f"{self.workspace_name}-", dir=self.temp_dir)
        )
        self.state = TransactionState.open

        logger.debug(f"Creating temporary workspace {self.workspace_name}")
        try:
            self.provider.open_workspace(
                self.workspace_name, comment="Temporary workspace for version update"
            )
        except Exception:
            self.close()
            raise
        self._workspace_created = True

    def working_folders(self) -> List[WorkingFolder]:
        if self._folders is None:
            self._folders = self.provider.working_folders()
            if not self._folders:
                logger.warning(
                    "No build workspace mappings found; files cannot be checked in."
                )
        return self._folders

    def resolve_server_path(self, local_path: Path) -> str:
        """
        Map a local file to its server path using the build workspace.

        Raises:
            MappingResolutionError: If no working folder contains the file, or
                the closest one is cloaked
        """
        local = str(Path(local_path).resolve())
        folder = find_working_folder(self.working_folders(), local)
        if folder is None or folder.cloaked:
            raise MappingResolutionError(local)
        return server_path_for(folder, local)

    def check_out_and_edit(self, server_path: str, content: bytes) -> Path:
        """
        Map ``server_path`` to a private scratch file, fetch it, pend an edit
        and overwrite it with ``content``.

        Returns:
            The scratch file holding the new content
        """
        self._require(TransactionState.open)
        if self._scratch_dir is None:
            raise TransactionError("Transaction has no scratch directory")

        name = server_path.rstrip("/").rsplit("/", 1)[-1]
        local_path = self._scratch_dir / str(len(self._mappings)) / name
        local_path.parent.mkdir(parents=True, exist_ok=True)

        mapping = WorkspaceMapping(server_path, local_path)
        self.provider.map_folder(server_path, local_path)
        self._mappings.append(mapping)

        logger.debug(f"Checking out {server_path} to {local_path}")
        self.provider.fetch_and_lock(server_path, local_path)

        try:
            if local_path.exists():
                make_writable(local_path)
            local_path.write_bytes(content)
        except OSError as e:
            raise TransactionError(f"Failed to write {local_path}: {e}") from e

        self._pending.append(mapping)
        return local_path

    def commit(self, message: str) -> Optional[str]:
        """
        Check in all pending edits as one changeset.

        Nothing is submitted when no edit is pending.

        Returns:
            The changeset identifier reported by the provider
        """
        self._require(TransactionState.open)

        if not self._pending:
            logger.info("Nothing to check in.")
            self.state = TransactionState.committed
            return None

        logger.info(f"Checking in {len(self._pending)} file(s): {message}")
        self.changeset = self.provider.submit(list(self._pending), message)
        self._pending.clear()
        self.state = TransactionState.committed

        if self.changeset:
            logger.info(f"Checked in changeset {self.changeset}")
        return self.changeset

    def close(self) -> None:
        """
        Remove every mapping, the scratch files and the workspace.

        Teardown keeps going past individual failures, which are logged, so
        an error raised earlier in the transaction is not masked.
        """
        if self.state in (TransactionState.idle, TransactionState.closed):
            self.state = TransactionState.closed
            return

        for mapping in reversed(self._mappings):
            try:
                self.provider.unmap_folder(mapping.server_path, mapping.local_path)
            except Exception as e:
                logger.warning(
                    f"Could not remove mapping for {mapping.server_path}: {e}"
                )
            try:
                remove_file(mapping.local_path)
            except Exception as e:
                logger.warning(f"Could not delete {mapping.local_path}: {e}")
        self._mappings.clear()
        self._pending.clear()

        if self._workspace_created:
            try:
                self.provider.close_workspace()
                logger.debug(f"Deleted temporary workspace {self.workspace_name}")
            except Exception as e:
                logger.warning(
                    f"Could not delete workspace {self.workspace_name}: {e}"
                )
            self._workspace_created = False

        if self._scratch_dir is not None:
            try:
                remove_tree(self._scratch_dir)
            except Exception as e:
                logger.warning(f"Could not delete {self._scratch_dir}: {e}")

        self.state = TransactionState.closed
