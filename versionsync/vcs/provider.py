from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class WorkingFolder:
    """A folder mapping of the build workspace."""

    server_item: str
    local_item: str
    cloaked: bool = False


@dataclass(frozen=True)
class WorkspaceMapping:
    """A server path mapped to a private local path for one transaction."""

    server_path: str
    local_path: Path


class VersionControlProvider(metaclass=ABCMeta):
    """Interface for the version control backend used by a transaction."""

    @abstractmethod
    def working_folders(self) -> List[WorkingFolder]:
        """
        Folder mappings of the workspace the build checked the sources into.

        Returns:
        - The mappings, or an empty list when the build workspace cannot be
          determined (none or more than one candidate).
        """
        raise NotImplementedError("Method not implemented yet")

    @abstractmethod
    def open_workspace(self, name: str, comment: str = "") -> None:
        """Create the temporary workspace ``name``."""
        raise NotImplementedError("Method not implemented yet")

    @abstractmethod
    def map_folder(self, server_path: str, local_path: Path) -> None:
        """Map ``server_path`` to ``local_path`` in the temporary workspace."""
        raise NotImplementedError("Method not implemented yet")

    @abstractmethod
    def fetch_and_lock(self, server_path: str, local_path: Path) -> None:
        """Get the latest version of ``server_path`` and pend an edit on it."""
        raise NotImplementedError("Method not implemented yet")

    @abstractmethod
    def submit(self, mappings: List[WorkspaceMapping], comment: str) -> Optional[str]:
        """
        Check in the pending edits of ``mappings`` as one changeset.

        Returns:
        - The changeset identifier, if the backend reports one.
        """
        raise NotImplementedError("Method not implemented yet")

    @abstractmethod
    def unmap_folder(self, server_path: str, local_path: Path) -> None:
        """Remove a mapping created by ``map_folder``."""
        raise NotImplementedError("Method not implemented yet")

    @abstractmethod
    def close_workspace(self) -> None:
        """Delete the temporary workspace."""
        raise NotImplementedError("Method not implemented yet")
