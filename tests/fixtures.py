import os
import stat
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from versionsync.vcs.provider import (
    VersionControlProvider,
    WorkingFolder,
    WorkspaceMapping,
)
from versionsync.versioning.exceptions import VersionControlError

SHARED_ASSEMBLY_INFO = """\
using System.Reflection;

[assembly: AssemblyCompany("Contoso")]
[assembly: AssemblyVersion("1.2.3.4")]
[assembly: AssemblyFileVersion("1.2.3.4")]
[assembly: AssemblyInformationalVersion("1.2.3.4")]
"""

ASSEMBLY_INFO = """\
using System.Reflection;

[assembly: AssemblyTitle("Voice4Net.Core")]
[assembly: AssemblyVersion("1.0.0.0")]
[assembly: AssemblyFileVersion("1.0.0.0")]
"""

RESOURCE_SCRIPT = """\
VS_VERSION_INFO VERSIONINFO
 FILEVERSION 1,2,3,4
 PRODUCTVERSION 1,2,3,4
BEGIN
    BLOCK "StringFileInfo"
    BEGIN
        BLOCK "040904b0"
        BEGIN
            VALUE "CompanyName", "Contoso"
            VALUE "FileVersion", "1.2.3.4"
            VALUE "ProductVersion", "1.2.3.4"
        END
    END
END
"""


def write_tree(root: Path, files: Dict[str, str]) -> Dict[str, Path]:
    """Write ``files`` (relative path -> content) under ``root``."""
    paths = {}
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        paths[relative] = path
    return paths


class InMemoryProvider(VersionControlProvider):
    """Version control provider keeping the server state in a dict.

    Args:
        files: server path -> content
        folders: working folders of the build workspace
        fail_on: operations that raise VersionControlError
    """

    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        folders: Optional[Iterable[WorkingFolder]] = None,
        fail_on: Iterable[str] = (),
    ):
        self.server: Dict[str, bytes] = dict(files or {})
        self.folders: List[WorkingFolder] = list(folders or [])
        self.fail_on = set(fail_on)
        self.calls: List[Tuple[str, tuple]] = []
        self.workspace: Optional[str] = None
        self.mapped: Dict[str, Path] = {}
        self.deleted_workspaces: List[str] = []
        self.changesets: List[Tuple[str, List[str]]] = []

    def _call(self, operation: str, *args) -> None:
        self.calls.append((operation, args))
        if operation in self.fail_on:
            raise VersionControlError(operation, "simulated failure")

    def operations(self) -> List[str]:
        return [operation for operation, _ in self.calls]

    def working_folders(self) -> List[WorkingFolder]:
        self.calls.append(("working_folders", ()))
        return list(self.folders)

    def open_workspace(self, name: str, comment: str = "") -> None:
        self._call("open_workspace", name)
        self.workspace = name

    def map_folder(self, server_path: str, local_path: Path) -> None:
        self._call("map_folder", server_path, local_path)
        self.mapped[server_path] = Path(local_path)

    def fetch_and_lock(self, server_path: str, local_path: Path) -> None:
        self._call("fetch_and_lock", server_path, local_path)
        if server_path not in self.server:
            raise VersionControlError("get", f"{server_path} not found")
        Path(local_path).write_bytes(self.server[server_path])
        # tf leaves fetched files read-only
        os.chmod(local_path, stat.S_IREAD)

    def submit(self, mappings: List[WorkspaceMapping], comment: str) -> Optional[str]:
        self._call("submit", comment)
        for mapping in mappings:
            self.server[mapping.server_path] = Path(mapping.local_path).read_bytes()
        self.changesets.append((comment, [m.server_path for m in mappings]))
        return str(100 + len(self.changesets))

    def unmap_folder(self, server_path: str, local_path: Path) -> None:
        self._call("unmap_folder", server_path, local_path)
        self.mapped.pop(server_path, None)

    def close_workspace(self) -> None:
        self._call("close_workspace")
        if self.workspace is not None:
            self.deleted_workspaces.append(self.workspace)
        self.workspace = None
