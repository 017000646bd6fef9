"""Team Foundation Version Control provider driving the ``tf`` command line."""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional

from versionsync.versioning.exceptions import VersionControlError

from .provider import VersionControlProvider, WorkingFolder, WorkspaceMapping

logger = logging.getLogger(__name__)

# " $/Project/Main: C:\build\1\s" or " (cloaked) $/Project/Main/Docs:"
_WORKFOLD_LINE = re.compile(r"^\s*(\(cloaked\)\s*)?(\$/[^:]*):\s*(.*?)\s*$")
_CHANGESET = re.compile(r"Changeset #(\d+) checked in")


def parse_workfold(output: str) -> List[WorkingFolder]:
    """Parse the working folder listing printed by ``tf workfold``."""
    folders = []
    for line in output.splitlines():
        match = _WORKFOLD_LINE.match(line)
        if not match:
            continue
        cloaked, server_item, local_item = match.groups()
        folders.append(WorkingFolder(server_item, local_item, cloaked=bool(cloaked)))
    return folders


class TfvcProvider(VersionControlProvider):
    """
    Runs ``tf`` commands against a project collection.

    Args:
        collection_url: Project collection endpoint
        build_workspace: Workspace the build agent fetched the sources into
        tf_executable: Name or path of the ``tf`` client
        access_token: Token passed with ``/loginType:OAuth``
        timeout: Timeout per command in seconds
    """

    def __init__(
        self,
        collection_url: str,
        build_workspace: str,
        tf_executable: str = "tf",
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.collection_url = collection_url
        self.build_workspace = build_workspace
        self.tf_executable = tf_executable
        self.access_token = access_token
        self.timeout = timeout
        self.workspace: Optional[str] = None

    def _login_args(self) -> List[str]:
        if not self.access_token:
            return []
        return ["/loginType:OAuth", f"/login:.,{self.access_token}"]

    def _run(self, operation: str, args: List[str], cwd: Optional[Path] = None) -> str:
        command = [self.tf_executable, *args, *self._login_args()]
        shown = " ".join(args)
        logger.debug(f"tf {shown}")

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                cwd=cwd,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise VersionControlError(
                operation, f"{self.tf_executable} not found"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise VersionControlError(
                operation, f"timed out after {self.timeout}s"
            ) from e

        if result.returncode != 0:
            message = (result.stderr or result.stdout).strip()
            raise VersionControlError(operation, message, result.returncode)
        return result.stdout

    def _require_workspace(self) -> str:
        if self.workspace is None:
            raise VersionControlError("tf", "no temporary workspace is open")
        return self.workspace

    def working_folders(self) -> List[WorkingFolder]:
        try:
            output = self._run(
                "workfold",
                [
                    "workfold",
                    f"/collection:{self.collection_url}",
                    f"/workspace:{self.build_workspace}",
                ],
            )
        except VersionControlError as e:
            # Missing or ambiguous build workspace: no file can be resolved.
            logger.warning(f"Build workspace {self.build_workspace} not found: {e}")
            return []
        return parse_workfold(output)

    def open_workspace(self, name: str, comment: str = "") -> None:
        args = [
            "workspace",
            "/new",
            name,
            f"/collection:{self.collection_url}",
            "/location:server",
            "/noprompt",
        ]
        if comment:
            args.append(f"/comment:{comment}")
        self._run("workspace /new", args)
        self.workspace = name

    def map_folder(self, server_path: str, local_path: Path) -> None:
        workspace = self._require_workspace()
        self._run(
            "workfold /map",
            [
                "workfold",
                "/map",
                server_path,
                str(local_path),
                f"/collection:{self.collection_url}",
                f"/workspace:{workspace}",
            ],
        )

    def fetch_and_lock(self, server_path: str, local_path: Path) -> None:
        self._require_workspace()
        cwd = Path(local_path).parent
        self._run("get", ["get", str(local_path), "/force", "/noprompt"], cwd=cwd)
        self._run(
            "checkout",
            ["checkout", str(local_path), "/lock:checkin", "/noprompt"],
            cwd=cwd,
        )

    def submit(self, mappings: List[WorkspaceMapping], comment: str) -> Optional[str]:
        self._require_workspace()
        if not mappings:
            return None
        items = [str(m.local_path) for m in mappings]
        output = self._run(
            "checkin",
            ["checkin", *items, f"/comment:{comment}", "/noprompt"],
            cwd=Path(mappings[0].local_path).parent,
        )
        match = _CHANGESET.search(output)
        return match.group(1) if match else None

    def unmap_folder(self, server_path: str, local_path: Path) -> None:
        workspace = self._require_workspace()
        self._run(
            "workfold /unmap",
            [
                "workfold",
                "/unmap",
                str(local_path),
                f"/collection:{self.collection_url}",
                f"/workspace:{workspace}",
            ],
        )

    def close_workspace(self) -> None:
        workspace = self._require_workspace()
        self._run(
            "workspace /delete",
            [
                "workspace",
                "/delete",
                workspace,
                f"/collection:{self.collection_url}",
                "/noprompt",
            ],
        )
        self.workspace = None
