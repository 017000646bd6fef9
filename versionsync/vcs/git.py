"""
Git provider.

The temporary workspace is a detached worktree of the build repository,
created at the tip of the target branch. Edits are copied into it, committed
as one commit and pushed to the branch. Removing the worktree discards
anything that was not pushed.

Server paths are repository-relative POSIX paths with a leading ``/``.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.remote import PushInfo

from versionsync.versioning.exceptions import ConfigurationError, VersionControlError

from .provider import VersionControlProvider, WorkingFolder, WorkspaceMapping

logger = logging.getLogger(__name__)


class GitProvider(VersionControlProvider):
    """
    Commits version updates to a git branch through a temporary worktree.

    Args:
        repo_path: Any path inside the build's working copy
        branch: Branch to commit to (defaults to the checked out branch)
        remote: Remote to fetch from and push to; skipped if the repository
            has no such remote
        push: Push the commit after creating it
        temp_dir: Parent directory of the worktree
    """

    def __init__(
        self,
        repo_path: Path,
        branch: Optional[str] = None,
        remote: str = "origin",
        push: bool = True,
        temp_dir: Optional[Path] = None,
    ):
        try:
            self.repo = Repo(repo_path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise ConfigurationError(
                "source directory", f"{repo_path} is not a git working copy"
            ) from e

        if branch is None:
            if self.repo.head.is_detached:
                raise ConfigurationError(
                    "branch", "HEAD is detached, a branch name is required"
                )
            branch = self.repo.active_branch.name
        self.branch = branch
        self.remote_name = remote
        self.push = push
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())

        self.worktree_path: Optional[Path] = None
        self._worktree: Optional[Repo] = None
        self._mappings: Dict[str, Path] = {}
        self._base: Optional[str] = None

    @property
    def _remote(self):
        for remote in self.repo.remotes:
            if remote.name == self.remote_name:
                return remote
        return None

    def _require_worktree(self) -> Repo:
        if self._worktree is None:
            raise VersionControlError("git", "no temporary worktree is open")
        return self._worktree

    def _worktree_file(self, server_path: str) -> Path:
        if self.worktree_path is None:
            raise VersionControlError("git", "no temporary worktree is open")
        return self.worktree_path / server_path.lstrip("/")

    def working_folders(self) -> List[WorkingFolder]:
        if self.repo.working_tree_dir is None:
            logger.warning("Bare repository has no working folder.")
            return []
        return [WorkingFolder("/", str(self.repo.working_tree_dir))]

    def open_workspace(self, name: str, comment: str = "") -> None:
        remote = self._remote
        try:
            if remote is not None and self.push:
                remote.fetch(self.branch)
                base = f"{remote.name}/{self.branch}"
            else:
                base = self.branch
            path = Path(tempfile.mkdtemp(prefix=f"{name}-", dir=self.temp_dir))
            # git refuses to add a worktree into an existing directory
            path.rmdir()
            self.repo.git.worktree("add", "--detach", str(path), base)
        except GitCommandError as e:
            raise VersionControlError("worktree add", str(e), e.status) from e

        self.worktree_path = path
        self._worktree = Repo(path)
        self._base = self._worktree.head.commit.hexsha
        logger.debug(f"Created worktree {path} at {base}")

    def map_folder(self, server_path: str, local_path: Path) -> None:
        self._require_worktree()
        self._mappings[server_path] = Path(local_path)

    def fetch_and_lock(self, server_path: str, local_path: Path) -> None:
        self._require_worktree()
        source = self._worktree_file(server_path)
        if not source.is_file():
            raise VersionControlError(
                "fetch", f"{server_path} does not exist on {self.branch}"
            )
        shutil.copyfile(source, local_path)

    def submit(self, mappings: List[WorkspaceMapping], comment: str) -> Optional[str]:
        worktree = self._require_worktree()
        items = []
        for mapping in mappings:
            target = self._worktree_file(mapping.server_path)
            shutil.copyfile(mapping.local_path, target)
            items.append(mapping.server_path.lstrip("/"))

        try:
            worktree.git.add("--", *items)
            if not worktree.is_dirty(index=True, working_tree=False):
                logger.info("Version files are unchanged on the branch.")
                return None
            worktree.git.commit("-m", comment)
            commit = worktree.head.commit

            remote = self._remote
            if remote is not None and self.push:
                # runs in the main repository, which shares objects with the worktree
                results = remote.push(
                    refspec=f"{commit.hexsha}:refs/heads/{self.branch}"
                )
                for info in results:
                    if info.flags & (PushInfo.ERROR | PushInfo.REJECTED):
                        raise VersionControlError(
                            "push", info.summary.strip() or "rejected"
                        )
            else:
                # compare-and-swap against the commit the worktree started from
                self.repo.git.update_ref(
                    f"refs/heads/{self.branch}", commit.hexsha, self._base
                )
        except GitCommandError as e:
            raise VersionControlError("commit", str(e), e.status) from e

        return commit.hexsha

    def unmap_folder(self, server_path: str, local_path: Path) -> None:
        self._mappings.pop(server_path, None)

    def close_workspace(self) -> None:
        if self.worktree_path is None:
            return
        path = self.worktree_path
        if self._worktree is not None:
            self._worktree.close()
        try:
            self.repo.git.worktree("remove", "--force", str(path))
        except GitCommandError as e:
            raise VersionControlError("worktree remove", str(e), e.status) from e
        finally:
            self.worktree_path = None
            self._worktree = None
