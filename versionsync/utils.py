"""General utils functions"""

import fnmatch
import os
import shutil
import stat
import sys
from pathlib import Path
from typing import Iterator, Sequence


def walk_files(root: Path, patterns: Sequence[str]) -> Iterator[Path]:
    """Yield files under ``root`` whose name matches one of ``patterns``.

    Traversal order is stable: directories and files are visited sorted by
    name, a directory's own files before its subdirectories. Names are
    compared case-insensitively, as on the Windows hosts these files live on.

    Args:
        root: Directory to walk
        patterns: fnmatch patterns such as "AssemblyInfo.cs" or "*.rc"
    """
    lowered = [p.lower() for p in patterns]
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            name = filename.lower()
            if any(fnmatch.fnmatchcase(name, p) for p in lowered):
                yield Path(dirpath) / filename


def make_writable(path: Path) -> None:
    """Clear the read-only bit version control clients set on files."""
    mode = os.stat(path).st_mode
    if not mode & stat.S_IWRITE:
        os.chmod(path, mode | stat.S_IWRITE)


def remove_file(path: Path) -> None:
    """Delete ``path`` even if it is read-only. Missing files are ignored."""
    path = Path(path)
    if not path.exists():
        return
    make_writable(path)
    path.unlink()


def _on_rm_error(func, path, _exc):
    # read-only entries left behind by the version control client
    os.chmod(path, stat.S_IWRITE)
    func(path)


def remove_tree(path: Path) -> None:
    """Delete a directory tree, clearing read-only bits as needed."""
    if not Path(path).exists():
        return
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_on_rm_error)
    else:
        shutil.rmtree(path, onerror=_on_rm_error)
