"""
Candidate file discovery and path helpers.
"""

import os
from pathlib import Path
from typing import Union

from .errors import PathOutsideRepositoryError
from .types import HIDDEN_PREFIX, normalize_path

PathLike = Union[str, Path]


def candidate_files(root: PathLike) -> list[str]:
    """List files under root that are eligible for tagging.

    Walks top-down in sorted order. Entries whose name starts with '.' are
    skipped, and hidden directories are pruned with everything below them
    (this covers the .memc directory itself). Symlinked directories are not
    followed. Paths are relative to root and always use '/'.
    """
    root = Path(root)
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(HIDDEN_PREFIX))
        rel_dir = os.path.relpath(dirpath, root)
        for name in sorted(filenames):
            if name.startswith(HIDDEN_PREFIX):
                continue
            rel = name if rel_dir == os.curdir else os.path.join(rel_dir, name)
            files.append(normalize_path(rel))
    return files


def is_subpath(base: PathLike, path: PathLike) -> bool:
    """True if path resolves to base or somewhere below it."""
    base_resolved = Path(base).resolve()
    path_resolved = Path(path).resolve()
    return path_resolved == base_resolved or base_resolved in path_resolved.parents


def relative_to_root(root: PathLike, path: PathLike) -> str:
    """Path relative to the repository root, '/'-separated.

    Relative inputs are taken relative to the current directory, the way a
    shell user typed them. Only the parent directory is resolved; a symlink
    named by path is kept as the link, which is what candidate_files lists.

    Raises:
        PathOutsideRepositoryError: path is not below root
    """
    root_resolved = Path(root).resolve()
    absolute = Path(os.path.abspath(path))
    target = absolute.parent.resolve() / absolute.name
    if target == root_resolved or root_resolved not in target.parents:
        raise PathOutsideRepositoryError(f"{path} is not in this repository")
    return normalize_path(target.relative_to(root_resolved).as_posix())
