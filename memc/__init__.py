"""
memc - tag your media files, find them again

A personal tagging tool for a directory of images (or anything else).
Files are annotated one by one in a viewer + editor session and later
found by approximate, typo-tolerant search over their tags.

Quick Start:
    from memc import Repository

    with Repository() as repo:          # finds .memc/ upward from cwd
        print(repo.status())
        for result in repo.find(["cat", "funy"]):
            print(result.path, result.score)

CLI Usage:
    memc init
    memc annotate
    memc status
    memc ignore notes.txt
    memc find cat funny

Repository Layout:
    .memc/tags       - "<path>: <tag> <tag> ..." per line, append-only
    .memc/ignore     - one ignored path per line
    .memc/memc.toml  - editor, viewer, result limit

Environment Variables:
    MEMC_REPO     - Repository root (skips upward search)
    MEMC_VIEWER   - Viewer command (default: feh)
    EDITOR        - Editor command (default: vi)
    MEMC_VERBOSE  - Set to 1 for debug logging
"""

from .api import Repository, init_repository
from .errors import (
    CorruptStoreError,
    EditorError,
    MemcError,
    ProcessError,
    StoreIOError,
    ViewerError,
)
from .search import search
from .stores import IgnoreStore, TagStore
from .types import BatchResult, SearchResult, StatusReport

__version__ = "0.1.0"
__all__ = [
    "Repository",
    "init_repository",
    "TagStore",
    "IgnoreStore",
    "search",
    "SearchResult",
    "StatusReport",
    "BatchResult",
    "MemcError",
    "CorruptStoreError",
    "StoreIOError",
    "ProcessError",
    "EditorError",
    "ViewerError",
]
