"""
Core API for memc.

- init_repository(): create the .memc directory
- Repository.status(): what is tagged, ignored, left to do
- Repository.annotate(): tag untagged files interactively
- Repository.find(): typo-tolerant search over tags
- Repository.ignore(): exclude files from annotation and search
"""

import logging
import shutil
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .config import (
    REPO_DIRNAME,
    RepoConfig,
    find_repository,
    load_config,
    save_config,
)
from .difference import status as compute_status, untagged as compute_untagged
from .errors import (
    PathOutsideRepositoryError,
    RepositoryExistsError,
    RepositoryNotFoundError,
    StoreIOError,
)
from .paths import candidate_files, relative_to_root
from .search import search
from .session import AnnotationSession, split_command
from .stores import IgnoreStore, TagStore
from .types import BatchResult, IgnoreReport, SearchResult, StatusReport

logger = logging.getLogger(__name__)


def init_repository(root: Optional[Path] = None) -> RepoConfig:
    """
    Create a new repository at root (default: current directory).

    Creates .memc with empty tags and ignore files and a default config.
    If anything fails after the directory was made, it is removed again.

    Raises:
        RepositoryExistsError: .memc already exists
        StoreIOError: the directory or its files cannot be created
    """
    config = RepoConfig(root=Path(root if root is not None else Path.cwd()).resolve())
    try:
        config.repo_dir.mkdir()
    except FileExistsError as e:
        raise RepositoryExistsError(f"Already initialized: {config.repo_dir}") from e
    except OSError as e:
        raise StoreIOError(f"Error creating new directory: {e}", config.repo_dir) from e

    try:
        config.tags_path.write_text("", encoding="utf-8")
        config.ignore_path.write_text("", encoding="utf-8")
        save_config(config)
    except OSError as e:
        shutil.rmtree(config.repo_dir, ignore_errors=True)
        raise StoreIOError(f"Error creating repository files: {e}", config.repo_dir) from e

    logger.info("Initialized repository at %s", config.root)
    return config


class Repository:
    """
    An initialized memc repository.

    Stores are loaded lazily, once per instance, and the instance is the
    only writer for its lifetime.

    Example:
        with Repository() as repo:
            for result in repo.find(["cat", "funny"]):
                print(result.path, result.score)
    """

    def __init__(self, root: Optional[str | Path] = None) -> None:
        """
        Open an existing repository.

        Args:
            root: Repository root. If not given, the current directory and
                its parents are searched for a .memc directory.

        Raises:
            RepositoryNotFoundError: no repository at or above root
        """
        if root is not None:
            resolved = Path(root).resolve()
            found = resolved if (resolved / REPO_DIRNAME).is_dir() else None
        else:
            found = find_repository()
        if found is None:
            where = root if root is not None else Path.cwd()
            raise RepositoryNotFoundError(f"Not initialized: {where}. Run `memc init`.")

        self._config = load_config(found)
        self._tags: Optional[TagStore] = None
        self._ignore: Optional[IgnoreStore] = None

        from .logging_config import configure_ops_log
        self._ops_log_handler = configure_ops_log(self._config.repo_dir)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def root(self) -> Path:
        return self._config.root

    @property
    def config(self) -> RepoConfig:
        return self._config

    @property
    def tags(self) -> TagStore:
        if self._tags is None:
            self._tags = TagStore.load(self._config.tags_path)
        return self._tags

    @property
    def ignored(self) -> IgnoreStore:
        if self._ignore is None:
            self._ignore = IgnoreStore.load(self._config.ignore_path)
        return self._ignore

    def candidates(self) -> list[str]:
        return candidate_files(self.root)

    def untagged(self) -> list[str]:
        return compute_untagged(self.candidates(), self.tags, self.ignored)

    def status(self) -> StatusReport:
        report = compute_status(self.candidates(), self.tags, self.ignored)
        if report.overlap_count:
            logger.info("%d paths are both tagged and ignored", report.overlap_count)
        return report

    def session(self, **kwargs) -> AnnotationSession:
        """Annotation session using the configured editor and viewer."""
        return AnnotationSession(
            self.tags,
            self.root,
            self._config.scratch_path,
            editor=split_command(self._config.editor_command()),
            viewer=split_command(self._config.viewer_command()),
            **kwargs,
        )

    def annotate(
        self,
        session_factory: Optional[Callable[["Repository"], AnnotationSession]] = None,
    ) -> BatchResult:
        """Run one annotation batch over all untagged files."""
        pending = self.untagged()
        logger.debug("%d files to annotate", len(pending))
        session = session_factory(self) if session_factory else self.session()
        return session.run(pending)

    def find(self, terms: Sequence[str], limit: Optional[int] = None) -> list[SearchResult]:
        """Best matches for the query terms; ignored files are left out."""
        return search(
            terms,
            self.tags,
            limit=limit if limit is not None else self._config.find_limit,
            ignore=self.ignored,
        )

    def ignore(self, paths: Iterable[str | Path]) -> IgnoreReport:
        """
        Add paths to the ignore file.

        Paths are taken relative to the current directory and must lie
        inside the repository. Paths outside it are rejected, paths already
        ignored are skipped, and tagged paths are ignored anyway (which
        removes them from search results) but reported.
        """
        report = IgnoreReport()
        for raw in paths:
            try:
                rel = relative_to_root(self.root, raw)
            except PathOutsideRepositoryError as e:
                logger.info("Not ignoring: %s", e)
                report.rejected.append(str(raw))
                continue

            if rel in self.ignored:
                report.already_ignored.append(rel)
                continue
            if rel in self.tags:
                report.tagged.append(rel)
            self.ignored.append(rel)
            report.added.append(rel)
        return report

    def compact(self) -> int:
        """Drop stale tag records. Returns how many were dropped."""
        return self.tags.compact()

    def close(self) -> None:
        """Detach the operations log."""
        if self._ops_log_handler is not None:
            logging.getLogger("memc").removeHandler(self._ops_log_handler)
            self._ops_log_handler.close()
            self._ops_log_handler = None
