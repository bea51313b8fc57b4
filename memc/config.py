"""
Repository layout and configuration.

A repository is a directory tree with a ``.memc`` directory at its root.
The configuration is stored as a TOML file inside it and says which editor
and viewer to run and how many search results to show. Every key is
optional.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomli_w

from .types import utc_now

REPO_DIRNAME = ".memc"
TAGS_FILENAME = "tags"
IGNORE_FILENAME = "ignore"
SCRATCH_FILENAME = "tmp"
CONFIG_FILENAME = "memc.toml"
CONFIG_VERSION = 1

DEFAULT_EDITOR = "vi"
DEFAULT_VIEWER = "feh"
DEFAULT_FIND_LIMIT = 10


@dataclass
class RepoConfig:
    """Configuration of one repository."""
    root: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=utc_now)

    # Empty means: fall back to the environment, then the default
    editor: str = ""
    viewer: str = ""
    find_limit: int = DEFAULT_FIND_LIMIT

    @property
    def repo_dir(self) -> Path:
        return self.root / REPO_DIRNAME

    @property
    def config_path(self) -> Path:
        return self.repo_dir / CONFIG_FILENAME

    @property
    def tags_path(self) -> Path:
        return self.repo_dir / TAGS_FILENAME

    @property
    def ignore_path(self) -> Path:
        return self.repo_dir / IGNORE_FILENAME

    @property
    def scratch_path(self) -> Path:
        return self.repo_dir / SCRATCH_FILENAME

    def editor_command(self) -> str:
        """Configured editor, then $EDITOR, then vi."""
        return self.editor or os.environ.get("EDITOR") or DEFAULT_EDITOR

    def viewer_command(self) -> str:
        """Configured viewer, then $MEMC_VIEWER, then feh."""
        return self.viewer or os.environ.get("MEMC_VIEWER") or DEFAULT_VIEWER


def find_repository(start: Optional[Path] = None) -> Optional[Path]:
    """
    Find the repository root containing start.

    Checks start and then each parent for a .memc directory.

    Returns:
        The repository root, or None if there is none
    """
    current = Path(start if start is not None else Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / REPO_DIRNAME).is_dir():
            return candidate
    return None


def load_config(root: Path) -> RepoConfig:
    """
    Load configuration for the repository at root.

    A missing config file gives the defaults.

    Raises:
        ValueError: If config is invalid or from a newer version
    """
    root = Path(root)
    config = RepoConfig(root=root)
    if not config.config_path.exists():
        return config

    with open(config.config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config {config.config_path}: {e}") from e

    repo = data.get("repository", {})
    version = repo.get("version", CONFIG_VERSION)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    annotate = data.get("annotate", {})
    find = data.get("find", {})
    limit = find.get("limit", DEFAULT_FIND_LIMIT)
    if not isinstance(limit, int) or limit <= 0:
        raise ValueError(f"find.limit must be a positive integer, got {limit!r}")

    config.version = version
    config.created = repo.get("created", "")
    config.editor = str(annotate.get("editor", ""))
    config.viewer = str(annotate.get("viewer", ""))
    config.find_limit = limit
    return config


def save_config(config: RepoConfig) -> None:
    """Write configuration into the repository directory."""
    config.repo_dir.mkdir(parents=True, exist_ok=True)

    data = {
        "repository": {
            "version": config.version,
            "created": config.created,
        },
        "annotate": {
            "editor": config.editor,
            "viewer": config.viewer,
        },
        "find": {
            "limit": config.find_limit,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)
