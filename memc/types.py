"""
Data types for memc.
"""

import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone


# Separator written between a path and its tags in the tags file
TAG_SEPARATOR = ": "

# Prefix marking hidden entries, which are never candidates
HIDDEN_PREFIX = "."

_TOKEN_BLOCKED_RE = re.compile(r'[\s:]')


def utc_now() -> str:
    """Current UTC timestamp in canonical format: YYYY-MM-DDTHH:MM:SS."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def normalize_path(path: str) -> str:
    """Use '/' as the separator regardless of platform.

    Only the platform's own separators are rewritten, so a backslash in a
    POSIX file name stays as it is.
    """
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    if os.altsep and os.altsep != "/":
        path = path.replace(os.altsep, "/")
    return path


def validate_tag(tag: str) -> None:
    """A tag is a non-empty token with no whitespace and no colon."""
    if not tag:
        raise ValueError("Tag must not be empty")
    if _TOKEN_BLOCKED_RE.search(tag):
        raise ValueError(f"Tag contains whitespace or ':': {tag!r}")


def validate_record_path(path: str) -> None:
    """A stored path must survive the line-oriented format."""
    if not path:
        raise ValueError("Path must not be empty")
    if "\n" in path or "\r" in path:
        raise ValueError(f"Path contains a newline: {path!r}")


def validate_tagged_path(path: str) -> None:
    """A tagged path must also be free of ':', which ends the path in a record."""
    validate_record_path(path)
    if ":" in path:
        raise ValueError(f"Path contains ':' and cannot be stored in the tags file: {path!r}")


@dataclass(frozen=True)
class SearchResult:
    """A tagged file and its cumulative distance to a query (lower is better)."""
    path: str
    score: int


@dataclass
class StatusReport:
    """
    Repository status counts.

    ``overlap_count`` counts paths that are both tagged and ignored. That
    state is inconsistent and only reported, never corrected.
    """
    tagged_count: int
    ignored_count: int
    untagged_count: int
    overlap_count: int
    total: int = 0
    untagged: list[str] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return self.overlap_count == 0


BATCH_COMPLETED = "completed"
BATCH_STOPPED = "stopped"


@dataclass
class BatchResult:
    """Outcome of one annotation batch."""
    state: str
    committed: list[str] = field(default_factory=list)
    viewer_errors: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def stopped(self) -> bool:
        """True if the user ended the batch with an empty tag list."""
        return self.state == BATCH_STOPPED


@dataclass
class IgnoreReport:
    """What happened to each path handed to the ignore command."""
    added: list[str] = field(default_factory=list)
    already_ignored: list[str] = field(default_factory=list)
    tagged: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
