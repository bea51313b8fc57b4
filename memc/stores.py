"""
Tag and ignore stores.

Both stores are plain UTF-8 text files in the repository directory, read
completely on load and only ever appended to afterwards:

- tags:   one ``<path>: <tag> <tag> ...`` record per line
- ignore: one path per line

The files are the source of truth between invocations; the in-memory
mapping belongs to a single process. Appends are a single buffered write
followed by a flush. A crash mid-write can leave a short line, nothing
stronger is promised.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .errors import CorruptStoreError, StoreIOError
from .types import TAG_SEPARATOR, validate_record_path, validate_tag, validate_tagged_path

logger = logging.getLogger(__name__)


def _read_lines(path: Path, label: str) -> list[str]:
    # Records end at "\n" only. File names may hold other line-break
    # characters that str.splitlines() would split on.
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return [line.removesuffix("\r") for line in f.read().split("\n")]
    except UnicodeDecodeError as e:
        raise StoreIOError(f"{label} file is not valid UTF-8: {path}", path) from e
    except OSError as e:
        raise StoreIOError(f"Error opening {label} file for reading: {e}", path) from e


def _append_line(path: Path, line: str, label: str) -> None:
    try:
        with open(path, "a", encoding="utf-8", newline="") as f:
            f.write(line)
            f.flush()
    except OSError as e:
        raise StoreIOError(f"Error writing to {label} file: {e}", path) from e


class TagStore:
    """
    Mapping from file path to its ordered list of tags.

    Persistence is append-only: tagging a path again adds a new record and
    the newest record wins when the file is loaded. ``compact()`` rewrites
    the file without the stale records.
    """

    def __init__(self, path: Path, entries: Optional[dict[str, list[str]]] = None):
        self._path = Path(path)
        self._entries: dict[str, list[str]] = dict(entries or {})
        self._record_count = len(self._entries)

    @classmethod
    def load(cls, path: Path) -> "TagStore":
        """
        Read a tags file.

        Each line is split at its first colon into path and tags.

        Raises:
            CorruptStoreError: a non-blank line has no colon
            StoreIOError: the file cannot be read
        """
        path = Path(path)
        store = cls(path)
        records = 0
        for line_number, line in enumerate(_read_lines(path, "tag"), start=1):
            if not line.strip():
                continue
            file_path, sep, tag_text = line.partition(":")
            if not sep:
                raise CorruptStoreError(path, line_number, line)
            store._entries[file_path] = tag_text.split()
            records += 1
        store._record_count = records
        logger.debug("Loaded %d tagged paths (%d records) from %s",
                     len(store._entries), records, path)
        return store

    @property
    def path(self) -> Path:
        return self._path

    @property
    def stale_records(self) -> int:
        """Records on disk that a later record for the same path overrides."""
        return self._record_count - len(self._entries)

    def contains(self, path: str) -> bool:
        return path in self._entries

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def tags_for(self, path: str) -> list[str]:
        """Tags of a path, or an empty list if it is not tagged."""
        return list(self._entries.get(path, []))

    def items(self) -> Iterator[tuple[str, list[str]]]:
        """(path, tags) pairs in load order."""
        for path, tags in self._entries.items():
            yield path, list(tags)

    def as_dict(self) -> dict[str, list[str]]:
        return {path: list(tags) for path, tags in self._entries.items()}

    def append(self, path: str, tags: Iterable[str]) -> None:
        """
        Add a record for path and flush it to disk.

        Raises:
            ValueError: empty tag list, or a path/tag the format cannot hold
            StoreIOError: the file cannot be opened or written
        """
        tags = list(tags)
        validate_tagged_path(path)
        if not tags:
            raise ValueError(f"No tags given for {path}")
        for tag in tags:
            validate_tag(tag)

        _append_line(self._path, f"{path}{TAG_SEPARATOR}{' '.join(tags)}\n", "tag")
        self._entries[path] = tags
        self._record_count += 1
        logger.info("Tagged %s: %s", path, " ".join(tags))

    def compact(self) -> int:
        """
        Rewrite the tags file with one record per path.

        The mapping itself does not change. The new file replaces the old
        one atomically.

        Returns:
            Number of stale records dropped
        """
        dropped = self.stale_records
        fd, tmp_name = tempfile.mkstemp(prefix=".tags-", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                for path, tags in self._entries.items():
                    f.write(f"{path}{TAG_SEPARATOR}{' '.join(tags)}\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise StoreIOError(f"Error compacting tag file: {e}", self._path) from e
        self._record_count = len(self._entries)
        logger.info("Compacted %s: dropped %d stale records", self._path, dropped)
        return dropped


class IgnoreStore:
    """Set of paths excluded from annotation and search."""

    def __init__(self, path: Path, entries: Optional[Iterable[str]] = None):
        self._path = Path(path)
        self._entries: set[str] = set(entries or ())

    @classmethod
    def load(cls, path: Path) -> "IgnoreStore":
        """
        Read an ignore file, one path per line.

        Surrounding whitespace is trimmed and blank lines are skipped, so
        the empty string is never a member.
        """
        path = Path(path)
        store = cls(path)
        for line in _read_lines(path, "ignore"):
            entry = line.strip()
            if entry:
                store._entries.add(entry)
        logger.debug("Loaded %d ignored paths from %s", len(store._entries), path)
        return store

    @property
    def path(self) -> Path:
        return self._path

    def contains(self, path: str) -> bool:
        return path in self._entries

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def append(self, path: str) -> None:
        """
        Add a path and flush it to disk.

        Raises:
            ValueError: empty path or a path with a newline
            StoreIOError: the file cannot be opened or written
        """
        path = path.strip()
        validate_record_path(path)
        _append_line(self._path, f"{path}\n", "ignore")
        self._entries.add(path)
        logger.info("Ignored %s", path)
