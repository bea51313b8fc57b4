"""
Exceptions and error logging for memc.

Each operation raises its own exception; the CLI turns them into a one-line
message and a non-zero exit. Unexpected errors get their full stack trace
written to a log file while the user sees a clean message.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class MemcError(Exception):
    """Base class for all errors raised by memc."""


class CorruptStoreError(MemcError, ValueError):
    """A persisted store file contains a line that cannot be parsed."""

    def __init__(self, path: Path, line_number: int, line: str):
        self.path = Path(path)
        self.line_number = line_number
        self.line = line
        super().__init__(
            f"{self.path}:{line_number}: malformed record (expected 'path: tags'): {line!r}"
        )


class StoreIOError(MemcError):
    """Opening, reading or writing a store or scratch file failed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class ProcessError(MemcError):
    """An external process could not be started or failed."""

    def __init__(self, message: str, command: Optional[list[str]] = None,
                 returncode: Optional[int] = None):
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class EditorError(ProcessError):
    """The editor failed to start or exited abnormally. Fatal to a batch."""


class ViewerError(ProcessError):
    """The viewer failed. Recorded and reported, never fatal."""


class RepositoryNotFoundError(MemcError):
    """No .memc directory in the given directory or any parent."""


class RepositoryExistsError(MemcError):
    """init was asked to create a repository that already exists."""


class PathOutsideRepositoryError(MemcError, ValueError):
    """A path given on the command line is not inside the repository root."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting MEMC_REPO."""
    repo = os.environ.get("MEMC_REPO")
    if repo:
        return Path(repo) / ".memc" / "memc-errors.log"
    return Path.home() / ".memc" / "memc-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Can't write error log, don't crash over it
    return log_path
