"""
Shared pytest fixtures for memc tests.

Provides throwaway repositories and scripted stand-ins for the viewer and
editor so annotation can be tested without a terminal.
"""

import logging
from pathlib import Path

import pytest

from memc.api import Repository, init_repository
from memc.errors import ViewerError


class FakeViewer:
    """Viewer handle that never starts a process."""

    def __init__(self, path: str, error: ViewerError | None = None):
        self.path = path
        self.error = error
        self.terminated = False
        self.polls = 0

    def poll_error(self):
        self.polls += 1
        error, self.error = self.error, None
        return error

    def terminate(self) -> None:
        self.terminated = True


class FakeViewerLauncher:
    """Records every viewer launch. Paths listed in ``failing`` report an error."""

    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.launched: list[FakeViewer] = []

    def __call__(self, command: list[str], path: str) -> FakeViewer:
        error = None
        if Path(path).name in self.failing:
            error = ViewerError(f"cannot open {path}", [*command, path], 1)
        viewer = FakeViewer(path, error)
        self.launched.append(viewer)
        return viewer


class ScriptedEditor:
    """
    Editor stand-in that writes the next prepared answer into the buffer.

    Each answer is written as-is, so "" simulates saving an empty buffer.
    """

    def __init__(self, answers: list[str]):
        self.answers = list(answers)
        self.calls: list[Path] = []
        self.seen_empty_buffer: list[bool] = []

    def __call__(self, command: list[str], path: Path) -> None:
        self.calls.append(path)
        self.seen_empty_buffer.append(path.read_text(encoding="utf-8") == "")
        path.write_text(self.answers.pop(0), encoding="utf-8")


@pytest.fixture
def fake_viewer():
    return FakeViewerLauncher()


@pytest.fixture
def make_files():
    """Create empty files (and parent directories) below a root."""
    def _make(root: Path, *names: str) -> list[Path]:
        created = []
        for name in names:
            p = root / name
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(b"")
            created.append(p)
        return created
    return _make


@pytest.fixture
def repo_root(tmp_path, monkeypatch):
    """An initialized, empty repository; cwd is its root."""
    monkeypatch.delenv("MEMC_REPO", raising=False)
    monkeypatch.delenv("MEMC_VIEWER", raising=False)
    monkeypatch.chdir(tmp_path)
    init_repository(tmp_path)
    return tmp_path


@pytest.fixture
def repo(repo_root):
    """An open Repository on repo_root, closed after the test."""
    r = Repository(repo_root)
    yield r
    r.close()


@pytest.fixture(autouse=True)
def _reset_cli_state():
    """The CLI keeps the --repo override in a module global."""
    import memc.cli
    memc.cli._repo_override = None
    yield
    memc.cli._repo_override = None
    memc_logger = logging.getLogger("memc")
    for handler in list(memc_logger.handlers):
        memc_logger.removeHandler(handler)
        handler.close()
