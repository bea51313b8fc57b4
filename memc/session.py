"""
Interactive annotation of untagged files.

For every untagged file the session opens a viewer in the background and an
editor in the foreground on a scratch buffer. Whatever the user leaves in
the buffer becomes the file's tags. Leaving it empty ends the whole batch.

Per file:

    viewer (background) ----------------------------- terminate
    clear scratch -> editor (blocks) -> read scratch -> commit | stop

The viewer is fire-and-forget. Its outcome is delivered through a one-shot
future that is only looked at when the editor returns, and a viewer failure
never interrupts annotation. The editor is the opposite: if it cannot start
or exits non-zero the batch is aborted.
"""

import logging
import shlex
import subprocess
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Iterable, Optional

from .errors import EditorError, StoreIOError, ViewerError
from .stores import TagStore
from .types import BATCH_COMPLETED, BATCH_STOPPED, BatchResult, validate_tagged_path

logger = logging.getLogger(__name__)


def split_command(command: str) -> list[str]:
    """Split a configured command line ("code -w") into argv."""
    argv = shlex.split(command)
    if not argv:
        raise ValueError("Empty command")
    return argv


def tokenize(text: str) -> list[str]:
    """Turn editor output into tags.

    Whitespace separates tags. A colon would break the tags file format,
    so it separates tags too.
    """
    return text.replace(":", " ").split()


class ViewerHandle:
    """
    A viewer process running in the background.

    ``poll_error()`` hands out the outcome at most once and never blocks.
    A viewer stopped through ``terminate()`` does not count as failed.
    """

    def __init__(self, argv: list[str], process: Optional[subprocess.Popen] = None,
                 outcome: Optional["Future[Optional[ViewerError]]"] = None):
        self.argv = argv
        self._process = process
        self._outcome: "Future[Optional[ViewerError]]" = outcome if outcome is not None else Future()
        self._terminated = False
        self._consumed = False

    @classmethod
    def launch(cls, command: list[str], path: str) -> "ViewerHandle":
        """Start the viewer on path without waiting for it."""
        argv = [*command, path]
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            handle = cls(argv)
            handle._outcome.set_result(ViewerError(f"Error starting viewer: {e}", argv))
            logger.debug("Viewer failed to start: %s", e)
            return handle

        handle = cls(argv, process)
        threading.Thread(target=handle._wait, daemon=True).start()
        logger.debug("Viewer started: pid=%s argv=%s", process.pid, argv)
        return handle

    def _wait(self) -> None:
        _, stderr = self._process.communicate()
        returncode = self._process.returncode
        if returncode == 0 or self._terminated:
            self._outcome.set_result(None)
            return
        detail = (stderr or b"").decode("utf-8", errors="replace").strip()
        message = f"Viewer exited with status {returncode}"
        if detail:
            message += f": {detail.splitlines()[-1]}"
        self._outcome.set_result(ViewerError(message, self.argv, returncode))

    def poll_error(self) -> Optional[ViewerError]:
        """The viewer's error if it has already failed, else None."""
        if self._consumed or not self._outcome.done():
            return None
        self._consumed = True
        return self._outcome.result()

    def terminate(self) -> None:
        """Kill the viewer. Errors are ignored; the session has moved on."""
        if self._process is None or self._terminated:
            return
        self._terminated = True
        try:
            self._process.kill()
        except OSError:
            pass


def run_editor(command: list[str], path: Path) -> None:
    """
    Run the editor on path in the foreground and wait for it.

    The editor inherits the terminal (stdin, stdout, stderr).

    Raises:
        EditorError: the editor could not be started or exited non-zero
    """
    argv = [*command, str(path)]
    try:
        completed = subprocess.run(argv)
    except OSError as e:
        raise EditorError(f"Error opening editor: {e}", argv) from e
    if completed.returncode != 0:
        raise EditorError(
            f"Editor exited with status {completed.returncode}",
            argv, completed.returncode,
        )


ViewerLauncher = Callable[[list[str], str], ViewerHandle]
EditorRunner = Callable[[list[str], Path], None]


class AnnotationSession:
    """
    Runs annotation batches against a tag store.

    Example:
        session = AnnotationSession(tags, root, root / ".memc" / "tmp",
                                    editor=["vi"], viewer=["feh"])
        result = session.run(["a.png", "b.png"])
    """

    def __init__(
        self,
        tag_store: TagStore,
        root: Path,
        scratch_path: Path,
        editor: list[str],
        viewer: list[str],
        *,
        launch_viewer: ViewerLauncher = ViewerHandle.launch,
        edit: EditorRunner = run_editor,
    ) -> None:
        """
        Args:
            tag_store: Store that receives the committed tags
            root: Repository root; file paths are relative to it
            scratch_path: Buffer the editor works on
            editor: Editor argv, the scratch path is appended
            viewer: Viewer argv, the file path is appended
            launch_viewer: Starts a viewer (injectable for tests)
            edit: Runs the editor (injectable for tests)
        """
        self._tag_store = tag_store
        self._root = Path(root)
        self._scratch_path = Path(scratch_path)
        self._editor = list(editor)
        self._viewer = list(viewer)
        self._launch_viewer = launch_viewer
        self._edit = edit

    def run(self, untagged: Iterable[str]) -> BatchResult:
        """
        Annotate files one after another.

        Paths the tags file cannot hold are skipped before anything is
        shown. Stops early when the user saves an empty buffer. Editor
        failures and tag store write failures propagate; tags committed
        before the failure stay on disk.
        """
        result = BatchResult(state=BATCH_COMPLETED)
        for path in untagged:
            try:
                validate_tagged_path(path)
            except ValueError as e:
                logger.info("Skipping %s: %s", path, e)
                result.skipped.append(path)
                continue
            tags = self._annotate_one(path, result)
            if not tags:
                result.state = BATCH_STOPPED
                logger.info("Annotation stopped at %s", path)
                break
            self._tag_store.append(path, tags)
            result.committed.append(path)

        for error in result.viewer_errors:
            logger.info("Viewer: %s", error)
        logger.info("Annotation batch %s: %d files tagged",
                    result.state, len(result.committed))
        return result

    def _annotate_one(self, path: str, result: BatchResult) -> list[str]:
        viewer = self._launch_viewer(self._viewer, str(self._root / path))
        try:
            self._clear_scratch()
            self._edit(self._editor, self._scratch_path)
            tags = tokenize(self._read_scratch())
            error = viewer.poll_error()
            if error is not None:
                result.viewer_errors.append(str(error))
        finally:
            viewer.terminate()
        return tags

    def _clear_scratch(self) -> None:
        try:
            with open(self._scratch_path, "w", encoding="utf-8"):
                pass
        except OSError as e:
            raise StoreIOError(f"Error clearing scratch file: {e}", self._scratch_path) from e

    def _read_scratch(self) -> str:
        try:
            return self._scratch_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreIOError(f"Error reading scratch file: {e}", self._scratch_path) from e
