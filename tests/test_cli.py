"""
Tests for the memc command line.

Runs the typer app in-process with CliRunner.
"""

import pytest
from typer.testing import CliRunner

from memc import cli
from memc.cli import app


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tagged_repo(repo_root, make_files):
    make_files(repo_root, "memes/cat.png", "memes/dog.png", "notes.txt", "new.png")
    (repo_root / ".memc" / "tags").write_text(
        "memes/cat.png: cat funny\nmemes/dog.png: dog sad\n", encoding="utf-8"
    )
    (repo_root / ".memc" / "ignore").write_text("notes.txt\n", encoding="utf-8")
    return repo_root


def run(runner, *args):
    return runner.invoke(app, list(args))


class TestInit:
    def test_init(self, runner, tmp_path, monkeypatch):
        monkeypatch.delenv("MEMC_REPO", raising=False)
        monkeypatch.chdir(tmp_path)
        result = run(runner, "init")
        assert result.exit_code == 0
        assert (tmp_path / ".memc" / "tags").exists()

    def test_init_twice_fails(self, runner, repo_root):
        result = run(runner, "init")
        assert result.exit_code == 1
        assert "Already initialized" in result.output

    def test_short_alias(self, runner, tmp_path, monkeypatch):
        monkeypatch.delenv("MEMC_REPO", raising=False)
        monkeypatch.chdir(tmp_path)
        assert run(runner, "i").exit_code == 0
        assert (tmp_path / ".memc").is_dir()


class TestStatus:
    def test_status(self, runner, tagged_repo):
        result = run(runner, "status")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == " 2 / 3 (1 ignored)"
        assert "new.png" in lines

    def test_overlap_warning(self, runner, tagged_repo):
        (tagged_repo / ".memc" / "ignore").write_text("memes/cat.png\n", encoding="utf-8")
        result = run(runner, "status")
        assert result.exit_code == 0
        assert "1 files are both tagged and ignored" in result.output

    def test_not_initialized(self, runner, tmp_path, monkeypatch):
        monkeypatch.delenv("MEMC_REPO", raising=False)
        monkeypatch.chdir(tmp_path)
        result = run(runner, "status")
        assert result.exit_code == 1
        assert "Not initialized" in result.output

    def test_corrupt_tags(self, runner, repo_root):
        (repo_root / ".memc" / "tags").write_text("no colon here\n", encoding="utf-8")
        result = run(runner, "status")
        assert result.exit_code == 1
        assert "malformed" in result.output

    def test_repo_option(self, runner, tagged_repo, tmp_path_factory, monkeypatch):
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
        result = run(runner, "--repo", str(tagged_repo), "status")
        assert result.exit_code == 0
        assert " 2 / 3 (1 ignored)" in result.output

    def test_repo_env(self, runner, tagged_repo, tmp_path_factory, monkeypatch):
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
        monkeypatch.setenv("MEMC_REPO", str(tagged_repo))
        result = run(runner, "s")
        assert result.exit_code == 0
        assert " 2 / 3 (1 ignored)" in result.output


class TestFind:
    def test_find(self, runner, tagged_repo):
        result = run(runner, "find", "cat", "funy")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "memes/cat.png: 1"
        assert lines[1].startswith("memes/dog.png: ")

    def test_limit(self, runner, tagged_repo):
        result = run(runner, "find", "--limit", "1", "cat")
        assert result.output.splitlines() == ["memes/cat.png: 0"]

    def test_alias(self, runner, tagged_repo):
        result = run(runner, "f", "dog")
        assert result.output.splitlines()[0] == "memes/dog.png: 0"

    def test_requires_terms(self, runner, tagged_repo):
        assert run(runner, "find").exit_code != 0


class TestIgnore:
    def test_ignore(self, runner, tagged_repo):
        result = run(runner, "ignore", "new.png")
        assert result.exit_code == 0
        assert (tagged_repo / ".memc" / "ignore").read_text(encoding="utf-8") == "notes.txt\nnew.png\n"

    def test_warnings(self, runner, tagged_repo):
        result = run(runner, "ignore", "notes.txt", "memes/cat.png")
        assert result.exit_code == 0
        assert "notes.txt is already ignored" in result.output
        assert "memes/cat.png is tagged" in result.output

    def test_outside_repository(self, runner, tagged_repo, tmp_path_factory):
        outside = tmp_path_factory.mktemp("elsewhere") / "x.png"
        result = run(runner, "g", str(outside), "new.png")
        assert result.exit_code == 1
        assert "is not in this repository" in result.output
        # the valid path was still added
        assert "new.png" in (tagged_repo / ".memc" / "ignore").read_text(encoding="utf-8")


class TestAnnotate:
    def test_annotate_with_stub_editor(self, runner, tagged_repo, monkeypatch):
        from conftest import FakeViewerLauncher, ScriptedEditor
        from memc.api import Repository

        editor = ScriptedEditor(["shiny new"])
        original = Repository.session

        def session(self, **kwargs):
            return original(self, launch_viewer=FakeViewerLauncher(), edit=editor)

        monkeypatch.setattr(Repository, "session", session)
        result = run(runner, "annotate")

        assert result.exit_code == 0
        assert "Tagged 1 files." in result.output
        tags = (tagged_repo / ".memc" / "tags").read_text(encoding="utf-8")
        assert tags.endswith("new.png: shiny new\n")

    def test_skipped_names_are_reported(self, runner, tagged_repo, monkeypatch, make_files):
        from conftest import FakeViewerLauncher, ScriptedEditor
        from memc.api import Repository

        make_files(tagged_repo, "12:30.png")
        original = Repository.session

        def session(self, **kwargs):
            return original(self, launch_viewer=FakeViewerLauncher(), edit=ScriptedEditor(["x"]))

        monkeypatch.setattr(Repository, "session", session)
        result = run(runner, "annotate")

        assert result.exit_code == 0
        assert "Skipped '12:30.png'" in result.output
        assert "Tagged 1 files." in result.output

    def test_editor_failure(self, runner, tagged_repo, monkeypatch, tmp_path_factory):
        missing = tmp_path_factory.mktemp("bin") / "no-such-editor"
        monkeypatch.setenv("EDITOR", str(missing))
        monkeypatch.setenv("MEMC_VIEWER", str(missing) + "-viewer")
        result = run(runner, "annotate")
        assert result.exit_code == 1
        assert "Error opening editor" in result.output


class TestCompact:
    def test_compact(self, runner, repo_root):
        tags = repo_root / ".memc" / "tags"
        tags.write_text("a.png: x\na.png: y\n", encoding="utf-8")
        result = run(runner, "compact")
        assert result.exit_code == 0
        assert "Dropped 1 stale records." in result.output
        assert tags.read_text(encoding="utf-8") == "a.png: y\n"


class TestDispatch:
    def test_unknown_command(self, runner, repo_root):
        result = run(runner, "frobnicate")
        assert result.exit_code != 0

    def test_no_command_shows_help(self, runner):
        result = run(runner)
        assert "annotate" in result.output


class TestMain:
    def test_unexpected_error_is_logged(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("MEMC_REPO", str(tmp_path))

        def boom():
            raise RuntimeError("kaboom")

        monkeypatch.setattr(cli, "app", boom)
        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        log = (tmp_path / ".memc" / "memc-errors.log").read_text()
        assert "RuntimeError: kaboom" in log
        assert "Error: kaboom" in capsys.readouterr().err

    def test_keyboard_interrupt(self, monkeypatch):
        def interrupted():
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "app", interrupted)
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 130
