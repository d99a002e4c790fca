"""End-to-end tests for the contextcopy command line."""

import pytest

from contextcopy import cli
from contextcopy.clipboard import Clipboard
from contextcopy.core import ClipboardError


class FakeClipboard(Clipboard):
    name = "fake"

    def __init__(self, fail=False):
        self.fail = fail
        self.copied = []

    def copy(self, text):
        if self.fail:
            raise ClipboardError("no clipboard tool found")
        self.copied.append(text)


@pytest.fixture
def fake_clipboard(monkeypatch):
    board = FakeClipboard()
    monkeypatch.setattr(cli, "select_clipboard", lambda: board)
    return board


@pytest.fixture
def project(make_tree, tmp_path):
    root = make_tree(
        {
            "proj/README.md": "# hi",
            "proj/node_modules/x.md": "dep",
            "proj/notes.txt": "n",
        }
    )
    config = tmp_path / "config.json"
    config.write_text(
        """{
  // markdown only
  "included_extensions": [".md"],
  "ignore_dirs": ["node_modules"],
  "token_limit": 0
}""",
        encoding="utf-8",
    )
    return root / "proj", config


def test_preview_prints_tree_without_copying(project, fake_clipboard, capsys):
    root, config = project

    cli.main(["-p", "--root", str(root), "--config", str(config)])

    out = capsys.readouterr().out
    assert "README.md" in out
    assert "x.md" not in out
    assert "Found 1 files." in out
    assert fake_clipboard.copied == []


def test_preview_does_not_wait(project, fake_clipboard, monkeypatch):
    root, config = project

    def no_input(prompt=""):
        raise AssertionError("preview must not wait for Enter")

    monkeypatch.setattr("builtins.input", no_input)

    cli.main(["--preview", "--root", str(root), "--config", str(config)])


def test_full_mode_copies_document(project, fake_clipboard, capsys):
    root, config = project

    cli.main(["--root", str(root), "--config", str(config), "--no-wait"])

    assert fake_clipboard.copied == [
        "Here is the file structure and content:\n"
        "<project_structure>\n"
        "README.md\n"
        "</project_structure>\n"
        '<file name="README.md">\n# hi\n</file>\n'
    ]
    out = capsys.readouterr().out
    assert "Context copied to clipboard" in out
    assert "Aggregated 1 documents." in out
    assert "Estimated Tokens:" in out


def test_structure_mode_copies_tree_only(project, fake_clipboard, capsys):
    root, config = project

    cli.main(["-s", "--root", str(root), "--config", str(config), "--no-wait"])

    assert fake_clipboard.copied == [
        "Here is the project structure:\n<project_structure>\nREADME.md\n</project_structure>\n"
    ]
    assert "Tree contains 1 files." in capsys.readouterr().out


def test_waits_for_enter_after_copy(project, fake_clipboard, monkeypatch):
    root, config = project
    prompts = []
    monkeypatch.setattr("builtins.input", lambda prompt="": prompts.append(prompt) or "")

    cli.main(["--root", str(root), "--config", str(config)])

    assert prompts == ["Press Enter to exit..."]


def test_wait_tolerates_closed_stdin(project, fake_clipboard, monkeypatch):
    root, config = project

    def eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    cli.main(["--root", str(root), "--config", str(config)])

    assert len(fake_clipboard.copied) == 1


def test_out_writes_file_instead_of_clipboard(project, fake_clipboard, tmp_path, capsys):
    root, config = project
    out = tmp_path / "out" / "context.txt"

    cli.main(
        ["--root", str(root), "--config", str(config), "--out", str(out), "--no-wait"]
    )

    assert fake_clipboard.copied == []
    assert '<file name="README.md">' in out.read_text(encoding="utf-8")
    assert "written to" in capsys.readouterr().out


def test_token_limit_warning(make_tree, tmp_path, fake_clipboard, capsys):
    root = make_tree({"proj/big.md": "x" * 400})
    config = tmp_path / "config.json"
    config.write_text('{"included_extensions": [".md"], "token_limit": 10}', encoding="utf-8")

    cli.main(["--root", str(root / "proj"), "--config", str(config), "--no-wait"])

    out = capsys.readouterr().out
    assert " / 10" in out
    assert "Output exceeds configured limit" in out


def test_clipboard_failure_exits_nonzero(project, monkeypatch, capsys):
    root, config = project
    monkeypatch.setattr(cli, "select_clipboard", lambda: FakeClipboard(fail=True))

    with pytest.raises(SystemExit) as exc:
        cli.main(["--root", str(root), "--config", str(config), "--no-wait"])

    assert exc.value.code == 1
    assert "Error copying to clipboard" in capsys.readouterr().err


def test_missing_root_exits_nonzero(tmp_path, fake_clipboard, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--root", str(tmp_path / "missing"), "--no-wait"])

    assert exc.value.code == 1
    assert "Error scanning files" in capsys.readouterr().err
    assert fake_clipboard.copied == []


def test_explicit_missing_config_exits_nonzero(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-p", "--root", str(tmp_path), "--config", str(tmp_path / "nope.json")])

    assert exc.value.code == 1
    assert "does not exist" in capsys.readouterr().err


def test_malformed_config_falls_back_to_defaults(make_tree, tmp_path, capsys):
    root = make_tree({"proj/main.go": "package main"})
    config = tmp_path / "config.json"
    config.write_text("{not json", encoding="utf-8")

    cli.main(["-p", "--root", str(root / "proj"), "--config", str(config)])

    out = capsys.readouterr().out
    assert "Using defaults" in out
    assert "main.go" in out
    assert "Found 1 files." in out


def test_gitignore_flag(make_tree, tmp_path, capsys):
    root = make_tree(
        {"proj/.gitignore": "secret.md\n", "proj/secret.md": "", "proj/ok.md": ""}
    )

    cli.main(["-p", "--root", str(root / "proj"), "--gitignore"])

    out = capsys.readouterr().out
    assert "secret.md" not in out
    assert "Found 1 files." in out


def test_preview_wins_over_structure(project, fake_clipboard, capsys):
    root, config = project

    cli.main(["-p", "-s", "--root", str(root), "--config", str(config)])

    assert fake_clipboard.copied == []
    assert "Found 1 files." in capsys.readouterr().out


def test_keyboard_interrupt_exits_cleanly(project, fake_clipboard, monkeypatch, capsys):
    root, config = project

    def interrupted(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "aggregate_context", interrupted)

    with pytest.raises(SystemExit) as exc:
        cli.main(["--root", str(root), "--config", str(config), "--no-wait"])

    assert exc.value.code == 1
    assert "Cancelled." in capsys.readouterr().err
    assert fake_clipboard.copied == []
