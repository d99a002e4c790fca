"""Pytest configuration and fixtures for contextcopy tests."""

import pytest


@pytest.fixture(autouse=True)
def no_sidecar_config(tmp_path_factory, monkeypatch):
    """Point the sidecar config lookup at a path that does not exist.

    Keeps a real config.json next to the test runner from leaking into tests.
    Tests that exercise the sidecar write their own file and patch again.
    """
    from contextcopy import config as config_module

    missing = tmp_path_factory.mktemp("exe") / "config.json"
    monkeypatch.setattr(config_module, "default_config_path", lambda: missing)


@pytest.fixture
def make_tree(tmp_path):
    """Create files under tmp_path from a {relative path: content} mapping."""

    def _make(files):
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def md_config():
    """Only .md files, node_modules ignored, .log truncated at 3 lines."""
    from contextcopy.config import Config

    return Config(
        included_extensions=frozenset({".md", ".log"}),
        log_extensions=frozenset({".log"}),
        ignore_dirs=frozenset({"node_modules"}),
        ignore_files=frozenset(),
        max_log_lines=3,
        token_limit=0,
    )
