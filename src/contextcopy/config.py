"""
Configuration loading for contextcopy.

The configuration lives in an optional ``config.json`` next to the
``contextcopy`` executable. The file is JSON with ``//`` line comments
allowed. A missing file means built-in defaults; a broken one prints a
warning and also falls back to the defaults.
"""

from __future__ import annotations

import json
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Tuple

from . import console
from .core import ConfigFileError

CONFIG_FILENAME = "config.json"

DEFAULT_INCLUDED_EXTENSIONS: Tuple[str, ...] = (
    ".md",
    ".json",
    ".yaml",
    ".txt",
    ".py",
    ".cs",
    ".go",
    ".toml",
    ".mod",
)
DEFAULT_LOG_EXTENSIONS: Tuple[str, ...] = (".txt", ".log", ".out", ".err")
DEFAULT_IGNORE_DIRS: Tuple[str, ...] = (
    ".git",
    ".idea",
    ".vscode",
    "__pycache__",
    "venv",
    ".venv",
    "env",
    "vendor",
    "bin",
    "build",
    "node_modules",
)
DEFAULT_IGNORE_FILES: Tuple[str, ...] = ("go.sum", "bundled.go", "resource.go")
DEFAULT_MAX_LOG_LINES = 200
DEFAULT_TOKEN_LIMIT = 128_000

# A JSON string literal, or a // comment running to the end of the line.
# Strings are matched first so that "http://..." values are left alone.
_COMMENT_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*')


@dataclass(frozen=True)
class Config:
    included_extensions: FrozenSet[str] = frozenset(DEFAULT_INCLUDED_EXTENSIONS)
    log_extensions: FrozenSet[str] = frozenset(DEFAULT_LOG_EXTENSIONS)
    ignore_dirs: FrozenSet[str] = frozenset(DEFAULT_IGNORE_DIRS)
    ignore_files: FrozenSet[str] = frozenset(DEFAULT_IGNORE_FILES)
    max_log_lines: int = DEFAULT_MAX_LOG_LINES
    token_limit: int = DEFAULT_TOKEN_LIMIT
    ignore_patterns: Tuple[str, ...] = ()
    respect_gitignore: bool = False
    source: Optional[Path] = None


def default_config_path() -> Path:
    """Return the sidecar ``config.json`` path beside the running executable."""
    if getattr(sys, "frozen", False):
        base = Path(sys.executable).resolve().parent
    else:
        base = Path(sys.argv[0]).resolve().parent
    return base / CONFIG_FILENAME


def strip_json_comments(text: str) -> str:
    """
    Remove ``//`` line comments from *text*.

    Double-quoted strings are skipped, so a ``//`` inside a value survives.
    ``/* ... */`` block comments are not recognised.
    """
    return _COMMENT_RE.sub(lambda m: m.group(1) or "", text)


def _string_set(data: Mapping[str, Any], key: str, default: Iterable[str]) -> FrozenSet[str]:
    value = data.get(key)
    if value is None:
        return frozenset(default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigFileError(f"'{key}' must be a list of strings")
    return frozenset(value)


def _non_negative_int(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigFileError(f"'{key}' must be a non-negative integer")
    return value


def config_from_mapping(data: Any, source: Optional[Path] = None) -> Config:
    """Build a :class:`Config` from decoded JSON, defaulting missing keys."""
    if not isinstance(data, dict):
        raise ConfigFileError("top-level value must be a JSON object")

    patterns = data.get("ignore_patterns")
    if patterns is None:
        patterns = []
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        raise ConfigFileError("'ignore_patterns' must be a list of strings")

    respect_gitignore = data.get("respect_gitignore", False)
    if not isinstance(respect_gitignore, bool):
        raise ConfigFileError("'respect_gitignore' must be true or false")

    return Config(
        included_extensions=_string_set(data, "included_extensions", DEFAULT_INCLUDED_EXTENSIONS),
        log_extensions=_string_set(data, "log_extensions", DEFAULT_LOG_EXTENSIONS),
        ignore_dirs=_string_set(data, "ignore_dirs", DEFAULT_IGNORE_DIRS),
        ignore_files=_string_set(data, "ignore_files", DEFAULT_IGNORE_FILES),
        max_log_lines=_non_negative_int(data, "max_log_lines", DEFAULT_MAX_LOG_LINES)
        or DEFAULT_MAX_LOG_LINES,
        token_limit=_non_negative_int(data, "token_limit", DEFAULT_TOKEN_LIMIT),
        ignore_patterns=tuple(patterns),
        respect_gitignore=respect_gitignore,
        source=source,
    )


def load_config(path: Optional[Path] = None, required: bool = False) -> Config:
    """
    Load the configuration from *path* (the sidecar file by default).

    A missing file yields the defaults, unless *required* is set, in which
    case :class:`ConfigFileError` is raised. Read, parse and type errors are
    reported as warnings and also yield the defaults.
    """
    if path is None:
        path = default_config_path()

    if not path.exists():
        if required:
            raise ConfigFileError(f"Config file '{path}' does not exist")
        return Config()
    if not path.is_file():
        if required:
            raise ConfigFileError(f"'{path}' is not a file")
        console.warn(f"⚠️ '{path}' is not a file. Using defaults.")
        return Config()

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.warn(f"⚠️ Error reading {path.name}: {e}. Using defaults.")
        return Config()

    try:
        config = config_from_mapping(json.loads(strip_json_comments(text)), source=path)
    except (ValueError, ConfigFileError) as e:
        console.warn(f"⚠️ Error parsing {path.name}: {e}. Using defaults.")
        return Config()

    console.info(f"⚙️ Loaded configuration from {path}")
    return config
