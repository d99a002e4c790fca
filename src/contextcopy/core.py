"""
Core logic for contextcopy package.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Tuple

import pathspec

from . import console

if TYPE_CHECKING:  # pragma: no cover
    from .config import Config


# Exceptions
class ContextCopyError(Exception): ...
class InvalidRootError(ContextCopyError): ...
class ConfigFileError(ContextCopyError): ...
class OutputError(ContextCopyError): ...
class ClipboardError(ContextCopyError): ...


INDENT = "    "
TRUNCATION_MARKER = "\n... [TRUNCATED: File exceeded {limit} lines] ...\n"
STRUCTURE_HEADER = "Here is the project structure:\n"
CONTEXT_HEADER = "Here is the file structure and content:\n"


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Entry:
    path: Path
    rel: str
    depth: int
    kind: EntryKind

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass
class ContextDocument:
    text: str
    file_count: int
    skipped: List[str] = field(default_factory=list)
    truncated: List[str] = field(default_factory=list)


# Ignore-file utilities
def load_gitignore(root: Path) -> List[str]:
    gitignore_path = root / ".gitignore"
    if not gitignore_path.is_file():
        return []
    try:
        with gitignore_path.open("r", encoding="utf-8") as fh:
            return [line.rstrip("\n") for line in fh]
    except (OSError, UnicodeDecodeError) as e:
        console.warn(f"⚠️ Could not read {gitignore_path}: {e}")
        return []


def build_ignore_spec(root: Path, config: "Config") -> Optional["pathspec.GitIgnoreSpec"]:
    """Compile ``ignore_patterns`` (plus ``.gitignore`` if enabled), or None."""
    lines = list(config.ignore_patterns)
    if config.respect_gitignore:
        lines.extend(load_gitignore(root))
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def file_extension(name: str) -> str:
    """Return the suffix from the last dot, so ``.gitignore`` is its own extension."""
    idx = name.rfind(".")
    return name[idx:] if idx >= 0 else ""


# Directory walk
def _list_dir(path: Path) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def walk_entries(
    root: Path,
    config: "Config",
    spec: Optional["pathspec.GitIgnoreSpec"] = None,
) -> Iterator[Entry]:
    """
    Yield every entry under *root* in pre-order, sorted by name.

    Directories listed in ``config.ignore_dirs`` or matched by *spec* are
    not yielded and never descended into. Files are yielded unfiltered;
    use :func:`is_included` to apply the extension and name rules.
    """
    try:
        root = root.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    try:
        top = _list_dir(root)
    except OSError as e:
        raise InvalidRootError(f"Could not scan directory '{root}': {e}")

    stack: List[Tuple[List[os.DirEntry], str, int]] = [(top, "", 0)]
    while stack:
        entries, prefix, depth = stack.pop()
        for idx, de in enumerate(entries):
            rel = f"{prefix}{de.name}"
            path = root / rel
            try:
                is_dir = de.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False

            if not is_dir:
                yield Entry(path, rel, depth, EntryKind.FILE)
                continue

            if de.name in config.ignore_dirs:
                continue
            if spec is not None and spec.match_file(rel + "/"):
                continue

            yield Entry(path, rel, depth, EntryKind.DIRECTORY)
            try:
                children = _list_dir(path)
            except OSError as e:
                console.warn(f"⚠️ Skipping directory {rel}: {e}")
                continue
            # resume this directory after the child subtree
            stack.append((entries[idx + 1:], prefix, depth))
            stack.append((children, rel + "/", depth + 1))
            break


def is_included(
    entry: Entry,
    config: "Config",
    spec: Optional["pathspec.GitIgnoreSpec"] = None,
) -> bool:
    if entry.is_dir:
        return False
    if file_extension(entry.name) not in config.included_extensions:
        return False
    if entry.name in config.ignore_files:
        return False
    if spec is not None and spec.match_file(entry.rel):
        return False
    return True


# project-tree renderer
def render_tree(
    entries: Iterable[Entry],
    config: "Config",
    spec: Optional["pathspec.GitIgnoreSpec"] = None,
) -> Tuple[str, int]:
    """Render already-walked *entries* as an indented tree plus file count."""
    lines: List[str] = []
    count = 0
    for entry in entries:
        indent = INDENT * entry.depth
        if entry.is_dir:
            lines.append(f"{indent}{entry.name}/\n")
        elif is_included(entry, config, spec):
            lines.append(f"{indent}{entry.name}\n")
            count += 1
    return "".join(lines), count


def build_project_tree(root: Path, config: "Config") -> Tuple[str, int]:
    """
    Return the indented project tree and the number of qualifying files.

    Every non-ignored directory gets a ``name/`` line; files appear only
    when they pass :func:`is_included`. Each level indents four spaces.
    """
    spec = build_ignore_spec(root, config)
    return render_tree(walk_entries(root, config, spec), config, spec)


def structure_document(tree: str, header: str = STRUCTURE_HEADER) -> str:
    return f"{header}<project_structure>\n{tree}</project_structure>\n"


# File readers
def _is_binary(data: bytes) -> bool:
    return b"\0" in data


def read_truncated(path: Path, limit: int) -> Tuple[str, bool]:
    """
    Read at most *limit* lines of *path*.

    Returns the text and whether lines were dropped. A truncated text ends
    with a marker naming the limit.
    """
    parts: List[str] = []
    truncated = False
    # split on \n only; a bare \r (progress output) stays inside its line
    with path.open("r", encoding="utf-8", errors="replace", newline="\n") as fh:
        for count, line in enumerate(fh):
            if count >= limit:
                truncated = True
                break
            if line.endswith("\r\n"):
                line = line[:-2]
            elif line.endswith("\n"):
                line = line[:-1]
            parts.append(line + "\n")
    if truncated:
        parts.append(TRUNCATION_MARKER.format(limit=limit))
    return "".join(parts), truncated


def _read_file(entry: Entry, config: "Config") -> Tuple[Optional[str], bool]:
    """Return ``(text, truncated)``; text is None for binary files."""
    if file_extension(entry.name) in config.log_extensions:
        with entry.path.open("rb") as fh:
            if _is_binary(fh.read(8192)):
                return None, False
        return read_truncated(entry.path, config.max_log_lines)

    raw = entry.path.read_bytes()
    if _is_binary(raw):
        return None, False
    # full files keep their line endings verbatim; only log reads normalise \r\n
    return raw.decode("utf-8", errors="replace"), False


# Main aggregator
def aggregate_context(
    root: Path,
    config: "Config",
    verbose: bool = False,
) -> ContextDocument:
    """
    Build the full document: the project tree followed by one
    ``<file name="...">`` block per qualifying file.

    Unreadable and binary files are skipped with a message and left out of
    ``file_count``.
    """
    spec = build_ignore_spec(root, config)
    entries = list(walk_entries(root, config, spec))
    tree, _ = render_tree(entries, config, spec)
    doc = ContextDocument(text="", file_count=0)
    out: List[str] = [structure_document(tree, header=CONTEXT_HEADER)]

    for entry in entries:
        if not is_included(entry, config, spec):
            continue
        try:
            text, truncated = _read_file(entry, config)
        except OSError as e:
            doc.skipped.append(entry.rel)
            console.warn(f"Skipping {entry.name}: {e}")
            continue

        if text is None:
            doc.skipped.append(entry.rel)
            console.debug(f"- Skipping binary {entry.rel}", verbose)
            continue
        if truncated:
            doc.truncated.append(entry.rel)

        out.append(f'<file name="{entry.rel}">\n{text}\n</file>\n')
        doc.file_count += 1
        console.debug(f"+ {entry.rel}{' (truncated)' if truncated else ''}", verbose)

    doc.text = "".join(out)
    return doc


def estimate_tokens(content: str) -> int:
    """Rough token count: one token per four bytes of UTF-8."""
    return len(content.encode("utf-8")) // 4


# Output-file writer
def write_document(text: str, out_path: Path) -> Path:
    try:
        out_path = out_path.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")

    try:
        with out_path.open("w", encoding="utf-8", newline="\n") as out_fh:
            out_fh.write(text)
    except OSError as e:
        raise OutputError(f"Could not write to output file '{out_path}': {e}")
    return out_path
