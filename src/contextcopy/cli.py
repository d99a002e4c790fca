"""
CLI entrypoint for contextcopy package.
"""
import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional

from . import console
from .clipboard import select_clipboard
from .config import Config, load_config
from .core import (
    aggregate_context,
    build_project_tree,
    estimate_tokens,
    structure_document,
    write_document,
    ClipboardError,
    ConfigFileError,
    InvalidRootError,
    OutputError,
)

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="contextcopy",
        description="Copy the project tree + file contents to the clipboard.",
    )
    p.add_argument(
        "-p",
        "--preview",
        action="store_true",
        help="Preview file structure and list without copying",
    )
    p.add_argument(
        "-s",
        "--structure",
        action="store_true",
        help="Copy only the project structure tree to clipboard",
    )
    p.add_argument("--root", type=Path, default=Path("."), help="Project root dir")
    p.add_argument(
        "--config",
        type=Path,
        help="Config file (default: config.json next to the executable)",
    )
    p.add_argument(
        "--out",
        type=Path,
        help="Write the output to this file instead of the clipboard",
    )
    p.add_argument(
        "--gitignore",
        action="store_true",
        help="Also skip paths matched by the project's .gitignore",
    )
    p.add_argument(
        "--no-wait",
        action="store_true",
        help="Exit immediately instead of waiting for Enter",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def _report_tokens(tokens: int, limit: int) -> None:
    line = f"📊 Estimated Tokens: {tokens}"
    if limit > 0:
        line += f" / {limit}"
    console.info(line)
    if limit > 0 and tokens > limit:
        console.warn(
            f"⚠️  WARNING: Output exceeds configured limit by ~{tokens - limit} tokens!"
        )


def _deliver(text: str, out: Optional[Path], verbose: bool) -> Optional[str]:
    """Send *text* to *out* or the clipboard; return where it went."""
    if out is not None:
        return str(write_document(text, out))
    clipboard = select_clipboard()
    console.debug(f"Using {clipboard.name} clipboard backend", verbose)
    clipboard.copy(text)
    return None


def _wait_for_enter(ns: argparse.Namespace) -> None:
    if ns.no_wait:
        return
    try:
        input("Press Enter to exit...")
    except EOFError:
        pass


def _run_preview(root: Path, config: Config) -> None:
    console.info("🔎 Scanning project for preview...")
    tree, count = build_project_tree(root, config)
    console.info("\n" + tree)
    console.info(f"📄 Found {count} files.")


def _run_copy(root: Path, config: Config, ns: argparse.Namespace) -> bool:
    if ns.structure:
        console.info("🌳 Scanning project structure...")
        tree, count = build_project_tree(root, config)
        output = structure_document(tree)
        what, counted = "Project structure", f"📄 Tree contains {count} files."
    else:
        console.info("Scanning project files...")
        doc = aggregate_context(root, config, verbose=ns.verbose)
        output = doc.text
        what, counted = "Context", f"📄 Aggregated {doc.file_count} documents."
        if doc.truncated:
            console.debug(f"{len(doc.truncated)} log file(s) truncated", ns.verbose)

    tokens = estimate_tokens(output)
    try:
        target = _deliver(output, ns.out, ns.verbose)
    except (ClipboardError, OutputError) as e:
        where = "writing output" if ns.out is not None else "copying to clipboard"
        console.error(f"❌ Error {where}: {e}")
        return False

    if target is None:
        console.success(f"✅ Success! {what} copied to clipboard. (Ctrl+V)")
    else:
        console.success(f"✅ Success! {what} written to {target}.")
    console.info(counted)
    _report_tokens(tokens, config.token_limit)
    return True


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        root = ns.root.resolve()

        try:
            if ns.config:
                config = load_config(ns.config.resolve(), required=True)
            else:
                config = load_config()
        except ConfigFileError as e:
            console.error(f"Error: {e}")
            sys.exit(1)
        if ns.gitignore:
            config = dataclasses.replace(config, respect_gitignore=True)

        console.debug(f"Scanning {root} …", ns.verbose)

        try:
            if ns.preview:
                _run_preview(root, config)
                return
            ok = _run_copy(root, config, ns)
        except InvalidRootError as e:
            console.error(f"❌ Error scanning files: {e}")
            sys.exit(1)

        _wait_for_enter(ns)
        if not ok:
            sys.exit(1)

    except KeyboardInterrupt:
        console.error("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        console.error(f"Unexpected error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
