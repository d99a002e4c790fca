"""
Clipboard backends.

One backend is picked at startup by :func:`select_clipboard`; every backend
raises :class:`~contextcopy.core.ClipboardError` when the copy fails.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

import pyperclip

from .core import ClipboardError

LINUX_CANDIDATES: Tuple[Tuple[str, ...], ...] = (
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("wl-copy",),
)


class Clipboard(ABC):
    name = "clipboard"

    @abstractmethod
    def copy(self, text: str) -> None:
        """Place *text* on the system clipboard."""


class CommandClipboard(Clipboard):
    """Stream the text to the stdin of a native clipboard utility."""

    def __init__(self, argv: Sequence[str]) -> None:
        self.argv = list(argv)
        self.name = self.argv[0]

    def copy(self, text: str) -> None:
        try:
            subprocess.run(self.argv, input=text.encode("utf-8"), check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise ClipboardError(f"{self.name} failed: {e}") from e


class PowerShellClipboard(Clipboard):
    """Windows: write a temp file and pipe it through ``Set-Clipboard``."""

    name = "powershell"

    def copy(self, text: str) -> None:
        try:
            fd, tmp_path = tempfile.mkstemp(prefix="context-", suffix=".txt")
        except OSError as e:
            raise ClipboardError(f"failed to create temp file: {e}") from e

        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                    fh.write(text)
            except OSError as e:
                raise ClipboardError(f"failed to write to temp file: {e}") from e

            quoted = tmp_path.replace("'", "''")
            command = f"Get-Content -Path '{quoted}' -Raw -Encoding UTF8 | Set-Clipboard"
            try:
                subprocess.run(
                    ["powershell", "-NoProfile", "-Command", command],
                    check=True,
                )
            except (OSError, subprocess.CalledProcessError) as e:
                raise ClipboardError(f"powershell failed: {e}") from e
        finally:
            try:
                os.remove(tmp_path)
            except OSError:
                pass


class PyperclipClipboard(Clipboard):
    """Last resort for platforms without a known clipboard command."""

    name = "pyperclip"

    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(
                f"no clipboard tool found (install xclip, xsel, or wl-copy): {e}"
            ) from e


def select_clipboard(platform: Optional[str] = None) -> Clipboard:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return PowerShellClipboard()
    if platform == "darwin":
        return CommandClipboard(["pbcopy"])
    for argv in LINUX_CANDIDATES:
        if shutil.which(argv[0]):
            return CommandClipboard(argv)
    return PyperclipClipboard()
