"""
Console output helpers for contextcopy.
"""
from __future__ import annotations

import sys
from typing import Optional

from colorama import Fore, Style, init as colorama_init

colorama_init()


def echo(msg: str, color: Optional[str] = None, err: bool = False) -> None:
    stream = sys.stderr if err else sys.stdout
    if color:
        print(color + msg + Style.RESET_ALL, file=stream)
    else:
        print(msg, file=stream)


def info(msg: str) -> None:
    echo(msg)


def warn(msg: str) -> None:
    echo(msg, Fore.YELLOW)


def success(msg: str) -> None:
    echo(msg, Fore.GREEN)


def error(msg: str) -> None:
    echo(msg, Fore.RED, err=True)


def debug(msg: str, verbose: bool) -> None:
    """Print a ``[contextcopy]`` progress line when *verbose* is set."""
    if verbose:
        echo(f"[contextcopy] {msg}")
