"""
Context Copy - A tool for pasting a whole project into an LLM chat.

This package walks a directory tree, keeps files whose extension is
configured, skips ignored directories and file names, and places the
project tree plus file contents on the system clipboard.
"""

__version__ = "0.1.0"
__author__ = "Context Copy Team"
