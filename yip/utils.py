"""Utility helpers for filesystem access and path handling."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_directory(path: Path | str) -> Path:
    """Resolve and validate a user supplied directory path."""
    dir_path = Path(path).expanduser().resolve()
    if not dir_path.exists():
        raise FileNotFoundError(f"Directory does not exist: {dir_path}")
    if not dir_path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {dir_path}")
    return dir_path


def simplify_path(path: Path | str) -> Path:
    """Collapse ``.``/``..`` segments and duplicate separators without touching the disk."""
    return Path(os.path.normpath(os.fspath(path)))


def canonical_path(path: Path | str) -> Path:
    """Return the absolute, symlink-resolved form of *path*.

    Ledger keys are built from this so that relative and absolute spellings of
    the same file map to one record.
    """
    return Path(path).expanduser().resolve()


def mtime_seconds(path: Path | str) -> int:
    """Return the modification time of *path* truncated to whole seconds."""
    return int(os.stat(path).st_mtime)


def format_path(path: Path, base: Path | None = None) -> str:
    """Return a user friendly representation of *path* relative to *base* when possible."""
    if base:
        try:
            relative = path.relative_to(base)
            return f"./{relative.as_posix()}"
        except ValueError:
            return str(path)
    return str(path)


def to_unix_separators(path: Path | str) -> str:
    """Return *path* with forward slashes, as used inside generated sources."""
    return os.fspath(path).replace("\\", "/")
