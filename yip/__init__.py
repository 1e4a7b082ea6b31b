"""yip package initialization."""

from __future__ import annotations

from .digest import content_digest, dependency_dir_name
from .errors import (
    ConfigError,
    GitError,
    StorageError,
    StorageOpenError,
    UnsupportedSchemaError,
    WriteError,
    YipError,
)
from .ledger import DATABASE_VERSION, FileRecord, Flag, Ledger
from .state import StateDirectory, WriteResult

__all__ = [
    "__version__",
    "ConfigError",
    "DATABASE_VERSION",
    "FileRecord",
    "Flag",
    "GitError",
    "Ledger",
    "StateDirectory",
    "StorageError",
    "StorageOpenError",
    "UnsupportedSchemaError",
    "WriteError",
    "WriteResult",
    "YipError",
    "content_digest",
    "dependency_dir_name",
    "get_version",
]

__version__ = "0.3.0"


def get_version() -> str:
    """Return the current package version."""
    return __version__
