"""Exception types raised by the yip core.

Every error the package raises derives from :class:`YipError`, so callers that
only need to report a failure can catch a single type. The CLI is the only
place that turns these into messages and exit codes.
"""

from __future__ import annotations

from pathlib import Path


class YipError(RuntimeError):
    """Base class for all yip failures."""


class StorageError(YipError):
    """Raised when the persistent ledger cannot be read or updated."""


class StorageOpenError(StorageError):
    """Raised when the ledger database cannot be opened or created."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"unable to open sqlite database '{self.path}': {reason}")


class UnsupportedSchemaError(StorageError):
    """Raised when the ledger was written by a newer version of yip."""

    def __init__(self, found: int, supported: int) -> None:
        self.found = found
        self.supported = supported
        super().__init__(
            f"database version {found} is not supported "
            f"(maximum supported version is {supported})."
        )


class WriteError(YipError):
    """Raised when a generated file cannot be written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"unable to write file '{self.path}': {reason}")


class GitError(YipError):
    """Raised when a git operation fails."""


class ConfigError(YipError):
    """Raised when the configuration file cannot be parsed."""
