"""Logic helpers for the `yip status` and `yip forget` commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..ledger import DB_FILENAME, Flag, FileRecord
from ..state import StateDirectory
from ..utils import mtime_seconds


@dataclass(slots=True)
class TrackedFile:
    record: FileRecord
    exists: bool
    modified: bool


@dataclass(slots=True)
class StateSummary:
    state_path: Path
    project_root: str
    schema_version: int
    file_count: int
    flags: dict[str, bool]
    resynced: bool = False
    files: list[TrackedFile] = field(default_factory=list)
    project_file: Path | None = None

    @property
    def has_project_file(self) -> bool:
        return self.project_file is not None and self.project_file.is_file()

    @property
    def missing_count(self) -> int:
        return sum(1 for item in self.files if not item.exists)

    @property
    def modified_count(self) -> int:
        return sum(1 for item in self.files if item.exists and item.modified)


def _inspect_record(record: FileRecord) -> TrackedFile:
    path = Path(record.path)
    try:
        stat = path.stat()
    except FileNotFoundError:
        return TrackedFile(record=record, exists=False, modified=False)
    modified = stat.st_size != record.size or mtime_seconds(path) > record.mod_time
    return TrackedFile(record=record, exists=True, modified=modified)


def has_state(project_root: Path, state_dir_name: str) -> bool:
    """Return True when *project_root* already holds a ledger."""
    return (project_root / state_dir_name / DB_FILENAME).is_file()


def summarize_state(
    state: StateDirectory,
    *,
    include_files: bool = False,
    project_file_name: str | None = None,
) -> StateSummary:
    """Collect what the ledger knows about the project without changing it."""

    ledger = state.ledger
    files: list[TrackedFile] = []
    if include_files:
        files = [_inspect_record(record) for record in ledger.list_file_records()]
    return StateSummary(
        state_path=state.path,
        project_root=ledger.get_project_root(),
        schema_version=ledger.get_schema_version(),
        file_count=ledger.count_file_records(),
        flags={flag.name.lower(): ledger.get_flag(flag) for flag in Flag},
        resynced=state.resynced,
        files=files,
        project_file=state.project_root / project_file_name if project_file_name else None,
    )


def forget_files(state: StateDirectory) -> int:
    """Drop every file record so the next generation pass rewrites all outputs."""

    with state.ledger.transaction():
        return state.ledger.delete_all_file_records()
