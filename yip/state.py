"""Per-project state directory: change detection and tracked file writes."""

from __future__ import annotations

import logging
import os
import time
from contextlib import suppress
from pathlib import Path
from typing import NamedTuple

from .digest import content_digest, dependency_dir_name
from .errors import StorageOpenError, WriteError
from .ledger import DB_FILENAME, Flag, Ledger
from .utils import canonical_path, mtime_seconds, simplify_path, to_unix_separators

logger = logging.getLogger(__name__)

STATE_DIR_NAME = ".yip"


class WriteResult(NamedTuple):
    path: Path
    changed: bool


def _write_bytes(target: Path, data: bytes) -> None:
    tmp_path = target.with_name(f".{target.name}.{os.getpid()}.tmp")
    try:
        with open(tmp_path, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except OSError as exc:
        with suppress(OSError):
            tmp_path.unlink()
        raise WriteError(target, exc.strerror or str(exc)) from exc


class StateDirectory:
    """Hidden ``.yip`` directory of a project and the ledger stored inside it.

    Generators use this object for everything that touches persistent state:
    asking whether an output needs to be rebuilt (:meth:`should_process`),
    writing generated content (:meth:`write_file`) and locating cached
    dependency checkouts (:meth:`resolve_dependency_storage_path`).
    """

    def __init__(self, project_root: Path | str, *, dir_name: str = STATE_DIR_NAME) -> None:
        self.project_root = canonical_path(project_root)
        state_dir = self.project_root / dir_name
        try:
            state_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageOpenError(state_dir, exc.strerror or str(exc)) from exc
        self.path = canonical_path(state_dir)
        self.ledger = Ledger(self.path / DB_FILENAME, self.project_root)

    def __enter__(self) -> "StateDirectory":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.ledger.close()

    @property
    def resynced(self) -> bool:
        """True when opening the ledger discarded records of a moved project."""
        return self.ledger.resynced

    def _target(self, path: Path | str) -> Path:
        return simplify_path(self.path / path)

    def _source(self, path: Path | str) -> Path:
        source = Path(path).expanduser()
        if not source.is_absolute():
            source = self.project_root / source
        return source

    def should_process(self, output_path: Path | str, input_path: Path | str) -> bool:
        """Return True when *output_path* must be regenerated from *input_path*.

        Only timestamps are compared, so callers can skip producing the new
        content entirely. Outputs depending on several inputs should OR the
        answers for each input.
        """

        target = self._target(output_path)
        if not target.exists():
            return True

        # A missing input is reported by whoever tries to read it.
        source = self._source(input_path)
        if not source.exists():
            return True

        record = self.ledger.lookup_file_record(canonical_path(target))
        if record is None:
            return True
        return mtime_seconds(source) > record.mod_time

    def write_file(self, path: Path | str, content: bytes | str) -> WriteResult:
        """Write *content* to *path* under the state directory when it changed.

        Returns the canonical path of the file and whether it was rewritten.
        The file reaches the disk before the ledger records it, so an
        interrupted run at worst rewrites the file again next time.
        """

        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        target = self._target(path)
        digest: str | None = None
        record = None

        if target.exists():
            target = canonical_path(target)
            record = self.ledger.lookup_file_record(target)
            if record is not None and len(data) == record.size:
                digest = content_digest(data)
                if digest == record.digest:
                    if mtime_seconds(target) <= record.mod_time:
                        logger.debug("keeping %s", path)
                        return WriteResult(target, False)
                    # Touched since the last write; trust it only if the bytes still match.
                    try:
                        on_disk = target.read_bytes()
                    except OSError as exc:
                        raise WriteError(target, exc.strerror or str(exc)) from exc
                    if content_digest(on_disk) == record.digest:
                        logger.debug("keeping %s (touched)", path)
                        return WriteResult(target, False)

        logger.debug("writing %s", path)
        if digest is None:
            digest = content_digest(data)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteError(target, exc.strerror or str(exc)) from exc
        # The old record must not outlive the bytes it describes.
        if record is not None:
            with self.ledger.transaction():
                self.ledger.delete_file_record(target)
        _write_bytes(target, data)

        target = canonical_path(target)
        with self.ledger.transaction():
            self.ledger.upsert_file_record(target, len(data), int(time.time()), digest)
        return WriteResult(target, True)

    def write_include_wrapper(
        self,
        name: Path | str,
        original_include_path: Path | str,
    ) -> Path:
        """Write a proxy header that includes *original_include_path*."""

        content = f'#include "{to_unix_separators(original_include_path)}"\n'
        return self.write_file(name, content).path

    def resolve_dependency_storage_path(self, identifier: str) -> Path:
        """Return the cache directory for the dependency named by *identifier*."""

        return self.path / dependency_dir_name(identifier)

    def get_flag(self, flag: Flag) -> bool:
        return self.ledger.get_flag(flag)

    def set_flag(self, flag: Flag) -> None:
        self.ledger.set_flag(flag)
