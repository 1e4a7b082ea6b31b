"""Persistent build ledger for yip backed by SQLite.

The ledger remembers every file yip has generated (size, modification time and
content digest at the moment of writing), the schema version of the database,
the project root the database belongs to, and a handful of one-shot flags.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from .errors import StorageError, StorageOpenError, UnsupportedSchemaError

logger = logging.getLogger(__name__)

DATABASE_VERSION = 1
DB_FILENAME = "db"
BUSY_TIMEOUT_MS = 5000

T = TypeVar("T")


class Flag(IntEnum):
    """One-shot markers stored in the ``flags`` table, keyed by fixed ids."""

    DID_BUILD_TIZEN = 1


@dataclass(frozen=True, slots=True)
class FileRecord:
    path: str
    size: int
    mod_time: int
    digest: str


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise StorageError(f"unable to {action}: {exc}") from exc


def _connect(db_path: Path) -> sqlite3.Connection:
    try:
        conn = sqlite3.connect(db_path, isolation_level=None)
    except sqlite3.Error as exc:
        raise StorageOpenError(db_path, str(exc)) from exc
    try:
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL;")
        except sqlite3.OperationalError as exc:
            if "readonly" not in str(exc).lower():
                raise
        conn.execute("PRAGMA synchronous = NORMAL;")
        conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS};")
    except sqlite3.Error as exc:
        conn.close()
        raise StorageOpenError(db_path, str(exc)) from exc
    return conn


def _table_exists(conn: sqlite3.Connection, table: str) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    return row is not None


class Ledger:
    """Transactional record store for one project's generated files.

    Opening a ledger validates it: a database written by a newer yip is
    rejected with :class:`UnsupportedSchemaError`, and a database that was
    last used with a different project root forgets all of its file records.
    Either the whole validation commits or nothing in the database changes.
    """

    def __init__(self, db_path: Path | str, project_root: Path | str) -> None:
        self.db_path = Path(db_path)
        self.project_root = str(project_root)
        self.resynced = False
        self.upgraded_from: int | None = None
        self._conn: sqlite3.Connection | None = _connect(self.db_path)
        try:
            self.ensure_schema()
            with self.transaction():
                self._check_version()
                self._check_project_root()
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> "Ledger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        with _storage_errors("close database"):
            conn.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError(f"ledger {self.db_path} is closed")
        return self._conn

    def ensure_schema(self) -> None:
        conn = self._connection()
        with _storage_errors("create database schema"):
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS version (
                    id INTEGER PRIMARY KEY,
                    value INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS project_dir (
                    id INTEGER PRIMARY KEY,
                    path TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS files (
                    path TEXT PRIMARY KEY,
                    size INTEGER NOT NULL,
                    mtime INTEGER NOT NULL,
                    digest TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS flags (
                    id INTEGER PRIMARY KEY,
                    value INTEGER NOT NULL
                );
                """
            )

    def has_table(self, table: str) -> bool:
        with _storage_errors(f"inspect table {table}"):
            return _table_exists(self._connection(), table)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed block in one transaction.

        Commits when the block returns normally and rolls back when it raises.
        A transaction opened inside another one joins the outer transaction.
        """

        conn = self._connection()
        if conn.in_transaction:
            yield
            return
        with _storage_errors("begin transaction"):
            conn.execute("BEGIN IMMEDIATE;")
        try:
            yield
        except BaseException:
            self._rollback(conn)
            raise
        try:
            conn.execute("COMMIT;")
        except sqlite3.Error as exc:
            self._rollback(conn)
            raise StorageError(f"unable to commit transaction: {exc}") from exc

    def run_in_transaction(self, body: Callable[[], T]) -> T:
        with self.transaction():
            return body()

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK;")
        except sqlite3.Error as exc:
            logger.error("Rollback failed for %s: %s", self.db_path, exc)

    def _check_version(self) -> None:
        version = self.get_schema_version()
        if version > DATABASE_VERSION:
            raise UnsupportedSchemaError(version, DATABASE_VERSION)
        self.set_schema_version(DATABASE_VERSION)
        if version != 0 and version != DATABASE_VERSION:
            self.upgraded_from = version
            logger.info("Database has been updated to version %d.", DATABASE_VERSION)

    def _check_project_root(self) -> None:
        stored = self.get_project_root()
        if not stored:
            self.set_project_root(self.project_root)
            return
        if stored != self.project_root:
            logger.warning(
                "Project directory has changed (%s -> %s); resyncing.",
                stored,
                self.project_root,
            )
            self.delete_all_file_records()
            self.set_project_root(self.project_root)
            self.resynced = True

    def get_schema_version(self) -> int:
        with _storage_errors("read database version"):
            row = self._connection().execute(
                "SELECT value FROM version WHERE id = 1 LIMIT 1"
            ).fetchone()
        return int(row["value"]) if row is not None else 0

    def set_schema_version(self, version: int) -> None:
        with _storage_errors("update database version"):
            self._connection().execute(
                "REPLACE INTO version (id, value) VALUES (1, ?)",
                (int(version),),
            )

    def get_project_root(self) -> str:
        with _storage_errors("read project directory"):
            row = self._connection().execute(
                "SELECT path FROM project_dir WHERE id = 1 LIMIT 1"
            ).fetchone()
        return str(row["path"]) if row is not None else ""

    def set_project_root(self, path: Path | str) -> None:
        with _storage_errors("update project directory"):
            self._connection().execute(
                "REPLACE INTO project_dir (id, path) VALUES (1, ?)",
                (str(path),),
            )

    def lookup_file_record(self, path: Path | str) -> FileRecord | None:
        with _storage_errors("read file record"):
            row = self._connection().execute(
                "SELECT path, size, mtime, digest FROM files WHERE path = ? LIMIT 1",
                (str(path),),
            ).fetchone()
        if row is None:
            return None
        return FileRecord(
            path=row["path"],
            size=int(row["size"]),
            mod_time=int(row["mtime"]),
            digest=row["digest"],
        )

    def upsert_file_record(
        self,
        path: Path | str,
        size: int,
        mod_time: int,
        digest: str,
    ) -> None:
        with _storage_errors("store file record"):
            self._connection().execute(
                "REPLACE INTO files (path, size, mtime, digest) VALUES (?, ?, ?, ?)",
                (str(path), int(size), int(mod_time), digest),
            )

    def delete_file_record(self, path: Path | str) -> bool:
        with _storage_errors("delete file record"):
            cursor = self._connection().execute(
                "DELETE FROM files WHERE path = ?",
                (str(path),),
            )
        return cursor.rowcount > 0

    def delete_all_file_records(self) -> int:
        with _storage_errors("delete file records"):
            cursor = self._connection().execute("DELETE FROM files")
        return max(cursor.rowcount, 0)

    def list_file_records(self) -> list[FileRecord]:
        with _storage_errors("list file records"):
            rows = self._connection().execute(
                "SELECT path, size, mtime, digest FROM files ORDER BY path ASC"
            ).fetchall()
        return [
            FileRecord(
                path=row["path"],
                size=int(row["size"]),
                mod_time=int(row["mtime"]),
                digest=row["digest"],
            )
            for row in rows
        ]

    def count_file_records(self) -> int:
        with _storage_errors("count file records"):
            row = self._connection().execute("SELECT COUNT(*) AS total FROM files").fetchone()
        return int(row["total"])

    def get_flag(self, flag: Flag | int) -> bool:
        with _storage_errors("read flag"):
            row = self._connection().execute(
                "SELECT value FROM flags WHERE id = ? LIMIT 1",
                (int(flag),),
            ).fetchone()
        return row is not None and int(row["value"]) != 0

    def set_flag(self, flag: Flag | int) -> None:
        with _storage_errors("update flag"):
            self._connection().execute(
                "REPLACE INTO flags (id, value) VALUES (?, 1)",
                (int(flag),),
            )
