"""SQLite-backed store holding one row per (mid, version)."""

import logging
import sqlite3
import threading
from pathlib import Path

from .record import ModRecord

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"
SQLITE_HEADER = b"SQLite format 3"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS mods (
    id               INTEGER PRIMARY KEY,
    mid              TEXT NOT NULL,
    title            TEXT NOT NULL,
    tile             TEXT,
    version          TEXT NOT NULL,
    first_release    DATE,
    last_update      DATE,
    mod_json         JSON NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS mods_mid_version_unique_index ON mods (mid, version);
CREATE INDEX IF NOT EXISTS mods_title_index ON mods (title);
CREATE INDEX IF NOT EXISTS mods_first_release ON mods (first_release);
CREATE INDEX IF NOT EXISTS mods_last_update ON mods (last_update);
"""

COLUMNS = "mid, version, title, tile, first_release, last_update, mod_json"

INSERT_SQL = """
INSERT INTO mods (mid, version, title, tile, first_release, last_update, mod_json)
VALUES (:mid, :version, :title, :tile, :first_release, :last_update, :mod_json)
"""

UPDATE_SQL = """
UPDATE mods
SET title = :title,
    tile = :tile,
    first_release = :first_release,
    last_update = :last_update,
    mod_json = :mod_json
WHERE (mid = :mid) AND (version = :version)
"""

DELETE_SQL = "DELETE FROM mods WHERE (mid = :mid) AND (version = :version)"

SELECT_SQL = f"""
SELECT {COLUMNS}
FROM mods
WHERE (mid = :mid) AND (version = :version)
LIMIT 1
"""

SELECT_KEYS_SQL = "SELECT mid, version FROM mods"

SELECT_VERSIONS_SQL = "SELECT version FROM mods WHERE (mid = :mid)"

# SQLite takes bare columns from the row holding max(last_update).
LIST_SQL = f"""
SELECT {COLUMNS}, max(last_update) AS latest_update
FROM mods
GROUP BY mid
ORDER BY title, mid
"""

SEARCH_SQL = f"""
SELECT {COLUMNS}, max(last_update) AS latest_update
FROM mods
WHERE (title LIKE :query ESCAPE '\\')
GROUP BY mid
ORDER BY title, mid
"""

SEARCH_CASE_SENSITIVE_SQL = f"""
SELECT {COLUMNS}, max(last_update) AS latest_update
FROM mods
WHERE (instr(title, :query) > 0)
GROUP BY mid
ORDER BY title, mid
"""


class StoreError(Exception):
    """Base class for store failures."""

    pass


class StoreConnectionError(StoreError):
    """Raised when the store file cannot be opened."""

    pass


class StoreSchemaError(StoreError):
    """Raised when the store schema cannot be created."""

    pass


class StoreWriteError(StoreError):
    """Raised when an insert, update or delete fails."""

    pass


def _ensure_sqlite_file(path: Path) -> None:
    try:
        with open(path, "rb") as f:
            header = f.read(len(SQLITE_HEADER))
    except OSError as e:
        raise StoreConnectionError(f"Cannot read DB file: {path}: {e}") from e

    if header != SQLITE_HEADER:
        raise StoreConnectionError(f"Not a DB file: {path}")


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _record_from_row(row: sqlite3.Row) -> ModRecord:
    return ModRecord(
        mid=row["mid"],
        version=row["version"],
        title=row["title"],
        tile=row["tile"] or "",
        first_release=row["first_release"] or "",
        last_update=row["last_update"] or "",
        mod_json=row["mod_json"] or "",
    )


def _record_params(record: ModRecord) -> dict[str, str]:
    return {
        "mid": record.mid,
        "version": record.version,
        "title": record.title,
        "tile": record.tile,
        "first_release": record.first_release,
        "last_update": record.last_update,
        "mod_json": record.mod_json,
    }


class Store:
    """
    The mods table.

    One connection is shared by every caller; all access goes through a
    lock, so concurrent readers (e.g. web request threads) are serialized.
    Each statement commits on its own.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        path: str = MEMORY_PATH,
        case_sensitive_search: bool = False,
    ):
        self.conn = conn
        self.path = path
        self.conn.row_factory = sqlite3.Row
        self.case_sensitive_search = case_sensitive_search
        self._lock = threading.RLock()

    @classmethod
    def open_read_only(cls, path: str | Path, case_sensitive_search: bool = False) -> "Store":
        """Open an existing store for queries."""
        db_path = Path(path)
        if not db_path.exists():
            raise StoreConnectionError(f"File not found: {db_path}")
        _ensure_sqlite_file(db_path)

        uri = f"{db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(
                uri, uri=True, isolation_level=None, check_same_thread=False
            )
        except sqlite3.Error as e:
            raise StoreConnectionError(f"DB connection open error: {db_path}: {e}") from e

        logger.debug("Opened %s read-only", db_path)
        return cls(conn, str(db_path), case_sensitive_search)

    @classmethod
    def open_read_write(cls, path: str | Path, case_sensitive_search: bool = False) -> "Store":
        """Open a store for syncing, creating it if it does not exist."""
        path = str(path)
        need_create = path == MEMORY_PATH or not Path(path).exists()
        if not need_create:
            _ensure_sqlite_file(Path(path))

        try:
            conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreConnectionError(f"DB connection open error: {path}: {e}") from e

        store = cls(conn, path, case_sensitive_search)
        if need_create:
            store.create_schema()

        logger.debug("Opened %s read-write", path)
        return store

    def create_schema(self) -> None:
        """Create the mods table and its indexes."""
        logger.info("Creating DB %s", self.path)
        try:
            with self._lock:
                self.conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise StoreSchemaError(f"DB create table error: {e}") from e

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _fetch(self, sql: str, params: dict | tuple = ()) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"DB query error: {e}") from e

    def _write(self, sql: str, record: ModRecord, action: str) -> int:
        try:
            with self._lock:
                return self.conn.execute(sql, _record_params(record)).rowcount
        except sqlite3.Error as e:
            raise StoreWriteError(
                f"DB {action} mod error: (mid: {record.mid}, version: {record.version}): {e}"
            ) from e

    # -- Row operations --

    def get_all_keys(self) -> set[tuple[str, str]]:
        """Every stored (mid, version) pair."""
        return {(row["mid"], row["version"]) for row in self._fetch(SELECT_KEYS_SQL)}

    def get(self, mid: str, version: str) -> ModRecord | None:
        rows = self._fetch(SELECT_SQL, {"mid": mid, "version": version})
        return _record_from_row(rows[0]) if rows else None

    def insert(self, record: ModRecord) -> None:
        self._write(INSERT_SQL, record, "insert")

    def update(self, record: ModRecord) -> None:
        if self._write(UPDATE_SQL, record, "update") != 1:
            raise StoreWriteError(
                f"DB update mod error: (mid: {record.mid}, version: {record.version}): no such row"
            )

    def delete(self, mid: str, version: str) -> None:
        try:
            with self._lock:
                self.conn.execute(DELETE_SQL, {"mid": mid, "version": version})
        except sqlite3.Error as e:
            raise StoreWriteError(
                f"DB delete mod error: (mid: {mid}, version: {version}): {e}"
            ) from e

    # -- Scans --

    def scan_latest_per_mid(self) -> list[ModRecord]:
        """One row per mid (the most recently updated), ordered by title."""
        return [_record_from_row(row) for row in self._fetch(LIST_SQL)]

    def search_by_title(self, text: str) -> list[ModRecord]:
        """Like scan_latest_per_mid, restricted to titles containing ``text``."""
        if self.case_sensitive_search:
            rows = self._fetch(SEARCH_CASE_SENSITIVE_SQL, {"query": text})
        else:
            rows = self._fetch(SEARCH_SQL, {"query": _like_pattern(text)})
        return [_record_from_row(row) for row in rows]

    def scan_versions(self, mid: str) -> list[str]:
        """All stored versions of a mod, unordered."""
        return [row["version"] for row in self._fetch(SELECT_VERSIONS_SQL, {"mid": mid})]
