"""
SQLite-backed entity store with a simple migration system.

Each collection (``equipment``, ``reservations``, ``users``) is stored as
one JSON array under a fixed key of the ``collections`` table and is
fully rewritten on every mutation.  A collection is seeded with
caller-supplied defaults the first time it is read.

Every collection carries a monotonic ``version``.  Writes can state the
version they were based on; a write whose expected version is stale is
rejected with ``StaleWriteError`` so two writers never silently clobber
each other.  ``EntityStore.transaction`` groups several loads and saves
into one ``BEGIN IMMEDIATE`` transaction, which is how the reservation
ledger keeps reservations and equipment availability consistent.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from .config import settings
from .exceptions import StaleWriteError, StorageCorruptionError


logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Default = Union[List[Record], Callable[[], List[Record]], None]

MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: key/value table holding one JSON array per collection
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS collections (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            version INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
]


def get_database_path(database_url: Optional[str] = None) -> str:
    """Compute the path to the SQLite database file.

    If the configured URL is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = database_url or settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent  # project root
    return str((base_dir / db_url).resolve())


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection runs in autocommit mode (``isolation_level=None``);
    transactions are opened explicitly by ``EntityStore.transaction``.
    """
    path = db_path or get_database_path()
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, timeout=10, isolation_level=None)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: Optional[str] = None) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection(db_path)
    try:
        yield conn.cursor()
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None) -> None:
    """Create the database file if needed and apply pending migrations."""
    with get_cursor(db_path) as cursor:
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                logger.info("Applied store migration %s", version)
                current_version = version


def _resolve_default(default: Default) -> List[Record]:
    if default is None:
        return []
    if callable(default):
        return list(default())
    return list(default)


class UnitOfWork:
    """Loads and saves sharing one open SQLite transaction.

    The versions observed by ``load``/``load_versioned`` are remembered, and
    a later ``save`` of the same collection without an explicit
    ``expected_version`` checks against them.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._seen: Dict[str, int] = {}

    def _read(self, collection: str) -> Optional[sqlite3.Row]:
        return self._conn.execute(
            "SELECT value, version FROM collections WHERE key = ?",
            (collection,),
        ).fetchone()

    def _write(self, collection: str, records: List[Record], version: int) -> None:
        payload = json.dumps(records, ensure_ascii=False)
        self._conn.execute(
            """
            INSERT INTO collections (key, value, version, updated_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                version = excluded.version,
                updated_at = CURRENT_TIMESTAMP
            """,
            (collection, payload, version),
        )

    def load_versioned(self, collection: str, default: Default = None) -> Tuple[List[Record], int]:
        """Return the records of ``collection`` together with its version.

        A missing collection is seeded with ``default`` and persisted.
        """
        row = self._read(collection)
        if row is None:
            records = _resolve_default(default)
            self._write(collection, records, 1)
            logger.info("Seeded collection '%s' with %d record(s)", collection, len(records))
            self._seen[collection] = 1
            return records, 1

        version = row["version"]
        try:
            records = json.loads(row["value"])
        except (json.JSONDecodeError, TypeError) as exc:
            return self._recover(collection, default, version, str(exc))
        if not isinstance(records, list):
            return self._recover(collection, default, version, "expected a JSON array")
        self._seen[collection] = version
        return records, version

    def _recover(self, collection: str, default: Default, version: int, reason: str) -> Tuple[List[Record], int]:
        if not settings.reset_on_corruption:
            raise StorageCorruptionError(collection, reason)
        logger.warning("Collection '%s' is corrupted (%s); resetting to defaults", collection, reason)
        records = _resolve_default(default)
        new_version = version + 1
        self._write(collection, records, new_version)
        self._seen[collection] = new_version
        return records, new_version

    def load(self, collection: str, default: Default = None) -> List[Record]:
        records, _ = self.load_versioned(collection, default)
        return records

    def save(self, collection: str, records: List[Record], expected_version: Optional[int] = None) -> int:
        """Overwrite ``collection`` with ``records`` and return the new version.

        Raises ``StaleWriteError`` if the stored version differs from
        ``expected_version`` (or, when omitted, from the version this unit
        of work last observed).
        """
        row = self._conn.execute(
            "SELECT version FROM collections WHERE key = ?",
            (collection,),
        ).fetchone()
        current = row["version"] if row else 0
        expected = expected_version if expected_version is not None else self._seen.get(collection)
        if expected is not None and expected != current:
            raise StaleWriteError(collection, expected, current)
        new_version = current + 1
        self._write(collection, list(records), new_version)
        self._seen[collection] = new_version
        return new_version


class EntityStore:
    """Durable key/value store for named collections of JSON records."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or get_database_path()
        init_db(self.db_path)

    @contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        """Open an immediate transaction; commit on success, roll back on error."""
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield UnitOfWork(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def load(self, collection: str, default: Default = None) -> List[Record]:
        with self.transaction() as uow:
            return uow.load(collection, default)

    def load_versioned(self, collection: str, default: Default = None) -> Tuple[List[Record], int]:
        with self.transaction() as uow:
            return uow.load_versioned(collection, default)

    def save(self, collection: str, records: List[Record], expected_version: Optional[int] = None) -> int:
        with self.transaction() as uow:
            return uow.save(collection, records, expected_version)

    def version(self, collection: str) -> int:
        """Current version of ``collection`` (0 if it was never written)."""
        with get_cursor(self.db_path) as cursor:
            row = cursor.execute(
                "SELECT version FROM collections WHERE key = ?",
                (collection,),
            ).fetchone()
        return row["version"] if row else 0


_store: Optional[EntityStore] = None


def get_store() -> EntityStore:
    """Return the process-wide store for ``settings.database_url``."""
    global _store
    path = get_database_path()
    if _store is None or _store.db_path != path:
        _store = EntityStore(path)
    return _store


def reset_store() -> None:
    """Forget the cached store so the next ``get_store`` call reopens it."""
    global _store
    _store = None
