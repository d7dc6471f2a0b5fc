"""SQLite document database adapter.

Implements DatabasePort as a JSON document store in a single SQLite file.
Synchronous calls share one sqlite3 connection owned by the thread that
opened the handle; asynchronous calls use short-lived aiosqlite
connections so they never block the event loop.
"""

import json
import logging
import sqlite3
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from sandboxdb.core.errors import LifecycleError
from sandboxdb.core.ports import DatabasePort, StoragePort

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS documents (
        collection TEXT NOT NULL,
        key TEXT NOT NULL,
        body TEXT NOT NULL,
        PRIMARY KEY (collection, key)
    )
"""
_UPSERT = "INSERT OR REPLACE INTO documents (collection, key, body) VALUES (?, ?, ?)"
_SELECT_ONE = "SELECT body FROM documents WHERE collection = ? AND key = ?"
_SELECT_ALL = "SELECT body FROM documents WHERE collection = ? ORDER BY rowid"
_COUNT = "SELECT COUNT(*) FROM documents WHERE collection = ?"
_DELETE = "DELETE FROM documents WHERE collection = ? AND key = ?"


class SQLiteDocumentDatabase(DatabasePort):
    """Document database stored in ``<label>.<extension>`` inside a storage."""

    def __init__(self, storage: StoragePort, label: str = "client", extension: str = "db"):
        """Open (or create) the database file.

        Args:
            storage: Storage the backing file lives in.
            label: Logical client label; the filename is derived from it.
            extension: Backing file extension.

        Raises:
            ValueError: If label or extension is empty.
            sqlite3.Error: If the file cannot be opened as a database.
        """
        if not label or not extension:
            raise ValueError("label and extension must be non-empty")

        self.storage = storage
        self.label = label
        self._filename = f"{label}.{extension}"
        self.path = Path(storage.get_full_path(self._filename))
        self._closed = False
        self._in_write = False

        self._conn = sqlite3.connect(str(self.path))
        self._conn.execute(_SCHEMA)
        self._conn.commit()
        logger.debug(f"Opened database {self.path}")

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def closed(self) -> bool:
        return self._closed

    def _connection(self) -> sqlite3.Connection:
        if self._closed:
            raise LifecycleError(f"Database {self._filename} has already been closed")
        return self._conn

    def close(self) -> None:
        if self._closed:
            raise LifecycleError(f"Database {self._filename} is already closed")
        self._closed = True
        self._conn.close()
        logger.debug(f"Closed database {self.path}")

    def compact(self) -> bool:
        """Run VACUUM on the closed backing file.

        Raises:
            LifecycleError: If the handle is still open.
            sqlite3.Error: If the file cannot be vacuumed.
        """
        if not self._closed:
            raise LifecycleError(f"Cannot compact {self._filename} while it is open")
        if not self.path.exists():
            return False

        conn = sqlite3.connect(str(self.path))
        try:
            conn.execute("VACUUM")
        finally:
            conn.close()
        logger.debug(f"Compacted database {self.path}")
        return True

    @contextmanager
    def write(self) -> Iterator["SQLiteDocumentDatabase"]:
        """Group writes into one transaction.

        Commits on clean exit and rolls back if the block raises. Nested
        blocks join the outer transaction.
        """
        conn = self._connection()
        if self._in_write:
            yield self
            return

        self._in_write = True
        try:
            with conn:
                yield self
        finally:
            self._in_write = False

    def put(self, collection: str, key: str, document: Mapping[str, Any]) -> None:
        conn = self._connection()
        conn.execute(_UPSERT, (collection, key, self._serialize(document)))
        if not self._in_write:
            conn.commit()

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        row = self._connection().execute(_SELECT_ONE, (collection, key)).fetchone()
        if row is None:
            return None
        return self._deserialize(row[0])

    def all(self, collection: str) -> list[dict[str, Any]]:
        rows = self._connection().execute(_SELECT_ALL, (collection,)).fetchall()
        return [self._deserialize(row[0]) for row in rows]

    def count(self, collection: str) -> int:
        return self._connection().execute(_COUNT, (collection,)).fetchone()[0]

    def delete(self, collection: str, key: str) -> bool:
        conn = self._connection()
        cursor = conn.execute(_DELETE, (collection, key))
        if not self._in_write:
            conn.commit()
        return cursor.rowcount > 0

    async def put_async(
        self, collection: str, key: str, document: Mapping[str, Any]
    ) -> None:
        self._connection()
        async with aiosqlite.connect(str(self.path)) as conn:
            await conn.execute(_UPSERT, (collection, key, self._serialize(document)))
            await conn.commit()

    async def get_async(self, collection: str, key: str) -> dict[str, Any] | None:
        self._connection()
        async with aiosqlite.connect(str(self.path)) as conn:
            cursor = await conn.execute(_SELECT_ONE, (collection, key))
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._deserialize(row[0])

    async def all_async(self, collection: str) -> list[dict[str, Any]]:
        self._connection()
        async with aiosqlite.connect(str(self.path)) as conn:
            cursor = await conn.execute(_SELECT_ALL, (collection,))
            rows = await cursor.fetchall()
        return [self._deserialize(row[0]) for row in rows]

    async def count_async(self, collection: str) -> int:
        self._connection()
        async with aiosqlite.connect(str(self.path)) as conn:
            cursor = await conn.execute(_COUNT, (collection,))
            row = await cursor.fetchone()
        return row[0]

    @staticmethod
    def _serialize(document: Mapping[str, Any]) -> str:
        return json.dumps(dict(document), sort_keys=True)

    @staticmethod
    def _deserialize(body: str) -> dict[str, Any]:
        """Deserialize a stored document.

        Raises:
            ValueError: If the stored body is not a JSON object.
        """
        try:
            document = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt document body: {e}") from e
        if not isinstance(document, dict):
            raise ValueError(f"Expected a JSON object, got {type(document).__name__}")
        return document

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"SQLiteDocumentDatabase({str(self.path)!r}, {state})"
