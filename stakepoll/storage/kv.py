"""
Key-Value Storage Backends

The contract only needs point reads and point writes keyed by byte strings.
MemoryStorage backs tests and the sandbox; SQLiteStorage keeps state on disk
between runs.
"""

import os
import sqlite3
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional, Tuple

from ..logger import get_logger

logger = get_logger(__name__)


class Storage(ABC):
    """Byte-keyed store used by every contract operation."""

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value stored under *key*, or None."""

    @abstractmethod
    def set(self, key: bytes, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def remove(self, key: bytes) -> None:
        """Delete *key*; a missing key is not an error."""

    @abstractmethod
    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate over all entries in ascending key order."""

    def __contains__(self, key: bytes) -> bool:
        return self.get(key) is not None


class MemoryStorage(Storage):
    """Dict-backed storage."""

    def __init__(self, data: Optional[Dict[bytes, bytes]] = None):
        self._data: Dict[bytes, bytes] = dict(data or {})

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(bytes(key))

    def set(self, key: bytes, value: bytes) -> None:
        self._data[bytes(key)] = bytes(value)

    def remove(self, key: bytes) -> None:
        self._data.pop(bytes(key), None)

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        for key in sorted(self._data):
            yield key, self._data[key]

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<MemoryStorage entries={len(self._data)}>"


class SQLiteStorage(Storage):
    """
    SQLite-backed storage.

    All entries live in a single ``kv`` table. Every ``set``/``remove`` is
    committed immediately; callers that need all-or-nothing semantics wrap
    the store in a :class:`~stakepoll.storage.transaction.Transaction` and
    flush it with :meth:`write_batch`.
    """

    def __init__(self, db_path: str, wal_mode: bool = True):
        self.db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.connection = sqlite3.connect(db_path)
        if wal_mode:
            self.connection.execute("PRAGMA journal_mode=WAL")
            self.connection.execute("PRAGMA synchronous=NORMAL")
        self.connection.execute(
            "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)"
        )
        self.connection.commit()
        logger.info(f"SQLite storage opened: {db_path}")

    def get(self, key: bytes) -> Optional[bytes]:
        row = self.connection.execute(
            "SELECT value FROM kv WHERE key = ?", (bytes(key),)
        ).fetchone()
        return bytes(row[0]) if row else None

    def set(self, key: bytes, value: bytes) -> None:
        with self.connection:
            self.connection.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (bytes(key), bytes(value)),
            )

    def remove(self, key: bytes) -> None:
        with self.connection:
            self.connection.execute("DELETE FROM kv WHERE key = ?", (bytes(key),))

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        cursor = self.connection.execute("SELECT key, value FROM kv ORDER BY key")
        for key, value in cursor:
            yield bytes(key), bytes(value)

    def write_batch(self, writes: Dict[bytes, Optional[bytes]]) -> None:
        """Apply a set of writes (None = delete) in one SQLite transaction."""
        with self.connection:
            for key, value in writes.items():
                if value is None:
                    self.connection.execute("DELETE FROM kv WHERE key = ?", (key,))
                else:
                    self.connection.execute(
                        "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                        (key, value),
                    )

    def close(self) -> None:
        self.connection.close()

    def __repr__(self) -> str:
        return f"<SQLiteStorage path={self.db_path!r}>"
