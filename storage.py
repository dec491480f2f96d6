"""
Storage backends for persisted tracker state.

Both stores talk to one of these through two calls: ``read()`` returns the
last written blob (or None) and ``write(blob)`` replaces it synchronously.
Write failures are never caught here.
"""

import sqlite3
import time
from typing import Optional, Protocol

import blob_repository


class StorageBackend(Protocol):
    def read(self) -> Optional[str]:
        ...

    def write(self, blob: str) -> None:
        ...


class MemoryStorage:
    """In-process backend used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[str] = None) -> None:
        self.blob = initial
        self.writes = 0

    def read(self) -> Optional[str]:
        return self.blob

    def write(self, blob: str) -> None:
        self.blob = blob
        self.writes += 1


class SqliteBlobStorage:
    """One row of the ``stored_blobs`` table, committed on every write."""

    def __init__(self, conn: sqlite3.Connection, key: str) -> None:
        self.conn = conn
        self.key = key

    def read(self) -> Optional[str]:
        return blob_repository.read_blob(self.conn, self.key)

    def write(self, blob: str) -> None:
        try:
            blob_repository.write_blob(self.conn, self.key, blob, time.time())
            self.conn.commit()
        except sqlite3.Error:
            self.conn.rollback()
            raise
