import sqlite3
from typing import Optional


def read_blob(conn: sqlite3.Connection, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM stored_blobs WHERE key=?", (key,)).fetchone()
    if row is None:
        return None
    return str(row["value"])


def write_blob(conn: sqlite3.Connection, key: str, value: str, updated_at: float) -> None:
    conn.execute(
        """
        INSERT INTO stored_blobs (key,value,updated_at) VALUES (?,?,?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
        """,
        (key, value, updated_at),
    )


def list_blob_keys(conn: sqlite3.Connection) -> list[str]:
    return [str(r["key"]) for r in conn.execute("SELECT key FROM stored_blobs ORDER BY key").fetchall()]
