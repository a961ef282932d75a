# stockroom/database/__init__.py
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import sqlite3

from ..config import DB_PATH
from ..constants import DB_TIMEOUT_S, SCHEMA_VERSION, TABLE_SCHEMA_VERSION
from . import schema as schema_module


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}(
            id INTEGER PRIMARY KEY CHECK (id=1),
            version TEXT NOT NULL
        );
    """)
    row = conn.execute(
        f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id=1;"
    ).fetchone()
    if row is None:
        conn.execute(
            f"INSERT INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, ?);",
            (SCHEMA_VERSION,),
        )


def _open(path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(path, timeout=DB_TIMEOUT_S)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - WAL mode
      - foreign_keys ON
      - row_factory = sqlite3.Row (so rows behave like dicts and tuples)
      - busy timeout of DB_TIMEOUT_S
    Ensures the schema and the version table are applied idempotently.
    """
    path = Path(db_path) if db_path is not None else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    schema_module.init_schema(path)

    conn = _open(path)
    conn.execute("PRAGMA journal_mode = WAL;")
    _ensure_version_table(conn)
    conn.commit()
    return conn


@contextmanager
def read_connection(db_path: Path | str) -> Iterator[sqlite3.Connection]:
    """
    Short-lived connection for background loaders. Each worker opens its own,
    so no connection is shared between threads.
    """
    conn = _open(Path(db_path))
    try:
        yield conn
    finally:
        conn.close()


def connection_path(conn: sqlite3.Connection) -> Optional[Path]:
    """File behind `conn`'s main database; None for in-memory databases."""
    for row in conn.execute("PRAGMA database_list;").fetchall():
        if row[1] == "main":
            return Path(row[2]) if row[2] else None
    return None


__all__ = [
    "get_connection",
    "read_connection",
    "connection_path",
]
