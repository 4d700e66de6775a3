"""
Table layout of the hash cache and its version check.
"""

from __future__ import annotations

import sqlite3


# Bump when the table layout or the stored hash format changes;
# an older cache is then discarded, not migrated
SCHEMA_VERSION = 1

_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS meta (
        key TEXT PRIMARY KEY,
        value TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS hashes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cache_key TEXT UNIQUE NOT NULL,
        path TEXT NOT NULL,
        file_size INTEGER NOT NULL,
        mtime REAL NOT NULL,
        width INTEGER,
        height INTEGER,
        -- JSON list of {transform, shape, bits}
        variants TEXT NOT NULL,
        created_at REAL DEFAULT (CAST(strftime('%s', 'now') AS REAL)),
        last_accessed REAL DEFAULT (CAST(strftime('%s', 'now') AS REAL))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_hashes_path ON hashes(path)",
    "CREATE INDEX IF NOT EXISTS idx_hashes_last_accessed ON hashes(last_accessed)",
)


def stored_version(conn: sqlite3.Connection) -> int:
    """Schema version recorded in the database, 0 for a new file."""
    conn.execute(_TABLES[0])
    row = conn.execute("SELECT value FROM meta WHERE key = 'schema_version'").fetchone()
    return int(row['value']) if row else 0


def initialize_schema(conn: sqlite3.Connection) -> None:
    """
    Create the cache tables, discarding cached hashes from another version.

    Must run inside a write transaction.

    Tables:
        - meta: key/value pairs, holds schema_version
        - hashes: one row per cache key
    """
    if stored_version(conn) != SCHEMA_VERSION:
        conn.execute("DROP TABLE IF EXISTS hashes")

    for statement in _TABLES:
        conn.execute(statement)

    conn.execute(
        "INSERT OR REPLACE INTO meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )


__all__ = ['SCHEMA_VERSION', 'initialize_schema', 'stored_version']
