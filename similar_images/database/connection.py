"""
SQLite connection handling for the hash cache.

One short-lived connection per transaction; writers are serialised
in-process by a lock and in SQLite by BEGIN IMMEDIATE.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import closing, contextmanager, nullcontext
from pathlib import Path
from typing import Iterator


# Seconds SQLite waits on a locked database before giving up
BUSY_TIMEOUT = 30.0


class ConnectionManager:
    """
    Opens transactions against one cache database file.

    Hashing workers never share a connection object. Readers run without
    the lock (WAL lets them proceed next to a writer); at most one writer
    per process holds it at a time.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._write_lock = threading.Lock()
        Path(db_path).resolve().parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=BUSY_TIMEOUT, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def connection(self, exclusive: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Run the body as a single transaction.

        Args:
            exclusive: Writer transaction. Holds the write lock and
                reserves the database up front (BEGIN IMMEDIATE).

        Yields:
            Connection whose rows are sqlite3.Row; committed if the body
            returns, rolled back if it raises
        """
        with (self._write_lock if exclusive else nullcontext()):
            with closing(self._open()) as conn:
                conn.execute("BEGIN IMMEDIATE" if exclusive else "BEGIN")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")

    def compact(self) -> None:
        """Run VACUUM, which cannot run inside a transaction."""
        with self._write_lock:
            with closing(sqlite3.connect(self.db_path, timeout=BUSY_TIMEOUT)) as conn:
                conn.execute("VACUUM")


__all__ = ['ConnectionManager', 'BUSY_TIMEOUT']
