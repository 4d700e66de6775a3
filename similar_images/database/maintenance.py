"""
Housekeeping for the hash cache: pruning, statistics and compaction.

Like the CRUD operations, these log failures instead of raising.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import time

from .connection import ConnectionManager
from .utils import CHUNK_SIZE


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class MaintenanceOperations:
    """Cache-wide operations that are not tied to a single key."""

    def __init__(self, connection_manager: ConnectionManager):
        self.conn_mgr = connection_manager

    def cleanup_stale(self, max_age_days: int = 30) -> int:
        """
        Drop entries nobody has read in max_age_days days.

        Returns:
            Number of entries removed
        """
        cutoff = time.time() - max_age_days * SECONDS_PER_DAY
        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                return conn.execute(
                    "DELETE FROM hashes WHERE last_accessed < ?", (cutoff,)
                ).rowcount
        except sqlite3.Error as e:
            logger.warning(f"Could not prune stale cache entries: {e}")
            return 0

    def cleanup_missing(self) -> int:
        """
        Drop entries whose file is gone from disk.

        Returns:
            Number of entries removed
        """
        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                paths = [row['path'] for row in conn.execute("SELECT DISTINCT path FROM hashes")]
                gone = [path for path in paths if not os.path.exists(path)]

                removed = 0
                for start in range(0, len(gone), CHUNK_SIZE):
                    batch = gone[start:start + CHUNK_SIZE]
                    marks = ','.join('?' * len(batch))
                    removed += conn.execute(
                        f"DELETE FROM hashes WHERE path IN ({marks})", batch
                    ).rowcount
                return removed
        except sqlite3.Error as e:
            logger.warning(f"Could not prune cache entries of deleted files: {e}")
            return 0

    def get_stats(self) -> dict:
        """
        Size of the cache.

        Returns:
            Dict with total_entries, distinct_files, db_size_bytes,
            db_size_mb and db_path
        """
        db_path = self.conn_mgr.db_path
        size = os.path.getsize(db_path) if os.path.exists(db_path) else 0
        stats = {
            'total_entries': 0,
            'distinct_files': 0,
            'db_size_bytes': size,
            'db_size_mb': round(size / (1024 * 1024), 2),
            'db_path': db_path,
        }

        try:
            with self.conn_mgr.connection() as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS entries, COUNT(DISTINCT path) AS files FROM hashes"
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Could not read cache statistics: {e}")
        else:
            stats['total_entries'] = row['entries']
            stats['distinct_files'] = row['files']

        return stats

    def clear(self):
        """Delete every entry and shrink the file."""
        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                conn.execute("DELETE FROM hashes")
        except sqlite3.Error as e:
            logger.warning(f"Could not clear the cache: {e}")
            return
        self.vacuum()

    def vacuum(self):
        """Reclaim free pages."""
        try:
            self.conn_mgr.compact()
        except sqlite3.Error as e:
            logger.debug(f"VACUUM failed: {e}")


__all__ = ['MaintenanceOperations']
