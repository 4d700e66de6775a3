"""
Core CRUD operations for the hash cache.

Provides CacheOperations class for single and batch operations. Failures
never propagate: a broken read is a miss, a broken write is a no-op.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Optional

from ..errors import CacheError
from ..models import CachedHash, FileEntry
from .connection import ConnectionManager
from .utils import CHUNK_SIZE, row_to_cached_hash, serialize_variants


logger = logging.getLogger(__name__)

_INSERT_SQL = """
    INSERT OR REPLACE INTO hashes (
        cache_key, path, file_size, mtime, width, height, variants
    ) VALUES (?, ?, ?, ?, ?, ?, ?)
"""


def _insert_params(key: str, entry: FileEntry, cached: CachedHash) -> tuple:
    return (
        key, entry.path, entry.size_bytes, entry.modified_time,
        cached.width, cached.height, serialize_variants(cached.hash_variants),
    )


class CacheOperations:
    """
    Per-key reads and writes of cached hash variants.

    Every method opens its own transaction through the ConnectionManager.
    """

    def __init__(self, connection_manager: ConnectionManager):
        """
        Args:
            connection_manager: Source of transactions
        """
        self.conn_mgr = connection_manager

    def _touch(self, keys: list[str]) -> None:
        """Update last accessed time for cache hits (best effort)."""
        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                for i in range(0, len(keys), CHUNK_SIZE):
                    chunk = keys[i:i + CHUNK_SIZE]
                    placeholders = ','.join('?' * len(chunk))
                    conn.execute(f"""
                        UPDATE hashes SET last_accessed = strftime('%s', 'now')
                        WHERE cache_key IN ({placeholders})
                    """, chunk)
        except sqlite3.Error as e:
            logger.debug(f"Failed to update access time for {len(keys)} entries: {e}")

    def lookup(self, key: str) -> Optional[CachedHash]:
        """
        Get cached hashes for a key.

        Args:
            key: Cache key from make_cache_key()

        Returns:
            CachedHash if present and readable, None otherwise
        """
        try:
            with self.conn_mgr.connection(exclusive=False) as conn:
                row = conn.execute(
                    "SELECT * FROM hashes WHERE cache_key = ?", (key,)
                ).fetchone()
            if row is None:
                return None
            cached = row_to_cached_hash(row)
        except (sqlite3.Error, CacheError) as e:
            logger.debug(f"Cache lookup failed for {key}: {e}")
            return None

        self._touch([key])
        return cached

    def store(self, key: str, entry: FileEntry, cached: CachedHash) -> bool:
        """
        Cache the hashes of one file.

        Args:
            key: Cache key from make_cache_key()
            entry: The file the hashes belong to
            cached: Dimensions and hash variants

        Returns:
            True if the row was written
        """
        try:
            params = _insert_params(key, entry, cached)
            with self.conn_mgr.connection(exclusive=True) as conn:
                conn.execute(_INSERT_SQL, params)
            return True
        except (sqlite3.Error, CacheError, ValueError) as e:
            logger.debug(f"Failed to cache hashes for {entry.path}: {e}")
            return False

    def lookup_batch(self, keys: list[str]) -> dict[str, Optional[CachedHash]]:
        """
        Get cached hashes for many keys in one transaction.

        Args:
            keys: Cache keys

        Returns:
            Dict mapping every key to CachedHash (or None if not cached)
        """
        results: dict[str, Optional[CachedHash]] = {key: None for key in keys}
        if not keys:
            return results

        key_list = list(results)
        hit_keys = []

        try:
            with self.conn_mgr.connection(exclusive=False) as conn:
                for i in range(0, len(key_list), CHUNK_SIZE):
                    chunk = key_list[i:i + CHUNK_SIZE]
                    placeholders = ','.join('?' * len(chunk))

                    rows = conn.execute(f"""
                        SELECT * FROM hashes WHERE cache_key IN ({placeholders})
                    """, chunk).fetchall()

                    for row in rows:
                        try:
                            results[row['cache_key']] = row_to_cached_hash(row)
                            hit_keys.append(row['cache_key'])
                        except CacheError as e:
                            logger.debug(f"Ignoring unreadable cache entry: {e}")
        except sqlite3.Error as e:
            logger.warning(f"Error during batch cache lookup: {e}")
            return {key: None for key in keys}

        if hit_keys:
            self._touch(hit_keys)
        return results

    def store_batch(self, items: Iterable[tuple[str, FileEntry, CachedHash]]) -> int:
        """
        Cache many entries in one transaction.

        Args:
            items: (key, entry, cached) triples

        Returns:
            Number of successfully cached entries
        """
        rows = []
        for key, entry, cached in items:
            try:
                rows.append(_insert_params(key, entry, cached))
            except (CacheError, ValueError) as e:
                logger.debug(f"Skipping cache write for {entry.path}: {e}")

        if not rows:
            return 0

        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                conn.executemany(_INSERT_SQL, rows)
            return len(rows)
        except sqlite3.Error as e:
            logger.warning(f"Batch cache write of {len(rows)} entries failed: {e}")
            return 0

    def invalidate(self, filepath: str):
        """
        Remove every cached entry for a file, whatever its settings.

        Args:
            filepath: Path as stored in the cache
        """
        try:
            with self.conn_mgr.connection(exclusive=True) as conn:
                conn.execute("DELETE FROM hashes WHERE path = ?", (filepath,))
        except sqlite3.Error as e:
            logger.debug(f"Could not drop cache entries of {filepath}: {e}")


__all__ = ['CacheOperations']
